from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional
import yaml

from .rng import get_seeded_rng

if TYPE_CHECKING:
    from ..core.log import AuditLog
    from ..events.registry import EventRegistry


class ConfigError(Exception):
    """Raised when the resolution config file is invalid."""
    pass


@dataclass
class ResolutionConfig:
    forms_path: Path = Path("forms.yaml")
    definitions_dir: Path = Path("events")
    weights_path: Path = Path("weights.json")
    seed: int = 0


def load_config(path: Path) -> ResolutionConfig:
    """Loads the config; relative paths are resolved against the config file's directory."""
    path = Path(path)
    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping.")

    defaults = ResolutionConfig()
    base = path.parent

    def resolve(key: str, default: Path) -> Path:
        value = data.get(key, default)
        if not isinstance(value, (str, Path)):
            raise ConfigError(f"Invalid '{key}' in {path}: {value!r}")
        value = Path(value)
        return value if value.is_absolute() else base / value

    seed = data.get('seed', defaults.seed)
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise ConfigError(f"Invalid 'seed' in {path}: {seed!r}")

    return ResolutionConfig(
        forms_path=resolve('forms', defaults.forms_path),
        definitions_dir=resolve('events', defaults.definitions_dir),
        weights_path=resolve('weights', defaults.weights_path),
        seed=seed,
    )


def build_registry(config: ResolutionConfig, log: Optional[AuditLog] = None) -> EventRegistry:
    """Loads the host forms and returns an initialized registry for `config`."""
    from ..events.registry import EventRegistry
    from ..world.load import load_forms

    registry = EventRegistry(
        forms=load_forms(config.forms_path),
        definitions_dir=config.definitions_dir,
        weights_path=config.weights_path,
        rng=get_seeded_rng(config.seed),
        log=log,
    )
    registry.initialize()
    return registry
