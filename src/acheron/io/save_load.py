from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Any

if TYPE_CHECKING:
    from ..events.registry import EventRegistry

logger = logging.getLogger(__name__)

WeightMapping = Dict[str, Dict[str, int]]


def weights_to_dict(registry: EventRegistry) -> WeightMapping:
    """Converts the registry's event weights to a {category: {name: weight}} mapping."""
    data: WeightMapping = {}
    for category in registry.categories():
        category_weights: Dict[str, int] = {}
        for name, weight in registry.get_events(category):
            # First event with a given name owns the stored weight
            category_weights.setdefault(name, int(weight))
        data[category.name] = category_weights
    return data


def weights_from_dict(data: Dict[str, Any]) -> WeightMapping:
    """
    Validates a loaded weight mapping.
    Malformed categories and entries are logged and skipped; the rest are kept.
    """
    if not isinstance(data, dict):
        raise ValueError("Weight store must be a mapping of categories.")
    weights: WeightMapping = {}
    for category_name, entries in data.items():
        if not isinstance(entries, dict):
            logger.warning("Skipping stored weights for '%s': expected a mapping, got %r.", category_name, entries)
            continue
        category_weights = {}
        for name, weight in entries.items():
            if isinstance(weight, bool) or not isinstance(weight, int):
                logger.warning(
                    "Skipping stored weight for '%s/%s': must be an integer, got %r.",
                    category_name, name, weight,
                )
                continue
            category_weights[str(name)] = weight
        weights[str(category_name)] = category_weights
    return weights


def save_weights_to_json(weights: WeightMapping, path: Path):
    """Saves the weight mapping to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(weights, f, indent=2, sort_keys=True)


def load_weights_from_json(path: Path) -> WeightMapping:
    """Loads the weight mapping from a JSON file. A missing file means no overrides."""
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Weight store '{path}' is malformed: {e}") from e
    return weights_from_dict(data)
