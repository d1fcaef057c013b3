from __future__ import annotations
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional
import logging
import yaml

from .model import (
    ConditionKind,
    ConditionSpec,
    ConditionTarget,
    DefinitionError,
    EventDefinition,
    EventFlags,
    Priority,
    DEFAULT_NAME,
    DEFAULT_WEIGHT,
    MAX_WEIGHT,
    MIN_WEIGHT,
)

if TYPE_CHECKING:
    from ..world.model import FormIndex
    from .registry import Category

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {"quest", "name", "cooldown", "priority", "weight", "flags", "conditions"}


def _enum_by_name(enum_cls, raw: Any, field_name: str, path: Path):
    if isinstance(raw, str):
        for member in enum_cls:
            if member.name.lower() == raw.lower() or str(member.value).lower() == raw.lower():
                return member
    raise DefinitionError(f"Invalid '{field_name}' value {raw!r}", source=str(path))


def validate_event_definition_schema(data: Dict[str, Any], path: Path):
    """Validates the structure of a single event definition record."""
    if not isinstance(data, dict):
        raise DefinitionError("Top level of an event definition must be a mapping.", source=str(path))

    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise DefinitionError(f"Unknown keys {sorted(unknown)}", source=str(path))
    if not isinstance(data.get("quest"), str) or not data["quest"]:
        raise DefinitionError("Missing or empty 'quest'", source=str(path))
    if "name" in data and (not isinstance(data["name"], str) or not data["name"]):
        raise DefinitionError(f"Invalid or empty 'name': {data['name']!r}", source=str(path))
    if "cooldown" in data and not (isinstance(data["cooldown"], (int, float)) and not isinstance(data["cooldown"], bool) and data["cooldown"] >= 0):
        raise DefinitionError(f"Invalid 'cooldown': {data['cooldown']!r}", source=str(path))
    if "weight" in data and not (isinstance(data["weight"], int) and not isinstance(data["weight"], bool) and MIN_WEIGHT <= data["weight"] <= MAX_WEIGHT):
        raise DefinitionError(f"Invalid 'weight' (expected {MIN_WEIGHT}-{MAX_WEIGHT}): {data['weight']!r}", source=str(path))
    if "flags" in data and not (isinstance(data["flags"], list) and all(isinstance(f, str) for f in data["flags"])):
        raise DefinitionError(f"Invalid 'flags': {data['flags']!r}", source=str(path))

    conditions = data.get("conditions", [])
    if not isinstance(conditions, list):
        raise DefinitionError("'conditions' must be a list", source=str(path))
    for c_data in conditions:
        if not (isinstance(c_data, dict) and "target" in c_data and "kind" in c_data and "identifier" in c_data):
            raise DefinitionError(f"Condition must define 'target', 'kind' and 'identifier': {c_data!r}", source=str(path))
        if "polarity" in c_data and not isinstance(c_data["polarity"], bool):
            raise DefinitionError(f"Condition 'polarity' must be a boolean: {c_data!r}", source=str(path))


def build_event_definition(data: Dict[str, Any], forms: FormIndex, path: Path) -> EventDefinition:
    """Builds an EventDefinition from a parsed record, resolving every referenced form."""
    validate_event_definition_schema(data, path)

    quest = forms.lookup("quest", data["quest"])
    if quest is None:
        raise DefinitionError(f"Unable to resolve quest '{data['quest']}'", source=str(path))

    victim_conditions: List[ConditionSpec] = []
    assailant_conditions: List[ConditionSpec] = []
    for c_data in data.get("conditions", []):
        target = _enum_by_name(ConditionTarget, c_data["target"], "target", path)
        kind = _enum_by_name(ConditionKind, c_data["kind"], "kind", path)
        try:
            condition = ConditionSpec.resolve(kind, c_data["identifier"], c_data.get("polarity", True), forms)
        except DefinitionError as e:
            raise DefinitionError(str(e), source=str(path)) from e
        if target is ConditionTarget.Victim:
            victim_conditions.append(condition)
        else:
            assailant_conditions.append(condition)

    flags = EventFlags.from_names(data["flags"]) if "flags" in data else EventFlags()
    priority = _enum_by_name(Priority, data["priority"], "priority", path) if "priority" in data else Priority.Default

    return EventDefinition(
        quest=quest,
        name=data.get("name", DEFAULT_NAME),
        cooldown=data.get("cooldown", 0),
        priority=priority,
        weight=data.get("weight", DEFAULT_WEIGHT),
        flags=flags,
        victim_conditions=victim_conditions,
        assailant_conditions=assailant_conditions,
    )


def load_definition_file(path: Path, forms: FormIndex) -> EventDefinition:
    """Loads a single event definition file."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DefinitionError(f"YAML parse error: {e}", source=str(path)) from e

    if data is None:
        raise DefinitionError("YAML file is empty or malformed.", source=str(path))
    try:
        return build_event_definition(data, forms, path)
    except DefinitionError as e:
        if e.source is None:
            raise DefinitionError(str(e), source=str(path)) from e
        raise


def load_definition_directory(root: Path, forms: FormIndex) -> Dict[Category, List[EventDefinition]]:
    """
    Loads every `<root>/<Category>/*.yaml` definition.

    Broken files are logged and skipped so one bad definition cannot block the rest.
    """
    from .registry import Category

    loaded: Dict[Category, List[EventDefinition]] = {category: [] for category in Category}
    root = Path(root)
    if not root.is_dir():
        logger.warning("Event definition directory %s does not exist; no events loaded.", root)
        return loaded

    for category_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        category: Optional[Category] = Category.from_name(category_dir.name)
        if category is None:
            logger.warning("Skipping unknown event category directory %s", category_dir)
            continue
        for path in sorted(category_dir.glob("*.y*ml")):
            try:
                event = load_definition_file(path, forms)
            except DefinitionError as e:
                logger.warning("Skipping event definition: %s", e)
                continue
            loaded[category].append(event)
            logger.debug("Loaded %s event '%s' from %s", category.name, event.name, path)
    return loaded
