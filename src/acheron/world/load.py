from pathlib import Path
from typing import Dict, Any, List, Optional
import logging
import yaml

from ..core.ids import ActorId, FactionId, KeywordId, LocationId, WorldSpaceId, QuestId
from .model import Actor, Faction, FormIndex, Keyword, Location, Quest, WorldSpace

logger = logging.getLogger(__name__)


class WorldSchemaError(Exception):
    """Raised when there is a problem with the host form data schema."""
    pass


def _check_unique_ids(entries: List[Dict[str, Any]], section: str, path: Path):
    ids = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get('id'):
            raise WorldSchemaError(f"Entry without 'id' in '{section}' of {path}: {entry}")
        ids.append(entry['id'])
    if len(ids) != len(set(ids)):
        raise WorldSchemaError(f"Duplicate {section} IDs found in {path}.")


def _build_locations(locations_data: List[Dict[str, Any]], path: Path) -> Dict[LocationId, Location]:
    raw = {LocationId(l_data['id']): l_data for l_data in locations_data}
    built: Dict[LocationId, Location] = {}

    def build(location_id: LocationId, chain: List[LocationId]) -> Location:
        if location_id in built:
            return built[location_id]
        if location_id in chain:
            raise WorldSchemaError(f"Location parent cycle through '{location_id}' in {path}.")
        l_data = raw[location_id]
        parent: Optional[Location] = None
        parent_id = l_data.get('parent')
        if parent_id:
            if LocationId(parent_id) not in raw:
                raise WorldSchemaError(f"Location '{location_id}' references unknown parent '{parent_id}'.")
            parent = build(LocationId(parent_id), chain + [location_id])
        location = Location(id=location_id, name=l_data.get('name', location_id), parent=parent)
        built[location_id] = location
        return location

    for location_id in raw:
        build(location_id, [])
    return built


def load_forms(path: Path) -> FormIndex:
    """Loads the host forms (factions, keywords, locations, quests, actors) from a YAML file."""
    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        raise WorldSchemaError(f"YAML file '{path}' is empty or malformed.")
    if not isinstance(data, dict):
        raise WorldSchemaError(f"Top level of {path} must be a mapping of form sections.")

    forms = FormIndex()
    sections = {}
    for section in ("factions", "keywords", "worldspaces", "locations", "quests", "actors"):
        entries = data.get(section) or []
        if not isinstance(entries, list):
            raise WorldSchemaError(f"Section '{section}' in {path} must be a list.")
        _check_unique_ids(entries, section, path)
        sections[section] = entries

    for f_data in sections["factions"]:
        forms.add(Faction(id=FactionId(f_data['id']), name=f_data.get('name', f_data['id'])))
    for k_data in sections["keywords"]:
        forms.add(Keyword(id=KeywordId(k_data['id']), name=k_data.get('name', k_data['id'])))
    for w_data in sections["worldspaces"]:
        forms.add(WorldSpace(id=WorldSpaceId(w_data['id']), name=w_data.get('name', w_data['id'])))
    for location in _build_locations(sections["locations"], path).values():
        forms.add(location)
    for q_data in sections["quests"]:
        forms.add(Quest(
            id=QuestId(q_data['id']),
            name=q_data.get('name', q_data['id']),
            running=bool(q_data.get('running', False)),
            completed=bool(q_data.get('completed', False)),
        ))

    for a_data in sections["actors"]:
        actor_id = ActorId(a_data['id'])
        faction_ids = set()
        for fac_id_str in a_data.get('factions', []):
            if FactionId(fac_id_str) not in forms.factions:
                raise WorldSchemaError(f"Actor '{actor_id}' references unknown faction '{fac_id_str}'.")
            faction_ids.add(FactionId(fac_id_str))

        location = None
        if a_data.get('location'):
            location = forms.lookup("location", a_data['location'])
            if location is None:
                raise WorldSchemaError(f"Actor '{actor_id}' references unknown location '{a_data['location']}'.")
        worldspace = None
        if a_data.get('worldspace'):
            worldspace = forms.lookup("worldspace", a_data['worldspace'])
            if worldspace is None:
                raise WorldSchemaError(f"Actor '{actor_id}' references unknown worldspace '{a_data['worldspace']}'.")

        forms.add(Actor(
            id=actor_id,
            name=a_data.get('name', actor_id),
            race=a_data.get('race'),
            factions=faction_ids,
            keywords={KeywordId(k) for k in a_data.get('keywords', [])},
            base_keywords={KeywordId(k) for k in a_data.get('base_keywords', [])},
            location=location,
            worldspace=worldspace,
        ))

    builtin = data.get('builtin_events') or {}
    if not isinstance(builtin, dict):
        raise WorldSchemaError(f"'builtin_events' in {path} must map categories to quest ids.")
    for category_name, quest_ids in builtin.items():
        for quest_id in quest_ids or []:
            if QuestId(quest_id) not in forms.quests:
                raise WorldSchemaError(f"Built-in event for '{category_name}' references unknown quest '{quest_id}'.")
        forms.builtin_events[str(category_name)] = [QuestId(q) for q in quest_ids or []]

    logger.debug(
        "Loaded %d factions, %d keywords, %d locations, %d quests, %d actors from %s",
        len(forms.factions), len(forms.keywords), len(forms.locations),
        len(forms.quests), len(forms.actors), path,
    )
    return forms
