from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..core.ids import ActorId, FactionId, KeywordId, LocationId, WorldSpaceId, QuestId


@dataclass(frozen=True)
class Faction:
    id: FactionId
    name: str = ""


@dataclass(frozen=True)
class Keyword:
    id: KeywordId
    name: str = ""


@dataclass(frozen=True)
class WorldSpace:
    id: WorldSpaceId
    name: str = ""


@dataclass(frozen=True)
class Location:
    id: LocationId
    name: str = ""
    parent: Optional[Location] = None

    def is_within(self, other: Location) -> bool:
        """True if this location is `other` or nested anywhere below it."""
        current: Optional[Location] = self
        while current is not None:
            if current.id == other.id:
                return True
            current = current.parent
        return False


@dataclass
class Quest:
    id: QuestId
    name: str = ""
    running: bool = False
    completed: bool = False

    def is_running(self) -> bool:
        return self.running and not self.completed

    def is_completed(self) -> bool:
        return self.completed


@dataclass
class Actor:
    """
    A combatant as seen by the condition engine.

    Only the query methods are used by event conditions; they are pure and
    never raise for missing data.
    """
    id: ActorId
    name: str = ""
    race: Optional[str] = None
    factions: Set[FactionId] = field(default_factory=set)
    keywords: Set[KeywordId] = field(default_factory=set)
    base_keywords: Set[KeywordId] = field(default_factory=set) # Keywords on the actor's base form
    location: Optional[Location] = None
    worldspace: Optional[WorldSpace] = None

    def get_race(self) -> Optional[str]:
        return self.race

    def is_in_faction(self, faction: Faction) -> bool:
        return faction.id in self.factions

    def has_keyword(self, keyword: Keyword) -> bool:
        return keyword.id in self.keywords or keyword.id in self.base_keywords

    def get_current_location(self) -> Optional[Location]:
        return self.location

    def get_worldspace(self) -> Optional[WorldSpace]:
        return self.worldspace


class FormIndex:
    """Resolves editor identifiers to host forms."""

    FORM_TYPES = ("faction", "keyword", "location", "worldspace", "quest")

    def __init__(self):
        self.factions: Dict[FactionId, Faction] = {}
        self.keywords: Dict[KeywordId, Keyword] = {}
        self.locations: Dict[LocationId, Location] = {}
        self.worldspaces: Dict[WorldSpaceId, WorldSpace] = {}
        self.quests: Dict[QuestId, Quest] = {}
        self.actors: Dict[ActorId, Actor] = {}
        # Category name -> quest ids wrapped as built-in events
        self.builtin_events: Dict[str, List[QuestId]] = {}

    def add(self, form):
        if isinstance(form, Faction):
            self.factions[form.id] = form
        elif isinstance(form, Keyword):
            self.keywords[form.id] = form
        elif isinstance(form, Location):
            self.locations[form.id] = form
        elif isinstance(form, WorldSpace):
            self.worldspaces[form.id] = form
        elif isinstance(form, Quest):
            self.quests[form.id] = form
        elif isinstance(form, Actor):
            self.actors[form.id] = form
        else:
            raise TypeError(f"Unsupported form type: {type(form).__name__}")
        return form

    def lookup(self, form_type: str, identifier: str):
        """Returns the form of `form_type` registered under `identifier`, or None."""
        if form_type == "faction":
            return self.factions.get(FactionId(identifier))
        elif form_type == "keyword":
            return self.keywords.get(KeywordId(identifier))
        elif form_type == "location":
            return self.locations.get(LocationId(identifier))
        elif form_type == "worldspace":
            return self.worldspaces.get(WorldSpaceId(identifier))
        elif form_type == "quest":
            return self.quests.get(QuestId(identifier))
        raise ValueError(f"Unknown form type '{form_type}'.")

    def actor(self, actor_id: str) -> Actor:
        if ActorId(actor_id) not in self.actors:
            raise ValueError(f"Actor with ID '{actor_id}' not found.")
        return self.actors[ActorId(actor_id)]
