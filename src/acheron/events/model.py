from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Union

from ..world.model import Faction, Keyword, Location, Quest, WorldSpace

if TYPE_CHECKING:
    from ..world.model import Actor, FormIndex

DEFAULT_NAME = "UNTITLED"
MIN_WEIGHT = 0
MAX_WEIGHT = 100
DEFAULT_WEIGHT = 50


class DefinitionError(ValueError):
    """Raised when an event definition is malformed or references an unresolvable form."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class ConditionKind(Enum):
    Race = "race"
    Faction = "faction"
    Keyword = "keyword"
    Location = "location"
    WorldSpace = "worldspace"
    QuestDone = "questdone"
    QuestRunning = "questrunning"


class ConditionTarget(Enum):
    Victim = "victim"
    Assailant = "assailant"


# Payload type carried by each condition kind, and the form type used to resolve it.
_PAYLOAD_TYPES = {
    ConditionKind.Race: str,
    ConditionKind.Faction: Faction,
    ConditionKind.Keyword: Keyword,
    ConditionKind.Location: Location,
    ConditionKind.WorldSpace: WorldSpace,
    ConditionKind.QuestDone: Quest,
    ConditionKind.QuestRunning: Quest,
}
_FORM_TYPES = {
    ConditionKind.Faction: "faction",
    ConditionKind.Keyword: "keyword",
    ConditionKind.Location: "location",
    ConditionKind.WorldSpace: "worldspace",
    ConditionKind.QuestDone: "quest",
    ConditionKind.QuestRunning: "quest",
}

ConditionValue = Union[str, Faction, Keyword, Location, WorldSpace, Quest]


@dataclass(frozen=True, eq=False)
class ConditionSpec:
    kind: ConditionKind
    value: ConditionValue
    polarity: bool = True

    def __post_init__(self):
        expected = _PAYLOAD_TYPES[self.kind]
        if not isinstance(self.value, expected):
            raise DefinitionError(
                f"Condition of kind '{self.kind.name}' requires a {expected.__name__} value, "
                f"got {type(self.value).__name__}."
            )

    @classmethod
    def resolve(cls, kind: ConditionKind, identifier: str, polarity: bool, forms: FormIndex) -> ConditionSpec:
        """
        Builds a condition from a raw identifier.

        Race identifiers are kept as strings; every other kind must resolve to a
        host form, otherwise a DefinitionError is raised.
        """
        if kind is ConditionKind.Race:
            if not isinstance(identifier, str) or not identifier:
                raise DefinitionError(f"Race condition requires a non-empty race identifier, got {identifier!r}.")
            return cls(kind, identifier, polarity)

        form = forms.lookup(_FORM_TYPES[kind], str(identifier))
        if form is None:
            raise DefinitionError(f"Unable to resolve {kind.name} '{identifier}'.")
        return cls(kind, form, polarity)

    def _predicate(self, actor: Optional[Actor]) -> bool:
        kind = self.kind
        if kind is ConditionKind.QuestDone:
            return self.value.is_completed()
        elif kind is ConditionKind.QuestRunning:
            return self.value.is_running()

        if actor is None:
            return False
        if kind is ConditionKind.Race:
            race = actor.get_race()
            return race is not None and race == self.value
        elif kind is ConditionKind.Faction:
            return actor.is_in_faction(self.value)
        elif kind is ConditionKind.Keyword:
            return actor.has_keyword(self.value)
        elif kind is ConditionKind.Location:
            location = actor.get_current_location()
            return location is not None and location.is_within(self.value)
        elif kind is ConditionKind.WorldSpace:
            worldspace = actor.get_worldspace()
            return worldspace is not None and worldspace.id == self.value.id
        raise AssertionError(f"Unhandled condition kind {kind!r}")

    def check(self, actor: Optional[Actor]) -> bool:
        return self._predicate(actor) != (not self.polarity)

    def describe(self) -> str:
        value = self.value if isinstance(self.value, str) else self.value.id
        prefix = "" if self.polarity else "not "
        return f"{prefix}{self.kind.name}={value}"


class Priority(IntEnum):
    Default = 0
    Common = 1
    StoryGeneric = 2
    StoryPriority = 3


class EventFlag(IntFlag):
    Teleport = 1 << 0  # Victim is moved away when the event starts
    InCombat = 1 << 1  # Event may start while combat is still ongoing
    Hidden = 1 << 2    # No settings are shown for the event


class EventFlags:
    """Behavior flags of an event."""

    def __init__(self, value: EventFlag = EventFlag.Teleport):
        self._value = EventFlag(value)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> EventFlags:
        value = EventFlag(0)
        lookup = {flag.name.lower(): flag for flag in EventFlag}
        for name in names:
            flag = lookup.get(str(name).lower())
            if flag is None:
                raise DefinitionError(f"Unknown event flag '{name}'.")
            value |= flag
        return cls(value)

    @property
    def value(self) -> EventFlag:
        return self._value

    def has(self, flag: EventFlag) -> bool:
        return bool(self._value & flag)

    def has_teleport(self) -> bool:
        return self.has(EventFlag.Teleport)

    def has_in_combat(self) -> bool:
        return self.has(EventFlag.InCombat)

    def is_hidden(self) -> bool:
        return self.has(EventFlag.Hidden)

    def names(self) -> List[str]:
        return [flag.name for flag in EventFlag if self.has(flag)]

    def __eq__(self, other):
        if isinstance(other, EventFlags):
            return self._value == other._value
        return NotImplemented

    def __repr__(self):
        return f"EventFlags({'|'.join(self.names()) or 'None'})"


@dataclass(eq=False)
class EventDefinition:
    quest: Quest
    name: str = DEFAULT_NAME
    cooldown: float = 0
    priority: Priority = Priority.Default
    weight: int = DEFAULT_WEIGHT
    flags: EventFlags = field(default_factory=EventFlags)
    victim_conditions: List[ConditionSpec] = field(default_factory=list)
    assailant_conditions: List[ConditionSpec] = field(default_factory=list)
    remaining_cooldown: float = field(default=0, init=False)

    def __post_init__(self):
        if self.quest is None:
            raise DefinitionError(f"Event '{self.name}' has no quest to start.")
        if isinstance(self.weight, bool) or not isinstance(self.weight, int):
            raise DefinitionError(f"Event '{self.name}' weight must be an integer, got {self.weight!r}.")
        if not MIN_WEIGHT <= self.weight <= MAX_WEIGHT:
            raise DefinitionError(
                f"Event '{self.name}' weight {self.weight} is outside {MIN_WEIGHT}-{MAX_WEIGHT}."
            )

    @classmethod
    def from_quest(cls, quest: Quest, name: Optional[str] = None) -> EventDefinition:
        """Wraps an existing quest as an event with default settings."""
        if quest is None:
            raise DefinitionError("Cannot wrap a missing quest as an event.")
        return cls(quest=quest, name=name or quest.id or DEFAULT_NAME)

    def is_ready(self) -> bool:
        return self.remaining_cooldown <= 0

    def start_cooldown(self):
        self.remaining_cooldown = self.cooldown

    def advance_cooldown(self, elapsed: float) -> bool:
        """Counts the cooldown down by `elapsed`. Returns True if this made the event ready."""
        if self.remaining_cooldown <= 0:
            return False
        self.remaining_cooldown = max(0, self.remaining_cooldown - elapsed)
        return self.remaining_cooldown == 0

    def check_conditions(self, victim: Optional[Actor], assailants: Sequence[Actor]) -> bool:
        """
        All victim conditions must hold for the victim, and at least one assailant
        must satisfy every assailant condition (if there are any).
        """
        if not all(condition.check(victim) for condition in self.victim_conditions):
            return False
        if not self.assailant_conditions:
            return True
        return any(
            all(condition.check(assailant) for condition in self.assailant_conditions)
            for assailant in assailants
        )
