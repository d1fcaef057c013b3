from __future__ import annotations
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple
import logging
import math
import random
import threading

from ..io.save_load import load_weights_from_json, save_weights_to_json, weights_to_dict
from ..world.model import FormIndex
from .generator import select_event
from .load import load_definition_directory
from .model import EventDefinition, MAX_WEIGHT, MIN_WEIGHT

if TYPE_CHECKING:
    from ..core.log import AuditLog
    from ..world.model import Actor, Quest

logger = logging.getLogger(__name__)


class Category(Enum):
    Hostile = 0   # Player lost against a hostile actor
    Follower = 1  # Player lost but a follower was victorious
    Civilian = 2  # Player lost but a non hostile civilian was victorious
    Guard = 3     # Player lost against a guard
    NPC = 4       # Player was not involved in the encounter

    @classmethod
    def from_name(cls, name: str) -> Optional[Category]:
        for category in cls:
            if category.name.lower() == str(name).lower():
                return category
        return None


class EventNotFoundError(LookupError):
    """Raised when no event with the given name exists in a category."""
    pass


class EventRegistry:
    """
    Holds the selectable events of every category.

    All operations are serialized on one lock, so a selection (filter, tier,
    draw and cooldown start) is atomic with respect to other selections,
    weight changes and saves.
    """

    def __init__(
        self,
        forms: Optional[FormIndex] = None,
        definitions_dir: Optional[Path] = None,
        weights_path: Optional[Path] = None,
        rng: Optional[random.Random] = None,
        log: Optional[AuditLog] = None,
    ):
        self.forms = forms if forms is not None else FormIndex()
        self.definitions_dir = Path(definitions_dir) if definitions_dir else None
        self.weights_path = Path(weights_path) if weights_path else None
        self.rng = rng if rng is not None else random.Random()
        self.log = log
        self._lock = threading.RLock()
        self._events: Dict[Category, List[EventDefinition]] = {category: [] for category in Category}
        self._dirty = False

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def categories(self) -> List[Category]:
        return list(Category)

    def initialize(self):
        """
        (Re)loads all events: definition files first, then built-in quest events,
        then persisted weight overrides on top.
        """
        with self._lock:
            self._events = {category: [] for category in Category}

            if self.definitions_dir is not None:
                for category, events in load_definition_directory(self.definitions_dir, self.forms).items():
                    self._events[category].extend(events)

            for category_name, quest_ids in self.forms.builtin_events.items():
                category = Category.from_name(category_name)
                if category is None:
                    logger.warning("Skipping built-in events for unknown category '%s'", category_name)
                    continue
                for quest_id in quest_ids:
                    quest = self.forms.lookup("quest", quest_id)
                    if quest is None:
                        logger.warning("Skipping built-in event for unknown quest '%s'", quest_id)
                        continue
                    self._events[category].append(EventDefinition.from_quest(quest))

            for category, events in self._events.items():
                seen = set()
                for event in events:
                    if event.name in seen:
                        logger.warning(
                            "Duplicate event name '%s' in %s; only the first is addressable by name.",
                            event.name, category.name,
                        )
                    seen.add(event.name)

            if self.weights_path is not None:
                self._apply_weight_overrides(load_weights_from_json(self.weights_path))
            self._dirty = False

            logger.info(
                "Event registry initialized: %s",
                ", ".join(f"{c.name}={len(self._events[c])}" for c in Category),
            )

    def _apply_weight_overrides(self, overrides: Dict[str, Dict[str, int]]):
        for category_name, weights in overrides.items():
            category = Category.from_name(category_name)
            if category is None:
                logger.debug("Ignoring stored weights for unknown category '%s'", category_name)
                continue
            for name, weight in weights.items():
                event = self._find(name, category)
                if event is None:
                    logger.debug("Ignoring stored weight for unknown event '%s' in %s", name, category.name)
                    continue
                event.weight = _clamp_weight(weight)

    def register(self, category: Category, event: EventDefinition) -> EventDefinition:
        with self._lock:
            self._events[category].append(event)
        return event

    def events(self, category: Category) -> List[EventDefinition]:
        with self._lock:
            return list(self._events[category])

    def _find(self, name: str, category: Category) -> Optional[EventDefinition]:
        for event in self._events[category]:
            if event.name == name:
                return event
        return None

    def find(self, name: str, category: Category) -> Optional[EventDefinition]:
        """Returns the first event named `name` in `category`, or None."""
        with self._lock:
            return self._find(name, category)

    def select_quest(
        self,
        category: Category,
        victim: Optional[Actor],
        assailants: Sequence[Actor],
        in_combat: bool,
    ) -> Optional[Quest]:
        """
        Looks up the event to start for a defeated victim and puts it on cooldown.
        Returns the event's quest, or None if no event is eligible.
        """
        with self._lock:
            event = select_event(self._events[category], victim, assailants, in_combat, self.rng)
            if event is None:
                logger.debug("No %s event eligible (in_combat=%s)", category.name, in_combat)
                if self.log is not None:
                    self.log.add_entry(
                        "resolution.none",
                        category=category.name,
                        reason=f"No eligible {category.name} event.",
                        details={"in_combat": in_combat},
                    )
                return None

            event.start_cooldown()
            logger.debug("Selected %s event '%s' (quest %s)", category.name, event.name, event.quest.id)
            if self.log is not None:
                self.log.add_entry(
                    "resolution.selected",
                    category=category.name,
                    event_name=event.name,
                    reason=f"Event '{event.name}' selected for {category.name}.",
                    details={"quest": event.quest.id, "priority": event.priority.name, "weight": event.weight},
                )
            return event.quest

    def get_events(self, category: Category, include_hidden: bool = True) -> List[Tuple[str, int]]:
        """Returns (name, weight) for every event of `category`, in storage order."""
        with self._lock:
            return [
                (event.name, event.weight)
                for event in self._events[category]
                if include_hidden or not event.flags.is_hidden()
            ]

    def set_event_weight(self, name: str, category: Category, weight: int) -> int:
        """
        Sets the weight of the first event named `name` in `category`.
        The weight is clamped to 0-100; the clamped value is returned.
        Non-finite weights raise ValueError.
        """
        with self._lock:
            event = self._find(name, category)
            if event is None:
                raise EventNotFoundError(f"No event named '{name}' in category {category.name}.")
            new_weight = _clamp_weight(weight)
            old_weight = event.weight
            event.weight = new_weight
            self._dirty = True
            if self.log is not None:
                self.log.add_entry(
                    "resolution.weight",
                    category=category.name,
                    event_name=name,
                    delta=new_weight - old_weight,
                    reason=f"Weight of '{name}' changed from {old_weight} to {new_weight}.",
                )
            return new_weight

    def save(self):
        """Persists the current weights of all events."""
        with self._lock:
            if self.weights_path is None:
                logger.debug("No weight store configured; skipping save.")
                return
            save_weights_to_json(weights_to_dict(self), self.weights_path)
            self._dirty = False
            logger.info("Saved event weights to %s", self.weights_path)

    def advance_cooldowns(self, elapsed: float) -> List[Tuple[Category, EventDefinition]]:
        """Counts every cooldown down by `elapsed`. Returns the events that became ready."""
        if elapsed < 0:
            raise ValueError(f"Elapsed time must not be negative, got {elapsed}.")
        ready = []
        with self._lock:
            for category, events in self._events.items():
                for event in events:
                    if event.advance_cooldown(elapsed):
                        ready.append((category, event))
        return ready


def _clamp_weight(weight) -> int:
    if not math.isfinite(weight):
        raise ValueError(f"Weight must be a finite number, got {weight!r}.")
    return max(MIN_WEIGHT, min(MAX_WEIGHT, int(weight)))
