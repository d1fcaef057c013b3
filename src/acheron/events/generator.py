from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional, Sequence
import random

if TYPE_CHECKING:
    from ..world.model import Actor
    from .model import EventDefinition


def filter_candidates(
    events: Sequence[EventDefinition],
    victim: Optional[Actor],
    assailants: Sequence[Actor],
    in_combat: bool,
) -> List[EventDefinition]:
    """Keeps the events that are ready and whose conditions match, in storage order."""
    candidates = []
    for event in events:
        if in_combat and not event.flags.has_in_combat():
            continue
        if not event.is_ready():
            continue
        if event.check_conditions(victim, assailants):
            candidates.append(event)
    return candidates


def highest_priority_tier(candidates: Sequence[EventDefinition]) -> List[EventDefinition]:
    """Drops every candidate below the highest priority present."""
    if not candidates:
        return []
    top = max(event.priority for event in candidates)
    return [event for event in candidates if event.priority == top]


def weighted_draw(candidates: Sequence[EventDefinition], rng: random.Random) -> Optional[EventDefinition]:
    """
    Picks one candidate with probability weight / total weight.
    Returns None if there are no candidates or their weights sum to zero.
    """
    total_weight = sum(event.weight for event in candidates)
    if total_weight <= 0:
        return None

    roll = rng.randrange(total_weight)
    cumulative = 0
    for event in candidates:
        cumulative += event.weight
        if cumulative > roll:
            return event
    return None # unreachable while weights are non-negative


def select_event(
    events: Sequence[EventDefinition],
    victim: Optional[Actor],
    assailants: Sequence[Actor],
    in_combat: bool,
    rng: random.Random,
) -> Optional[EventDefinition]:
    """
    Selects the event to fire for a defeated victim. Does not touch cooldowns.
    """
    candidates = filter_candidates(events, victim, assailants, in_combat)
    tier = highest_priority_tier(candidates)
    return weighted_draw(tier, rng)
