from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .log import AuditLog

if TYPE_CHECKING:
    from ..events.registry import EventRegistry


@dataclass
class TickReport:
    tick: int
    log: AuditLog


def step(registry: EventRegistry, elapsed: float, tick: int = 0, log: Optional[AuditLog] = None) -> TickReport:
    """
    Advances every event cooldown by `elapsed` time units.
    """
    log = log if log is not None else AuditLog()
    log.tick = tick

    became_ready = registry.advance_cooldowns(elapsed)
    for category, event in became_ready:
        log.add_entry(
            "resolution.cooldown.ready",
            category=category.name,
            event_name=event.name,
            delta=elapsed,
            reason=f"Event '{event.name}' ({category.name}) is off cooldown.",
        )
    if not became_ready:
        log.add_entry("resolution.tick", reason=f"Cooldowns advanced by {elapsed}.", delta=elapsed)

    return TickReport(tick=tick + 1, log=log)
