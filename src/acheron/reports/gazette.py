from __future__ import annotations
from typing import TYPE_CHECKING

from ..core.log import AuditLog

if TYPE_CHECKING:
    from ..events.registry import Category, EventRegistry


def generate_gazette(log: AuditLog, tick: int) -> str:
    """
    Generates a concise report from an AuditLog.
    """
    lines = [f"== Tick {tick} Report =="]
    for entry in log.entries:
        if entry.tick != tick:
            continue
        reason = entry.reason or ""
        if reason:
            lines.append(f"[{entry.type}] {reason}")
        else:
            lines.append(f"[{entry.type}]")
    return "\n".join(lines) + "\n"


def render_event_table(registry: EventRegistry, category: Category, include_hidden: bool = True) -> str:
    """Renders the events of one category as a fixed-width table."""
    events = [e for e in registry.events(category) if include_hidden or not e.flags.is_hidden()]
    lines = [f"--- {category.name} ({len(events)} events) ---"]
    if not events:
        lines.append("No events registered.")
        return "\n".join(lines) + "\n"

    name_width = max(len("Name"), max(len(e.name) for e in events))
    lines.append(f"{'Name':<{name_width}}  Weight  Priority       Cooldown  Flags")
    for event in events:
        cooldown = f"{event.remaining_cooldown:g}/{event.cooldown:g}"
        lines.append(
            f"{event.name:<{name_width}}  {event.weight:>6}  {event.priority.name:<13}  "
            f"{cooldown:>8}  {','.join(event.flags.names()) or '-'}"
        )
    return "\n".join(lines) + "\n"
