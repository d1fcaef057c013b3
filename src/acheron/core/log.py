from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass
class AuditEntry:
    type: str
    tick: int
    category: Optional[str] = None
    event_name: Optional[str] = None
    delta: float = 0.0
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class AuditLog:
    def __init__(self):
        self.entries: List[AuditEntry] = []
        self.tick: int = 0

    def add_entry(
        self,
        type: str,
        tick: Optional[int] = None,
        category: Optional[str] = None,
        event_name: Optional[str] = None,
        delta: float = 0.0,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        entry = AuditEntry(
            type=type,
            tick=self.tick if tick is None else tick,
            category=category,
            event_name=event_name,
            delta=delta,
            reason=reason,
            details=details or {},
        )
        self.entries.append(entry)

    def of_type(self, type: str) -> List[AuditEntry]:
        return [entry for entry in self.entries if entry.type == type]
