from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class OutboxEvent:
    """Scan outcome written for real-time subscribers (dashboards) to pick up."""

    event_id: int
    event_type: str
    student_id: Optional[int]
    bus_code: Optional[str]
    created_at: datetime
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "type": self.event_type,
            "studentId": self.student_id,
            "busId": self.bus_code,
            "createdAt": self.created_at.isoformat(),
            "payload": self.payload,
        }
