from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from .model import OutboxEvent


class EventRepository(Protocol):
    def append(
        self,
        *,
        event_type: str,
        student_id: Optional[int],
        bus_code: Optional[str],
        payload: dict[str, Any],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_after(self, *, after_id: int, limit: int) -> Sequence[OutboxEvent]:
        raise NotImplementedError
