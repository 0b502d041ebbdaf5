from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import OutboxEvent
from .repository import EventRepository


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        event_type: str,
        student_id: Optional[int],
        bus_code: Optional[str],
        payload: dict[str, Any],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO scan_events(event_type, student_id, bus_code, payload, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (event_type, student_id, bus_code, json.dumps(payload, default=str), created_at),
            )
            return int(cur.lastrowid)

    def list_after(self, *, after_id: int, limit: int) -> Sequence[OutboxEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, event_type, student_id, bus_code, payload, created_at
                FROM scan_events
                WHERE event_id > %s
                ORDER BY event_id ASC
                LIMIT %s
                """,
                (int(after_id), int(limit)),
            )
            return [
                OutboxEvent(
                    event_id=int(r["event_id"]),
                    event_type=r["event_type"],
                    student_id=r.get("student_id"),
                    bus_code=r.get("bus_code"),
                    created_at=r["created_at"],
                    payload=json.loads(r["payload"] or "{}"),
                )
                for r in fetchall(cur)
            ]
