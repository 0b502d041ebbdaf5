from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from ..core.enums import DeliveryChannel, NotificationStatus, NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, split_set
from .model import NotificationRecord
from .repository import NotificationRepository

_COLUMNS = """
    notification_id, recipient_id, student_id, bus_pk, type, message,
    channels, sent_via, status, attempts, created_at, sent_at
"""


def _join_channels(channels: Iterable[DeliveryChannel]) -> str:
    return ",".join(sorted(DeliveryChannel(c).value for c in channels))


def _row_to_notification(r: Dict[str, Any]) -> NotificationRecord:
    return NotificationRecord(
        notification_id=int(r["notification_id"]),
        recipient_id=int(r["recipient_id"]),
        student_id=r.get("student_id"),
        bus_pk=r.get("bus_pk"),
        type=NotificationType(r["type"]),
        message=r["message"],
        channels=frozenset(DeliveryChannel(c) for c in split_set(r.get("channels"))),
        status=NotificationStatus(r["status"]),
        sent_via=frozenset(DeliveryChannel(c) for c in split_set(r.get("sent_via"))),
        attempts=int(r.get("attempts") or 0),
        created_at=r.get("created_at"),
        sent_at=r.get("sent_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        recipient_id: int,
        student_id: Optional[int],
        bus_pk: Optional[int],
        type: NotificationType,
        message: str,
        channels: Iterable[DeliveryChannel],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(recipient_id, student_id, bus_pk, type, message, channels, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(recipient_id),
                    student_id,
                    bus_pk,
                    type.value,
                    message,
                    _join_channels(channels),
                    NotificationStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, notification_id: int) -> Optional[NotificationRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM notifications WHERE notification_id=%s",
                (int(notification_id),),
            )
            r = fetchone(cur)
            return _row_to_notification(r) if r else None

    def mark_sent(self, notification_id: int, *, sent_via: Iterable[DeliveryChannel], sent_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE notifications
                SET status=%s, sent_via=%s, sent_at=%s, attempts=attempts+1
                WHERE notification_id=%s
                """,
                (NotificationStatus.SENT.value, _join_channels(sent_via), sent_at, int(notification_id)),
            )
            return cur.rowcount > 0

    def mark_failed(self, notification_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE notifications
                SET status=%s, attempts=attempts+1
                WHERE notification_id=%s AND status<>%s
                """,
                (NotificationStatus.FAILED.value, int(notification_id), NotificationStatus.SENT.value),
            )
            return cur.rowcount > 0

    def list_retryable(
        self, *, max_attempts: int, pending_before: datetime, limit: int
    ) -> Sequence[NotificationRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM notifications
                WHERE attempts < %s
                  AND (status=%s OR (status=%s AND created_at < %s))
                ORDER BY created_at ASC
                LIMIT %s
                """,
                (
                    int(max_attempts),
                    NotificationStatus.FAILED.value,
                    NotificationStatus.PENDING.value,
                    pending_before,
                    int(limit),
                ),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]
