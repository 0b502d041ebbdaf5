from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.enums import DoorAction, PaymentStatus, Role, ScanResult
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import LastScanSummary, NotificationPreferences, UserRecord
from .repository import UserRepository

_USER_COLUMNS = """
    user_id, full_name, role, email, phone, rfid_tag, assigned_bus_pk, parent_id,
    payment_status, notify_sms, notify_email,
    last_scan_time, last_scan_bus_code, last_scan_result, last_scan_door_action, last_scan_message,
    is_active
"""


def _payment_status(value: Any):
    try:
        return PaymentStatus(value)
    except ValueError:
        return str(value)


def _row_to_user(row: Dict[str, Any]) -> UserRecord:
    last_scan = None
    if row.get("last_scan_time") and row.get("last_scan_result"):
        last_scan = LastScanSummary(
            time=row["last_scan_time"],
            bus_id=row.get("last_scan_bus_code") or "",
            result=ScanResult(row["last_scan_result"]),
            door_action=DoorAction(row.get("last_scan_door_action") or DoorAction.LOCKED.value),
            message=row.get("last_scan_message") or "",
        )

    return UserRecord(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        role=Role(row["role"]),
        email=row.get("email"),
        phone=row.get("phone"),
        rfid_tag=row.get("rfid_tag"),
        assigned_bus_pk=row.get("assigned_bus_pk"),
        parent_id=row.get("parent_id"),
        payment_status=_payment_status(row.get("payment_status")),
        preferences=NotificationPreferences(
            sms=bool(row.get("notify_sms", True)),
            email=bool(row.get("notify_email", True)),
        ),
        last_scan=last_scan,
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_student_by_tag(self, rfid_tag: str) -> Optional[UserRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE rfid_tag=%s AND role=%s AND is_active=1
                """,
                (rfid_tag, Role.STUDENT.value),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def save_last_scan(self, user_id: int, summary: LastScanSummary) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET last_scan_time=%s, last_scan_bus_code=%s, last_scan_result=%s,
                    last_scan_door_action=%s, last_scan_message=%s
                WHERE user_id=%s
                """,
                (
                    summary.time,
                    summary.bus_id,
                    summary.result.value,
                    summary.door_action.value,
                    summary.message,
                    int(user_id),
                ),
            )
            return cur.rowcount > 0
