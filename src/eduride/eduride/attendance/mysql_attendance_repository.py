from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..buses.model import GeoPoint
from ..core.enums import SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceReportRow, AttendanceSession
from .repository import AttendanceRepository

_SESSION_COLUMNS = """
    s.session_id, s.student_id, s.bus_pk, s.bus_code, s.rfid_tag, s.calendar_day,
    s.entry_time, s.exit_time, s.entry_lng, s.entry_lat, s.exit_lng, s.exit_lat, s.status
"""


def _row_to_session(r: Dict[str, Any]) -> AttendanceSession:
    exit_location = None
    if r.get("exit_lng") is not None and r.get("exit_lat") is not None:
        exit_location = GeoPoint(lng=float(r["exit_lng"]), lat=float(r["exit_lat"]))

    return AttendanceSession(
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        bus_pk=int(r["bus_pk"]),
        bus_code=r["bus_code"],
        rfid_tag=r["rfid_tag"],
        calendar_day=r["calendar_day"],
        entry_time=r["entry_time"],
        entry_location=GeoPoint(lng=float(r.get("entry_lng") or 0.0), lat=float(r.get("entry_lat") or 0.0)),
        status=SessionStatus(r["status"]),
        exit_time=r.get("exit_time"),
        exit_location=exit_location,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_open_session(self, *, student_id: int, bus_pk: int, calendar_day: date) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions s
                WHERE s.student_id=%s AND s.bus_pk=%s AND s.calendar_day=%s AND s.status=%s
                """,
                (int(student_id), int(bus_pk), calendar_day, SessionStatus.ENTRY.value),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def create(self, session: AttendanceSession) -> int:
        # uq_open_session rejects a second open row for the same student/bus/day.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(
                    student_id, bus_pk, bus_code, rfid_tag, calendar_day,
                    entry_time, entry_lng, entry_lat, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    session.student_id,
                    session.bus_pk,
                    session.bus_code,
                    session.rfid_tag,
                    session.calendar_day,
                    session.entry_time,
                    session.entry_location.lng,
                    session.entry_location.lat,
                    SessionStatus.ENTRY.value,
                ),
            )
            return int(cur.lastrowid)

    def complete(self, session: AttendanceSession) -> bool:
        exit_location = session.exit_location or GeoPoint()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET exit_time=%s, exit_lng=%s, exit_lat=%s, status=%s
                WHERE session_id=%s AND status=%s
                """,
                (
                    session.exit_time,
                    exit_location.lng,
                    exit_location.lat,
                    SessionStatus.COMPLETE.value,
                    int(session.session_id),
                    SessionStatus.ENTRY.value,
                ),
            )
            return cur.rowcount > 0

    def get_report_rows(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        student_id: Optional[int] = None,
        bus_pk: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["1=1"]
        params: list[object] = []

        if start_date is not None:
            clauses.append("s.calendar_day >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("s.calendar_day <= %s")
            params.append(end_date)
        if student_id is not None:
            clauses.append("s.student_id=%s")
            params.append(int(student_id))
        if bus_pk is not None:
            clauses.append("s.bus_pk=%s")
            params.append(int(bus_pk))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}, u.full_name AS student_name, b.name AS bus_name
                FROM attendance_sessions s
                JOIN users u ON u.user_id = s.student_id
                JOIN buses b ON b.bus_pk = s.bus_pk
                WHERE {where}
                ORDER BY s.calendar_day DESC, s.entry_time DESC
                """,
                tuple(params),
            )
            rows = fetchall(cur)

            return [
                AttendanceReportRow(
                    session=_row_to_session(r),
                    student_name=r["student_name"],
                    bus_name=r["bus_name"],
                )
                for r in rows
            ]
