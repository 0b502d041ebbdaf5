from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceReportRow, AttendanceSession


class AttendanceRepository(Protocol):
    def find_open_session(self, *, student_id: int, bus_pk: int, calendar_day: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create(self, session: AttendanceSession) -> int:
        """Insert an open session.

        Raises DuplicateOpenSessionError when an open session already exists for
        the same student, bus and day.
        """

        raise NotImplementedError

    def complete(self, session: AttendanceSession) -> bool:
        """Close a session that is still open; False if it was closed concurrently."""

        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        student_id: Optional[int] = None,
        bus_pk: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError
