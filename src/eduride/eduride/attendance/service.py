from __future__ import annotations

from datetime import date
from typing import Optional

from ..buses.repository import BusRepository
from ..common.datetime_utils import now_local
from ..core.exceptions import NotFoundError, ValidationError
from .repository import AttendanceRepository


class AttendanceQueryService:
    """Use case: list recorded sessions for students, buses and days."""

    def __init__(self, attendance: AttendanceRepository, buses: BusRepository):
        self._attendance = attendance
        self._buses = buses

    def for_student(self, student_id: int, *, start: Optional[date] = None, end: Optional[date] = None) -> list[dict]:
        if (start is None) != (end is None):
            # Same as the report: a half-open range is ignored rather than guessed.
            start = end = None
        self._check_range(start, end)
        rows = self._attendance.get_report_rows(start_date=start, end_date=end, student_id=int(student_id))
        return [r.to_dict() for r in rows]

    def for_bus(self, bus_code: str, *, day: Optional[date] = None) -> list[dict]:
        bus = self._buses.get_by_code(bus_code)
        if not bus:
            raise NotFoundError("Bus not found")
        rows = self._attendance.get_report_rows(start_date=day, end_date=day, bus_pk=bus.bus_pk)
        return [r.to_dict() for r in rows]

    def for_day(self, day: Optional[date] = None) -> list[dict]:
        day = day or now_local().date()
        rows = self._attendance.get_report_rows(start_date=day, end_date=day)
        return [r.to_dict() for r in rows]

    def report(self, *, start: Optional[date], end: Optional[date], bus_code: Optional[str] = None) -> list[dict]:
        if start is None or end is None:
            raise ValidationError("Start date and end date are required")
        self._check_range(start, end)

        bus_pk = None
        if bus_code:
            # An unknown bus filter is ignored and the whole range is returned.
            bus = self._buses.get_by_code(bus_code)
            if bus:
                bus_pk = bus.bus_pk

        rows = self._attendance.get_report_rows(start_date=start, end_date=end, bus_pk=bus_pk)
        return [r.to_dict() for r in rows]

    @staticmethod
    def _check_range(start: Optional[date], end: Optional[date]) -> None:
        if start is not None and end is not None and end < start:
            raise ValidationError("End date must not be before start date")
