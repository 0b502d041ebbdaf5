from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..buses.model import GeoPoint
from ..core.enums import ScanResult, SessionStatus


@dataclass(frozen=True)
class AttendanceSession:
    """One boarding round trip of a student on a bus within a calendar day.

    Open while ``status`` is ENTRY; completed exactly once by the next allowed scan.
    """

    session_id: Optional[int]
    student_id: int
    bus_pk: int
    bus_code: str
    rfid_tag: str
    calendar_day: date
    entry_time: datetime
    entry_location: GeoPoint
    status: SessionStatus = SessionStatus.ENTRY
    exit_time: Optional[datetime] = None
    exit_location: Optional[GeoPoint] = None

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.ENTRY

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "studentId": self.student_id,
            "busId": self.bus_code,
            "rfidTag": self.rfid_tag,
            "date": self.calendar_day.isoformat(),
            "entryTime": self.entry_time.isoformat(),
            "exitTime": self.exit_time.isoformat() if self.exit_time else None,
            "entryLocation": self.entry_location.to_dict(),
            "exitLocation": self.exit_location.to_dict() if self.exit_location else None,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class SessionResolution:
    """What an allowed scan means for the student's sessions: open one, or close one."""

    kind: ScanResult
    session: AttendanceSession

    @property
    def reference_time(self) -> datetime:
        if self.kind == ScanResult.EXIT and self.session.exit_time is not None:
            return self.session.exit_time
        return self.session.entry_time


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for the attendance listings (joined with student and bus names)."""

    session: AttendanceSession
    student_name: str
    bus_name: str

    def to_dict(self) -> dict:
        out = self.session.to_dict()
        out["studentName"] = self.student_name
        out["busName"] = self.bus_name
        return out
