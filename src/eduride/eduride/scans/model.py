from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..attendance.model import AttendanceSession
from ..core.enums import DoorAction, ScanResult
from ..users.model import LastScanSummary, UserRecord


@dataclass(frozen=True)
class ScanEvent:
    """A single RFID read reported by bus-mounted hardware (never persisted)."""

    tag_id: str
    bus_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class ScanOutcome:
    """Decision returned to the gate hardware."""

    result: ScanResult
    allow_entry: bool
    door_action: DoorAction
    message: str
    http_status: int
    student: UserRecord
    last_scan: LastScanSummary
    attendance: Optional[AttendanceSession] = None
    parent_notified: bool = False

    def to_response(self) -> dict:
        body = {
            "message": self.message,
            "allowEntry": self.allow_entry,
            "doorAction": self.door_action.value,
            "student": {
                "id": self.student.user_id,
                "name": self.student.full_name,
            },
            "parentNotified": self.parent_notified,
        }
        if self.result == ScanResult.DENIED:
            body["student"]["paymentStatus"] = self.student.payment_status_value
        else:
            body["student"]["lastScan"] = self.last_scan.to_dict()
        if self.attendance is not None:
            body["attendance"] = self.attendance.to_dict()
        return body
