from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..core.enums import DeliveryChannel, DoorAction, PaymentStatus, Role, ScanResult


@dataclass(frozen=True)
class LastScanSummary:
    """Most recent scan outcome for a student.

    A single slot overwritten on every scan; it is a cache, not an audit trail.
    """

    time: datetime
    bus_id: str
    result: ScanResult
    door_action: DoorAction
    message: str

    def to_dict(self) -> dict:
        return {
            "time": self.time.isoformat(),
            "busId": self.bus_id,
            "result": self.result.value,
            "doorAction": self.door_action.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class NotificationPreferences:
    sms: bool = True
    email: bool = True

    @property
    def any_enabled(self) -> bool:
        return self.sms or self.email

    def channels(self) -> frozenset[DeliveryChannel]:
        out = set()
        if self.sms:
            out.add(DeliveryChannel.SMS)
        if self.email:
            out.add(DeliveryChannel.EMAIL)
        return frozenset(out)


@dataclass(frozen=True)
class UserRecord:
    """Directory entry for a student, guardian or staff member.

    Only the fields the gate needs are loaded; profile management lives elsewhere.
    """

    user_id: int
    full_name: str
    role: Role
    email: Optional[str] = None
    phone: Optional[str] = None
    rfid_tag: Optional[str] = None
    assigned_bus_pk: Optional[int] = None
    parent_id: Optional[int] = None
    # Unknown values coming from the directory are kept as raw strings and denied by the fee gate.
    payment_status: Union[PaymentStatus, str] = PaymentStatus.PENDING
    preferences: NotificationPreferences = field(default_factory=NotificationPreferences)
    last_scan: Optional[LastScanSummary] = None
    is_active: bool = True

    @property
    def payment_status_value(self) -> str:
        status = self.payment_status
        return status.value if isinstance(status, PaymentStatus) else str(status)
