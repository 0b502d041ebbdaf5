from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles stored in the directory."""

    STUDENT = "student"
    PARENT = "parent"
    FACULTY = "faculty"
    ADMIN = "admin"


class PaymentStatus(str, Enum):
    """Bus fee status kept on the student record."""

    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"
    EXEMPT = "exempt"


class GateDecision(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


class ScanResult(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"
    DENIED = "denied"


class DoorAction(str, Enum):
    """Physical instruction returned to the boarding-gate hardware."""

    OPEN = "open"
    LOCKED = "locked"


class SessionStatus(str, Enum):
    ENTRY = "entry"
    COMPLETE = "complete"


class NotificationType(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"
    DELAY = "delay"
    EMERGENCY = "emergency"
    ANNOUNCEMENT = "announcement"
    FEE_PENDING = "fee_pending"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class DeliveryChannel(str, Enum):
    SMS = "sms"
    EMAIL = "email"
