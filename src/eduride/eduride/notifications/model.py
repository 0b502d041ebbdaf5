from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import DeliveryChannel, NotificationStatus, NotificationType


@dataclass(frozen=True)
class NotificationRecord:
    """Message queued for a guardian.

    The gate only creates it as PENDING; the delivery worker moves it to SENT or FAILED.
    """

    notification_id: int
    recipient_id: int
    student_id: Optional[int]
    bus_pk: Optional[int]
    type: NotificationType
    message: str
    channels: frozenset[DeliveryChannel]
    status: NotificationStatus = NotificationStatus.PENDING
    sent_via: frozenset[DeliveryChannel] = frozenset()
    attempts: int = 0
    created_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
