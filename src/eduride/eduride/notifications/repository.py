from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import DeliveryChannel, NotificationType
from .model import NotificationRecord


class NotificationRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, notification_id: int) -> Optional[NotificationRecord]:
        raise NotImplementedError

    def mark_sent(self, notification_id: int, *, sent_via: Iterable[DeliveryChannel], sent_at: datetime) -> bool:
        raise NotImplementedError

    def mark_failed(self, notification_id: int) -> bool:
        """Record a failed attempt; the record stays eligible for the retry sweep."""

        raise NotImplementedError

    def list_retryable(
        self, *, max_attempts: int, pending_before: datetime, limit: int
    ) -> Sequence[NotificationRecord]:
        """Failed records under ``max_attempts`` plus pending ones created before ``pending_before``."""

        raise NotImplementedError
