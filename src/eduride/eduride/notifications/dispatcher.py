from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..app_logger import get_logger
from ..buses.model import Bus
from ..common.datetime_utils import now_local
from ..core.enums import NotificationType
from ..users.model import UserRecord
from ..users.repository import UserRepository
from .repository import NotificationRepository

logger = get_logger(__name__)


class DeliveryQueue(Protocol):
    def enqueue(self, notification_id: int) -> None:
        raise NotImplementedError


class GuardianNotificationDispatcher:
    """Use case: tell a student's guardian about a scan without blocking the gate."""

    def __init__(self, users: UserRepository, notifications: NotificationRepository, delivery: DeliveryQueue):
        self._users = users
        self._notifications = notifications
        self._delivery = delivery

    def notify_guardian(
        self,
        student: UserRecord,
        bus: Optional[Bus],
        notification_type: NotificationType,
        message: str,
    ) -> bool:
        """Queue a notification; returns False when there is nobody to notify.

        No guardian, or a guardian with both SMS and email switched off, is a
        normal outcome, not an error.
        """

        if not student.parent_id:
            return False

        guardian = self._users.get_by_id(student.parent_id)
        if not guardian or not guardian.preferences.any_enabled:
            return False

        notification_id = self._notifications.create(
            recipient_id=guardian.user_id,
            student_id=student.user_id,
            bus_pk=bus.bus_pk if bus else None,
            type=notification_type,
            message=message,
            channels=guardian.preferences.channels(),
            created_at=now_local(),
        )
        self._delivery.enqueue(notification_id)
        logger.debug("queued %s notification %s for guardian %s", notification_type.value, notification_id, guardian.user_id)
        return True

    def broadcast(
        self,
        recipient_ids: Sequence[int],
        notification_type: NotificationType,
        message: str,
        bus: Optional[Bus] = None,
    ) -> list[int]:
        """Queue the same message (delay, emergency, announcement) for many users.

        Unknown users and users with every channel switched off are skipped.
        """

        queued: list[int] = []
        for recipient_id in dict.fromkeys(recipient_ids):
            recipient = self._users.get_by_id(recipient_id)
            if not recipient or not recipient.preferences.any_enabled:
                logger.info("broadcast skips user %s (unknown or opted out)", recipient_id)
                continue
            notification_id = self._notifications.create(
                recipient_id=recipient.user_id,
                student_id=None,
                bus_pk=bus.bus_pk if bus else None,
                type=notification_type,
                message=message,
                channels=recipient.preferences.channels(),
                created_at=now_local(),
            )
            self._delivery.enqueue(notification_id)
            queued.append(notification_id)

        logger.info("broadcast %s queued for %d of %d users", notification_type.value, len(queued), len(recipient_ids))
        return queued
