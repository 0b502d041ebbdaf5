from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import timedelta
from typing import Optional, Sequence

from ..app_logger import get_logger
from ..common.datetime_utils import now_local
from ..core.constants import (
    DEFAULT_NOTIFY_MAX_ATTEMPTS,
    DEFAULT_NOTIFY_STALE_PENDING_MINUTES,
    DEFAULT_NOTIFY_WORKERS,
)
from ..core.enums import DeliveryChannel, NotificationStatus
from ..core.exceptions import DeliveryError
from ..users.repository import UserRepository
from .channels import NotificationChannel
from .repository import NotificationRepository

logger = get_logger(__name__)


class NotificationDeliveryService:
    """Fire-and-forget delivery of queued notifications.

    ``enqueue`` only schedules work; the outcome is written back to the record
    (SENT or FAILED) and never reaches the caller that queued it.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserRepository,
        channels: Sequence[NotificationChannel],
        *,
        executor: Optional[Executor] = None,
        max_workers: int = DEFAULT_NOTIFY_WORKERS,
        max_attempts: int = DEFAULT_NOTIFY_MAX_ATTEMPTS,
        stale_pending_minutes: int = DEFAULT_NOTIFY_STALE_PENDING_MINUTES,
    ):
        self._notifications = notifications
        self._users = users
        self._channels = list(channels)
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, int(max_workers)),
            thread_name_prefix="notify",
        )
        self._max_attempts = int(max_attempts)
        self._stale_pending = timedelta(minutes=max(0, int(stale_pending_minutes)))

    def enqueue(self, notification_id: int) -> None:
        future = self._executor.submit(self.send, notification_id)
        future.add_done_callback(self._log_crash)

    @staticmethod
    def _log_crash(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("notification delivery crashed: %s", exc, exc_info=exc)

    def send(self, notification_id: int) -> NotificationStatus:
        """Deliver one notification; any crash is recorded as FAILED for the retry sweep."""

        try:
            return self._deliver(notification_id)
        except Exception:
            logger.exception("delivery of notification %s crashed", notification_id)
            self._record_failure(notification_id)
            return NotificationStatus.FAILED

    def _record_failure(self, notification_id: int) -> None:
        try:
            self._notifications.mark_failed(notification_id)
        except Exception:
            logger.exception("could not mark notification %s as failed", notification_id)

    def _deliver(self, notification_id: int) -> NotificationStatus:
        notification = self._notifications.get_by_id(notification_id)
        if not notification:
            logger.error("notification %s not found", notification_id)
            return NotificationStatus.FAILED

        if notification.status == NotificationStatus.SENT:
            logger.info("notification %s already sent", notification_id)
            return NotificationStatus.SENT

        recipient = self._users.get_by_id(notification.recipient_id)
        if not recipient:
            logger.error("recipient %s of notification %s not found", notification.recipient_id, notification_id)
            self._notifications.mark_failed(notification_id)
            return NotificationStatus.FAILED

        sent_via: list[DeliveryChannel] = []
        for channel in self._channels:
            if channel.channel not in notification.channels:
                continue
            if not channel.is_configured or not channel.can_reach(recipient):
                continue
            try:
                channel.send(recipient, notification)
            except DeliveryError as e:
                logger.warning("notification %s via %s failed: %s", notification_id, channel.channel.value, e)
                continue
            except Exception:
                logger.exception("notification %s via %s crashed", notification_id, channel.channel.value)
                continue
            sent_via.append(channel.channel)

        if sent_via:
            self._notifications.mark_sent(notification_id, sent_via=sent_via, sent_at=now_local())
            logger.info(
                "notification %s sent via %s",
                notification_id,
                ", ".join(c.value for c in sent_via),
            )
            return NotificationStatus.SENT

        self._notifications.mark_failed(notification_id)
        logger.error("failed to send notification %s", notification_id)
        return NotificationStatus.FAILED

    def retry_failed(self, *, limit: int = 100) -> int:
        """Out-of-band sweep: send failed notifications again, synchronously.

        Pending records older than the stale cutoff are included; their worker
        died before it could write an outcome.
        """

        retryable = self._notifications.list_retryable(
            max_attempts=self._max_attempts,
            pending_before=now_local() - self._stale_pending,
            limit=int(limit),
        )
        logger.info("retrying %d notifications", len(retryable))
        for notification in retryable:
            self.send(notification.notification_id)
        return len(retryable)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
