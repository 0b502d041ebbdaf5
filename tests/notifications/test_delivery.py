from __future__ import annotations

from concurrent.futures import Executor, Future
from datetime import datetime, timedelta

import pytest

from src.eduride.eduride.core.enums import DeliveryChannel, NotificationStatus, NotificationType
from src.eduride.eduride.core.exceptions import DeliveryError, PersistenceError
from src.eduride.eduride.notifications.channels import EmailChannel, email_subject
from src.eduride.eduride.notifications.delivery import NotificationDeliveryService
from tests.fakes import InMemoryNotifications, InMemoryUsers, make_guardian


class InlineExecutor(Executor):
    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class FakeChannel:
    def __init__(self, channel: DeliveryChannel, *, fail: bool = False, configured: bool = True):
        self.channel = channel
        self.is_configured = configured
        self.fail = fail
        self.sent = []

    def can_reach(self, recipient):
        return True

    def send(self, recipient, notification):
        if self.fail:
            raise DeliveryError(f"{self.channel.value} gateway down")
        self.sent.append((recipient.user_id, notification.notification_id))


def queue_one(notifications, channels=(DeliveryChannel.SMS, DeliveryChannel.EMAIL), *, created_at=None) -> int:
    return notifications.create(
        recipient_id=20,
        student_id=10,
        bus_pk=1,
        type=NotificationType.ENTRY,
        message="Your child boarded",
        channels=channels,
        created_at=created_at or datetime.now(),
    )


def make_service(notifications, *channels, max_attempts=5, users=None):
    return NotificationDeliveryService(
        notifications,
        users or InMemoryUsers(make_guardian()),
        channels,
        executor=InlineExecutor(),
        max_attempts=max_attempts,
    )


def test_sent_through_every_requested_channel():
    notifications = InMemoryNotifications()
    sms, email = FakeChannel(DeliveryChannel.SMS), FakeChannel(DeliveryChannel.EMAIL)
    nid = queue_one(notifications)

    status = make_service(notifications, sms, email).send(nid)

    assert status == NotificationStatus.SENT
    record = notifications.get_by_id(nid)
    assert record.sent_via == {DeliveryChannel.SMS, DeliveryChannel.EMAIL}
    assert record.sent_at is not None
    assert sms.sent == [(20, nid)] and email.sent == [(20, nid)]


def test_channels_not_captured_on_the_record_are_skipped():
    notifications = InMemoryNotifications()
    sms, email = FakeChannel(DeliveryChannel.SMS), FakeChannel(DeliveryChannel.EMAIL)
    nid = queue_one(notifications, channels=[DeliveryChannel.EMAIL])

    make_service(notifications, sms, email).send(nid)

    assert sms.sent == []
    assert notifications.get_by_id(nid).sent_via == {DeliveryChannel.EMAIL}


def test_one_channel_failing_still_counts_as_sent():
    notifications = InMemoryNotifications()
    nid = queue_one(notifications)

    status = make_service(
        notifications,
        FakeChannel(DeliveryChannel.SMS, fail=True),
        FakeChannel(DeliveryChannel.EMAIL),
    ).send(nid)

    assert status == NotificationStatus.SENT
    assert notifications.get_by_id(nid).sent_via == {DeliveryChannel.EMAIL}


def test_all_channels_failing_marks_failed():
    notifications = InMemoryNotifications()
    nid = queue_one(notifications)

    status = make_service(
        notifications,
        FakeChannel(DeliveryChannel.SMS, fail=True),
        FakeChannel(DeliveryChannel.EMAIL, configured=False),
    ).send(nid)

    assert status == NotificationStatus.FAILED
    record = notifications.get_by_id(nid)
    assert record.status == NotificationStatus.FAILED
    assert record.attempts == 1


def test_already_sent_is_not_sent_twice():
    notifications = InMemoryNotifications()
    sms = FakeChannel(DeliveryChannel.SMS)
    nid = queue_one(notifications, channels=[DeliveryChannel.SMS])
    service = make_service(notifications, sms)

    service.send(nid)
    service.send(nid)

    assert len(sms.sent) == 1


def test_missing_recipient_marks_failed():
    notifications = InMemoryNotifications()
    nid = notifications.create(
        recipient_id=999,
        student_id=10,
        bus_pk=1,
        type=NotificationType.EXIT,
        message="x",
        channels=[DeliveryChannel.SMS],
        created_at=datetime(2026, 2, 1, 9, 0),
    )

    status = make_service(notifications, FakeChannel(DeliveryChannel.SMS)).send(nid)

    assert status == NotificationStatus.FAILED


def test_enqueue_runs_delivery_on_the_executor():
    notifications = InMemoryNotifications()
    sms = FakeChannel(DeliveryChannel.SMS)
    nid = queue_one(notifications, channels=[DeliveryChannel.SMS])

    make_service(notifications, sms).enqueue(nid)

    assert notifications.get_by_id(nid).status == NotificationStatus.SENT


def test_retry_failed_resends_until_attempts_exhausted():
    notifications = InMemoryNotifications()
    sms = FakeChannel(DeliveryChannel.SMS, fail=True)
    nid = queue_one(notifications, channels=[DeliveryChannel.SMS])
    service = make_service(notifications, sms, max_attempts=2)

    service.send(nid)
    assert service.retry_failed() == 1
    assert notifications.get_by_id(nid).attempts == 2
    assert service.retry_failed() == 0

    sms.fail = False
    other = queue_one(notifications, channels=[DeliveryChannel.SMS])
    service.send(other)
    assert notifications.get_by_id(other).status == NotificationStatus.SENT


def test_retry_failed_recovers_when_channel_is_back():
    notifications = InMemoryNotifications()
    sms = FakeChannel(DeliveryChannel.SMS, fail=True)
    nid = queue_one(notifications, channels=[DeliveryChannel.SMS])
    service = make_service(notifications, sms)

    service.send(nid)
    sms.fail = False
    service.retry_failed(limit=10)

    assert notifications.get_by_id(nid).status == NotificationStatus.SENT


@pytest.mark.parametrize(
    "notification_type,subject",
    [
        (NotificationType.ENTRY, "EduRide Notification: Bus Entry"),
        (NotificationType.FEE_PENDING, "EduRide Notification: Bus Fee Pending"),
        (NotificationType.ANNOUNCEMENT, "EduRide Notification: Notification"),
    ],
)
def test_email_subject(notification_type, subject):
    assert email_subject(notification_type) == subject


def test_email_message_escapes_html_body():
    notifications = InMemoryNotifications()
    nid = notifications.create(
        recipient_id=20,
        student_id=10,
        bus_pk=1,
        type=NotificationType.EXIT,
        message="<b>exited</b>",
        channels=[DeliveryChannel.EMAIL],
        created_at=datetime(2026, 2, 1, 9, 0),
    )
    channel = EmailChannel(host="smtp.local", username="u", password="p", sender="bus@eduride.local")

    msg = channel.build_message(make_guardian(), notifications.get_by_id(nid))

    assert msg["To"] == "guardian@example.com"
    assert msg["Subject"] == "EduRide Notification: Bus Exit"
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "&lt;b&gt;exited&lt;/b&gt;" in html


def test_unconfigured_channels():
    assert EmailChannel(host="").is_configured is False


class UnreachableDirectory(InMemoryUsers):
    def get_by_id(self, user_id):
        raise PersistenceError("directory unavailable")


def test_crash_during_delivery_is_recorded_as_failed():
    notifications = InMemoryNotifications()
    nid = queue_one(notifications, channels=[DeliveryChannel.SMS])
    service = make_service(notifications, FakeChannel(DeliveryChannel.SMS), users=UnreachableDirectory())

    service.enqueue(nid)

    record = notifications.get_by_id(nid)
    assert record.status == NotificationStatus.FAILED
    assert record.attempts == 1


def test_crashed_delivery_is_picked_up_by_the_sweep():
    notifications = InMemoryNotifications()
    sms = FakeChannel(DeliveryChannel.SMS)
    nid = queue_one(notifications, channels=[DeliveryChannel.SMS])
    make_service(notifications, sms, users=UnreachableDirectory()).send(nid)

    assert make_service(notifications, sms).retry_failed() == 1
    assert notifications.get_by_id(nid).status == NotificationStatus.SENT


class ExplodingChannel(FakeChannel):
    def send(self, recipient, notification):
        raise ValueError("unexpected gateway payload")


def test_unexpected_channel_error_does_not_stop_other_channels():
    notifications = InMemoryNotifications()
    email = FakeChannel(DeliveryChannel.EMAIL)
    nid = queue_one(notifications)

    status = make_service(notifications, ExplodingChannel(DeliveryChannel.SMS), email).send(nid)

    assert status == NotificationStatus.SENT
    assert notifications.get_by_id(nid).sent_via == {DeliveryChannel.EMAIL}


class ReadOnlyNotifications(InMemoryNotifications):
    def mark_failed(self, notification_id):
        raise PersistenceError("notifications table is read-only")


def test_failure_to_record_the_failure_is_only_logged():
    notifications = ReadOnlyNotifications()
    nid = queue_one(notifications, channels=[DeliveryChannel.SMS])
    service = make_service(notifications, FakeChannel(DeliveryChannel.SMS), users=UnreachableDirectory())

    assert service.send(nid) == NotificationStatus.FAILED
    assert notifications.get_by_id(nid).status == NotificationStatus.PENDING


def test_sweep_picks_up_stale_pending_but_not_fresh_ones():
    notifications = InMemoryNotifications()
    sms = FakeChannel(DeliveryChannel.SMS)
    stale = queue_one(notifications, channels=[DeliveryChannel.SMS], created_at=datetime.now() - timedelta(hours=1))
    fresh = queue_one(notifications, channels=[DeliveryChannel.SMS])

    retried = make_service(notifications, sms).retry_failed()

    assert retried == 1
    assert notifications.get_by_id(stale).status == NotificationStatus.SENT
    assert notifications.get_by_id(fresh).status == NotificationStatus.PENDING
