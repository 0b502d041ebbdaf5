from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceQueryService
from .attendance.tracker import AttendanceSessionTracker
from .buses.mysql_bus_repository import MySQLBusRepository
from .core.constants import (
    DEFAULT_NOTIFY_MAX_ATTEMPTS,
    DEFAULT_NOTIFY_STALE_PENDING_MINUTES,
    DEFAULT_NOTIFY_WORKERS,
    DEFAULT_SESSION_RESOLVE_ATTEMPTS,
)
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventRepository
from .fees.gate import FeeGate
from .notifications.channels import EmailChannel, SmsChannel
from .notifications.delivery import NotificationDeliveryService
from .notifications.dispatcher import GuardianNotificationDispatcher
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .scans.service import AccessDecisionService
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    buses_repo: MySQLBusRepository
    attendance_repo: MySQLAttendanceRepository
    notifications_repo: MySQLNotificationRepository
    events_repo: MySQLEventRepository

    fee_gate: FeeGate
    tracker: AttendanceSessionTracker
    delivery: NotificationDeliveryService
    dispatcher: GuardianNotificationDispatcher
    access_service: AccessDecisionService
    attendance_service: AttendanceQueryService


def build_container(settings: ModuleType) -> Container:
    db_config = dict(getattr(settings, "DB_CONFIG"))
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connection_timeout=int(db_config.get("connection_timeout", 5)),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    buses_repo = MySQLBusRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)
    events_repo = MySQLEventRepository(conn)

    channels = [
        SmsChannel(
            account_sid=getattr(settings, "TWILIO_ACCOUNT_SID", ""),
            auth_token=getattr(settings, "TWILIO_AUTH_TOKEN", ""),
            from_number=getattr(settings, "TWILIO_PHONE_NUMBER", ""),
        ),
        EmailChannel(
            host=getattr(settings, "SMTP_HOST", ""),
            port=int(getattr(settings, "SMTP_PORT", 587)),
            username=getattr(settings, "SMTP_USER", ""),
            password=getattr(settings, "SMTP_PASSWORD", ""),
            use_ssl=bool(getattr(settings, "SMTP_SSL", False)),
            sender=getattr(settings, "EMAIL_FROM", "noreply@eduride.com"),
        ),
    ]

    fee_gate = FeeGate()
    tracker = AttendanceSessionTracker(
        attendance_repo,
        max_attempts=int(getattr(settings, "SESSION_RESOLVE_ATTEMPTS", DEFAULT_SESSION_RESOLVE_ATTEMPTS)),
    )
    delivery = NotificationDeliveryService(
        notifications_repo,
        users_repo,
        channels,
        max_workers=int(getattr(settings, "NOTIFY_WORKERS", DEFAULT_NOTIFY_WORKERS)),
        max_attempts=int(getattr(settings, "NOTIFY_MAX_ATTEMPTS", DEFAULT_NOTIFY_MAX_ATTEMPTS)),
        stale_pending_minutes=int(
            getattr(settings, "NOTIFY_STALE_PENDING_MINUTES", DEFAULT_NOTIFY_STALE_PENDING_MINUTES)
        ),
    )
    dispatcher = GuardianNotificationDispatcher(users_repo, notifications_repo, delivery)
    access_service = AccessDecisionService(
        users_repo,
        buses_repo,
        tracker,
        dispatcher,
        fee_gate=fee_gate,
        events=events_repo,
    )
    attendance_service = AttendanceQueryService(attendance_repo, buses_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        buses_repo=buses_repo,
        attendance_repo=attendance_repo,
        notifications_repo=notifications_repo,
        events_repo=events_repo,
        fee_gate=fee_gate,
        tracker=tracker,
        delivery=delivery,
        dispatcher=dispatcher,
        access_service=access_service,
        attendance_service=attendance_service,
    )
