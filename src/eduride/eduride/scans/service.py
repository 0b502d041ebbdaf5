from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..app_logger import get_logger
from ..attendance.model import SessionResolution
from ..attendance.tracker import AttendanceSessionTracker
from ..buses.model import Bus
from ..buses.repository import BusRepository
from ..common.datetime_utils import now_local, parse_scan_timestamp
from ..common.validators import require_non_empty
from ..core.constants import ENTRY_GATE_MESSAGE, EXIT_GATE_MESSAGE, FEE_DENIED_MESSAGE
from ..core.enums import DoorAction, GateDecision, NotificationType, ScanResult
from ..core.exceptions import ConflictError, DomainError, NotFoundError, PersistenceError
from ..events.repository import EventRepository
from ..fees.gate import FeeGate
from ..notifications.dispatcher import GuardianNotificationDispatcher
from ..users.model import LastScanSummary, UserRecord
from ..users.repository import UserRepository
from .model import ScanEvent, ScanOutcome

logger = get_logger(__name__)

HTTP_CREATED = 201
HTTP_PAYMENT_REQUIRED = 402


class AccessDecisionService:
    """Use case: decide whether the bus door opens for an RFID scan.

    Lookups, the fee gate and the attendance write all happen before the
    decision is returned; guardian notification and the outbox event are
    best-effort and can never change a decision already taken.
    """

    def __init__(
        self,
        users: UserRepository,
        buses: BusRepository,
        tracker: AttendanceSessionTracker,
        dispatcher: GuardianNotificationDispatcher,
        *,
        fee_gate: Optional[FeeGate] = None,
        events: Optional[EventRepository] = None,
    ):
        self._users = users
        self._buses = buses
        self._tracker = tracker
        self._dispatcher = dispatcher
        self._fee_gate = fee_gate or FeeGate()
        self._events = events

    def handle_scan(self, tag_id: Any, bus_id: Any, timestamp: Any = None, *, received_at: Optional[datetime] = None) -> ScanOutcome:
        scan = ScanEvent(
            tag_id=require_non_empty(tag_id, "uid"),
            bus_id=require_non_empty(bus_id, "busId"),
            occurred_at=parse_scan_timestamp(timestamp, default=received_at or now_local()),
        )

        student = self._users.find_student_by_tag(scan.tag_id)
        if not student:
            raise NotFoundError("Student not found with this RFID tag")

        bus = self._buses.get_by_code(scan.bus_id)
        if not bus:
            raise NotFoundError("Bus not found")

        if student.assigned_bus_pk is not None and student.assigned_bus_pk != bus.bus_pk:
            raise ConflictError("Student is not assigned to this bus")

        if self._fee_gate.evaluate(student.payment_status) == GateDecision.DENY:
            return self._deny(scan, student, bus)
        return self._allow(scan, student, bus)

    def _deny(self, scan: ScanEvent, student: UserRecord, bus: Bus) -> ScanOutcome:
        summary = LastScanSummary(
            time=scan.occurred_at,
            bus_id=scan.bus_id,
            result=ScanResult.DENIED,
            door_action=DoorAction.LOCKED,
            message=FEE_DENIED_MESSAGE,
        )
        self._save_last_scan_safely(student, summary)
        logger.info(
            "scan denied: student=%s bus=%s payment_status=%s",
            student.user_id,
            bus.bus_code,
            student.payment_status_value,
        )

        parent_notified = self._notify_safely(
            student,
            bus,
            NotificationType.FEE_PENDING,
            f"Bus fee pending for {student.full_name}. Access denied at Bus #{bus.bus_code}.",
        )
        self._publish_safely(f"scan.{ScanResult.DENIED.value}", student, bus, summary, None)

        return ScanOutcome(
            result=ScanResult.DENIED,
            allow_entry=False,
            door_action=DoorAction.LOCKED,
            message="Bus fee pending. Access denied until payment is completed.",
            http_status=HTTP_PAYMENT_REQUIRED,
            student=student,
            last_scan=summary,
            parent_notified=parent_notified,
        )

    def _allow(self, scan: ScanEvent, student: UserRecord, bus: Bus) -> ScanOutcome:
        # Fatal on failure: the door must not open for a scan we could not record.
        resolution = self._tracker.record(student=student, bus=bus, now=scan.occurred_at)
        reference_time = resolution.reference_time

        summary = LastScanSummary(
            time=reference_time,
            bus_id=scan.bus_id,
            result=resolution.kind,
            door_action=DoorAction.OPEN,
            message=ENTRY_GATE_MESSAGE if resolution.kind == ScanResult.ENTRY else EXIT_GATE_MESSAGE,
        )
        self._save_last_scan_safely(student, summary)
        logger.info(
            "scan %s: student=%s bus=%s session=%s",
            resolution.kind.value,
            student.user_id,
            bus.bus_code,
            resolution.session.session_id,
        )

        action = "boarded" if resolution.kind == ScanResult.ENTRY else "exited"
        parent_notified = self._notify_safely(
            student,
            bus,
            NotificationType(resolution.kind.value),
            f"Your child, {student.full_name}, {action} Bus #{bus.bus_code} at {reference_time.strftime('%H:%M:%S')}",
        )
        self._publish_safely(f"scan.{resolution.kind.value}", student, bus, summary, resolution)

        return ScanOutcome(
            result=resolution.kind,
            allow_entry=True,
            door_action=DoorAction.OPEN,
            message="RFID scan recorded successfully",
            http_status=HTTP_CREATED,
            student=student,
            last_scan=summary,
            attendance=resolution.session,
            parent_notified=parent_notified,
        )

    def _save_last_scan_safely(self, student: UserRecord, summary: LastScanSummary) -> None:
        # The summary is only a cache of the latest outcome; it may be stale.
        try:
            self._users.save_last_scan(student.user_id, summary)
        except PersistenceError as e:
            logger.warning("could not update last scan of student %s: %s", student.user_id, e)
        except Exception:
            logger.exception("unexpected error updating last scan of student %s", student.user_id)

    def _notify_safely(self, student: UserRecord, bus: Bus, notification_type: NotificationType, message: str) -> bool:
        try:
            return self._dispatcher.notify_guardian(student, bus, notification_type, message)
        except (PersistenceError, DomainError) as e:
            logger.error("could not queue %s notification for student %s: %s", notification_type.value, student.user_id, e)
            return False
        except Exception:
            # The decision is already taken (and any session recorded); it stands.
            logger.exception("unexpected error queueing %s notification for student %s", notification_type.value, student.user_id)
            return False

    def _publish_safely(
        self,
        event_type: str,
        student: UserRecord,
        bus: Bus,
        summary: LastScanSummary,
        resolution: Optional[SessionResolution],
    ) -> None:
        if self._events is None:
            return
        payload = {
            "studentName": student.full_name,
            "lastScan": summary.to_dict(),
        }
        if resolution is not None:
            payload["attendance"] = resolution.session.to_dict()
        try:
            self._events.append(
                event_type=event_type,
                student_id=student.user_id,
                bus_code=bus.bus_code,
                payload=payload,
                created_at=now_local(),
            )
        except PersistenceError as e:
            logger.warning("could not append %s event for student %s: %s", event_type, student.user_id, e)
        except Exception:
            logger.exception("unexpected error appending %s event for student %s", event_type, student.user_id)
