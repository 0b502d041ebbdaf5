from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from ..app_logger import get_logger
from ..buses.model import Bus
from ..common.datetime_utils import calendar_day
from ..core.constants import DEFAULT_SESSION_RESOLVE_ATTEMPTS
from ..core.enums import ScanResult, SessionStatus
from ..core.exceptions import DuplicateOpenSessionError, PersistenceError
from ..users.model import UserRecord
from .model import AttendanceSession, SessionResolution
from .repository import AttendanceRepository

logger = get_logger(__name__)


class AttendanceSessionTracker:
    """Entry/exit pairing per (student, bus, calendar day).

    The first allowed scan of the day opens a session, the next one closes it, a
    third one opens a new session. Sessions left open on a previous day are
    never resumed.

    Concurrent scans for the same student and bus are linearized by the store:
    ``create`` is guarded by a unique index on open sessions and ``complete`` is
    a conditional update, so a writer that loses the race simply resolves again.
    """

    def __init__(self, attendance: AttendanceRepository, *, max_attempts: int = DEFAULT_SESSION_RESOLVE_ATTEMPTS):
        self._attendance = attendance
        self._max_attempts = max(1, int(max_attempts))

    def resolve(self, *, student: UserRecord, bus: Bus, now: datetime) -> SessionResolution:
        day = calendar_day(now)
        existing = self._attendance.find_open_session(student_id=student.user_id, bus_pk=bus.bus_pk, calendar_day=day)

        if existing is None:
            session = AttendanceSession(
                session_id=None,
                student_id=student.user_id,
                bus_pk=bus.bus_pk,
                bus_code=bus.bus_code,
                rfid_tag=student.rfid_tag or "",
                calendar_day=day,
                entry_time=now,
                entry_location=bus.current_location,
                status=SessionStatus.ENTRY,
            )
            return SessionResolution(kind=ScanResult.ENTRY, session=session)

        # A device clock running behind must not produce an exit before the entry.
        exit_time = max(now, existing.entry_time)
        closed = replace(
            existing,
            exit_time=exit_time,
            exit_location=bus.current_location,
            status=SessionStatus.COMPLETE,
        )
        return SessionResolution(kind=ScanResult.EXIT, session=closed)

    def record(self, *, student: UserRecord, bus: Bus, now: datetime) -> SessionResolution:
        """Resolve and durably persist the scan; raises PersistenceError if it cannot."""

        for attempt in range(1, self._max_attempts + 1):
            plan = self.resolve(student=student, bus=bus, now=now)

            if plan.kind == ScanResult.ENTRY:
                try:
                    session_id = self._attendance.create(plan.session)
                except DuplicateOpenSessionError:
                    logger.info(
                        "open session for student=%s bus=%s appeared concurrently (attempt %d), resolving as exit",
                        student.user_id,
                        bus.bus_code,
                        attempt,
                    )
                    continue
                return SessionResolution(kind=ScanResult.ENTRY, session=replace(plan.session, session_id=session_id))

            if self._attendance.complete(plan.session):
                return plan

            logger.info(
                "session %s for student=%s was closed concurrently (attempt %d), resolving again",
                plan.session.session_id,
                student.user_id,
                attempt,
            )

        raise PersistenceError(
            f"Could not record attendance for student {student.user_id} on bus {bus.bus_code} "
            f"after {self._max_attempts} attempts"
        )
