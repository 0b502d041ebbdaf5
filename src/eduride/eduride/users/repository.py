from __future__ import annotations

from typing import Optional, Protocol

from .model import LastScanSummary, UserRecord


class UserRepository(Protocol):
    """User directory as seen by the gate.

    Note: the service layer depends on this interface, never on a concrete DB.
    """

    def find_student_by_tag(self, rfid_tag: str) -> Optional[UserRecord]:
        raise NotImplementedError

    def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        raise NotImplementedError

    def save_last_scan(self, user_id: int, summary: LastScanSummary) -> bool:
        raise NotImplementedError
