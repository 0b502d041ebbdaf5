from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_scan_timestamp(value: Any, *, default: Optional[datetime] = None) -> datetime:
    """Normalize the optional hardware timestamp.

    Devices send either an ISO-8601 string (``2026-02-01T09:00:00Z``) or epoch
    milliseconds. Missing values fall back to the receipt time.
    """

    if value is None or value == "":
        return default or now_local()

    if isinstance(value, datetime):
        return to_local_naive(value)

    if isinstance(value, bool):
        raise ValidationError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0)
        except (OverflowError, OSError, ValueError):
            raise ValidationError(f"Invalid timestamp: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return to_local_naive(datetime.fromisoformat(text))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}")

    raise ValidationError(f"Invalid timestamp: {value!r}")


def calendar_day(moment: datetime) -> date:
    """Local midnight-to-midnight day a scan belongs to."""
    return moment.date()
