from datetime import date, datetime, timedelta, timezone

import pytest

from src.eduride.eduride.common.datetime_utils import calendar_day, parse_iso_date, parse_scan_timestamp
from src.eduride.eduride.core.exceptions import ValidationError


def test_missing_timestamp_falls_back_to_receipt_time():
    received = datetime(2026, 2, 1, 9, 0, 0)
    assert parse_scan_timestamp(None, default=received) == received
    assert parse_scan_timestamp("", default=received) == received


def test_naive_iso_timestamp_is_kept_as_local_time():
    assert parse_scan_timestamp("2026-02-01T17:05:00") == datetime(2026, 2, 1, 17, 5, 0)


def test_aware_timestamp_is_converted_to_local_naive():
    aware = datetime(2026, 2, 1, 9, 0, 0, tzinfo=timezone.utc)
    parsed = parse_scan_timestamp("2026-02-01T09:00:00Z")

    assert parsed.tzinfo is None
    assert parsed == aware.astimezone().replace(tzinfo=None)


def test_epoch_milliseconds_are_accepted():
    moment = datetime(2026, 2, 1, 9, 0, 0)
    millis = int(moment.timestamp() * 1000)

    assert parse_scan_timestamp(millis) == moment


@pytest.mark.parametrize("value", ["yesterday", "2026-13-01T00:00:00", True, [1]])
def test_garbage_timestamp_is_a_validation_error(value):
    with pytest.raises(ValidationError):
        parse_scan_timestamp(value)


def test_calendar_day_is_midnight_to_midnight():
    late = datetime(2026, 2, 1, 23, 59, 59)
    assert calendar_day(late) == date(2026, 2, 1)
    assert calendar_day(late + timedelta(seconds=1)) == date(2026, 2, 2)


def test_parse_iso_date_rejects_bad_input():
    assert parse_iso_date("2026-02-01") == date(2026, 2, 1)
    with pytest.raises(ValidationError):
        parse_iso_date("01/02/2026")
