from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.utils.dates import NO_DATE, format_hu_date, is_expired, parse_date, timestamp

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_parse_date_handles_zulu_suffix():
    parsed = parse_date("2024-08-15T10:00:00.000Z")
    assert parsed == datetime(2024, 8, 15, 10, 0, tzinfo=timezone.utc)


def test_parse_date_treats_naive_values_as_utc():
    assert parse_date("2024-08-15T10:00:00").tzinfo == timezone.utc


def test_parse_date_returns_none_for_garbage():
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date("next tuesday") is None


def test_is_expired_only_for_parseable_past_deadlines():
    assert is_expired("2024-05-31T12:00:00Z", NOW)
    assert not is_expired("2024-06-01T12:00:00Z", NOW)
    assert not is_expired("2024-06-02T00:00:00Z", NOW)
    assert not is_expired(None, NOW)
    assert not is_expired("soon", NOW)


def test_timestamp_falls_back_to_zero():
    assert timestamp("not a date") == 0.0
    assert timestamp(None) == 0.0
    assert timestamp("1970-01-01T00:00:10Z") == 10.0


def test_format_hu_date():
    assert format_hu_date("2024-08-15T10:00:00.000Z") == "2024.08.15."
    assert format_hu_date(None) == NO_DATE == "—"
    assert format_hu_date("garbage") == NO_DATE


def test_format_hu_date_in_display_timezone():
    # 23:30 UTC is already the next day in Budapest (UTC+2 in summer)
    assert format_hu_date("2024-08-15T23:30:00Z") == "2024.08.15."
    assert format_hu_date("2024-08-15T23:30:00Z", ZoneInfo("Europe/Budapest")) == "2024.08.16."


def test_parse_date_accepts_any_fraction_length():
    assert parse_date("2024-08-15T10:00:00.5Z") == datetime(2024, 8, 15, 10, 0, 0, 500000, tzinfo=timezone.utc)
    assert parse_date("2024-08-15T10:00:00.12Z").microsecond == 120000
    assert parse_date("2024-08-15T10:00:00.1234567+02:00").microsecond == 123456
    assert not is_expired("2024-06-01T12:00:00.5Z", NOW)
