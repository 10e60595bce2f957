"""Tests parsing des horodatages / Feed timestamp parsing tests."""

from datetime import datetime, timezone

from fuel_finder.services.date_parsing import parse_feed_timestamp


def test_regional_am_pm_format():
    # 28/10/2025 : heure d'été AEDT (UTC+11) / daylight saving AEDT (UTC+11)
    assert parse_feed_timestamp("28/10/2025 02:30:00 PM") == datetime(2025, 10, 28, 3, 30, tzinfo=timezone.utc)


def test_single_digit_day_and_month():
    # Juillet : AEST (UTC+10) / July: AEST (UTC+10)
    assert parse_feed_timestamp("1/7/2025 9:05:00 AM") == datetime(2025, 6, 30, 23, 5, tzinfo=timezone.utc)


def test_24_hour_format():
    assert parse_feed_timestamp("01/06/2025 18:00:00") == datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


def test_iso_with_offset():
    assert parse_feed_timestamp("2025-10-28T03:30:00Z") == datetime(2025, 10, 28, 3, 30, tzinfo=timezone.utc)
    assert parse_feed_timestamp("2025-10-28T14:30:00+11:00") == datetime(2025, 10, 28, 3, 30, tzinfo=timezone.utc)


def test_naive_iso_is_regional_time():
    assert parse_feed_timestamp("2025-06-01 10:00:00") == datetime(2025, 6, 1, 0, 0, tzinfo=timezone.utc)
    assert parse_feed_timestamp("2025-06-01 10:00:00.250").microsecond == 250000


def test_unparseable_returns_none():
    assert parse_feed_timestamp("yesterday") is None
    assert parse_feed_timestamp("31/31/2025 10:00:00") is None
    assert parse_feed_timestamp("   ") is None
    assert parse_feed_timestamp(None) is None
