"""Tests for timestamp canonicalization and the business calendar."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from stockledger.core.exceptions import ValidationError
from stockledger.core.timestamps import (
    BusinessCalendar,
    ensure_utc,
    format_instant,
    load_instant,
    parse_instant,
    utc_now,
)

IST = timezone(timedelta(hours=5, minutes=30))


class TestEnsureUtc:
    def test_converts_offset_to_utc(self):
        local = datetime(2025, 1, 1, 0, 15, tzinfo=IST)
        assert ensure_utc(local) == datetime(2024, 12, 31, 18, 45, tzinfo=UTC)
        assert ensure_utc(local).tzinfo == UTC

    def test_rejects_naive(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_utc(datetime(2025, 1, 1, 10, 0), "occurred_at")
        assert exc_info.value.details["field"] == "occurred_at"

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo == UTC


class TestParseInstant:
    def test_z_suffix(self):
        assert parse_instant("2024-12-31T18:45:00Z") == datetime(
            2024, 12, 31, 18, 45, tzinfo=UTC
        )

    def test_explicit_offset(self):
        assert parse_instant("2025-01-01T00:15:00+05:30") == datetime(
            2024, 12, 31, 18, 45, tzinfo=UTC
        )

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError):
            parse_instant("yesterday")

    def test_naive_string_rejected(self):
        with pytest.raises(ValidationError):
            parse_instant("2025-01-01T10:00:00")


class TestStorageFormat:
    def test_fixed_width(self):
        early = format_instant(datetime(2025, 1, 1, tzinfo=UTC))
        late = format_instant(datetime(2025, 1, 1, 0, 0, 0, 123456, tzinfo=UTC))
        assert len(early) == len(late)
        assert early < late

    def test_lexical_order_matches_chronological(self):
        instants = [
            datetime(2025, 3, 1, 9, 0, tzinfo=IST),
            datetime(2025, 2, 28, 23, 59, 59, 999999, tzinfo=UTC),
            datetime(2024, 12, 31, 18, 45, tzinfo=UTC),
        ]
        assert sorted(format_instant(i) for i in instants) == [
            format_instant(i) for i in sorted(instants)
        ]

    def test_load_inverts_format(self):
        instant = datetime(2025, 6, 30, 12, 34, 56, 789000, tzinfo=UTC)
        assert load_instant(format_instant(instant)) == instant


class TestBusinessCalendar:
    def test_local_date_crosses_midnight(self, calendar: BusinessCalendar):
        # 18:45 UTC on Dec 31 is 00:15 on Jan 1 in the business calendar
        instant = datetime(2024, 12, 31, 18, 45, tzinfo=UTC)
        assert calendar.local_date(instant) == date(2025, 1, 1)

    def test_local_date_same_day(self, calendar: BusinessCalendar):
        assert calendar.local_date(datetime(2024, 12, 31, 18, 29, tzinfo=UTC)) == date(
            2024, 12, 31
        )

    def test_day_start(self, calendar: BusinessCalendar):
        assert calendar.day_start(date(2025, 1, 1)) == datetime(
            2024, 12, 31, 18, 30, tzinfo=UTC
        )

    def test_utc_range_is_inclusive_of_end_date(self, calendar: BusinessCalendar):
        start, end = calendar.utc_range(date(2025, 1, 1), date(2025, 1, 1))
        assert start == datetime(2024, 12, 31, 18, 30, tzinfo=UTC)
        assert end == datetime(2025, 1, 1, 18, 30, tzinfo=UTC)

    def test_utc_range_open_ends(self, calendar: BusinessCalendar):
        assert calendar.utc_range(None, None) == (None, None)

    def test_utc_range_rejects_reversed(self, calendar: BusinessCalendar):
        with pytest.raises(ValidationError):
            calendar.utc_range(date(2025, 1, 2), date(2025, 1, 1))

    def test_voucher_date(self, calendar: BusinessCalendar):
        instant = datetime(2024, 12, 31, 18, 45, tzinfo=UTC)
        assert calendar.voucher_date(instant) == "20250101"

    def test_voucher_date_first_of_month(self, calendar: BusinessCalendar):
        instant = datetime(2025, 3, 17, 6, 0, tzinfo=UTC)
        assert calendar.voucher_date(instant, first_of_month=True) == "20250301"

    def test_independent_of_host_timezone(self, monkeypatch):
        monkeypatch.setenv("TZ", "America/New_York")
        calendar = BusinessCalendar(330)
        assert calendar.local_date(datetime(2024, 12, 31, 18, 45, tzinfo=UTC)) == date(
            2025, 1, 1
        )
