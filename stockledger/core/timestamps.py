"""
Canonical timestamp handling.

Every stored instant is an aware UTC datetime. A business calendar date is
derived only through ``BusinessCalendar``, which applies one fixed UTC offset.
Nothing here consults the host timezone.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from stockledger.core.exceptions import ValidationError

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime, field: str = "timestamp") -> datetime:
    """Normalize an aware datetime to UTC; reject naive values."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValidationError(field, "Timestamp must carry a UTC offset", value)
    return value.astimezone(UTC)


def parse_instant(text: str, field: str = "timestamp") -> datetime:
    """Parse an ISO-8601 instant with 'Z' or an explicit offset."""
    try:
        parsed = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise ValidationError(field, "Invalid ISO-8601 timestamp", text) from None
    return ensure_utc(parsed, field)


def format_instant(value: datetime) -> str:
    """Fixed-width storage form; lexical order matches chronological order."""
    return ensure_utc(value).strftime(STORAGE_FORMAT)


def load_instant(text: str) -> datetime:
    """Inverse of ``format_instant`` for values read back from storage."""
    return datetime.strptime(text, STORAGE_FORMAT).replace(tzinfo=UTC)


@dataclass(frozen=True)
class BusinessCalendar:
    """Maps UTC instants to local business dates using a fixed offset."""

    offset_minutes: int = 330

    @property
    def offset(self) -> timedelta:
        return timedelta(minutes=self.offset_minutes)

    def local_date(self, instant: datetime) -> date:
        """Business calendar day on which ``instant`` falls."""
        return (ensure_utc(instant) + self.offset).date()

    def day_start(self, day: date) -> datetime:
        """UTC instant of local midnight at the start of ``day``."""
        return datetime.combine(day, time.min, tzinfo=UTC) - self.offset

    def utc_range(
        self, date_from: date | None, date_to: date | None
    ) -> tuple[datetime | None, datetime | None]:
        """
        Convert an inclusive local date range to a half-open UTC range.

        Returns:
            (start, end_exclusive); either side is None when unbounded.
        """
        if date_from and date_to and date_from > date_to:
            raise ValidationError(
                "date_from", "'date_from' must be on or before 'date_to'", date_from
            )
        start = self.day_start(date_from) if date_from else None
        end = self.day_start(date_to + timedelta(days=1)) if date_to else None
        return start, end

    def voucher_date(self, instant: datetime, first_of_month: bool = False) -> str:
        """Accounting voucher date as YYYYMMDD in the business calendar."""
        day = self.local_date(instant)
        if first_of_month:
            day = day.replace(day=1)
        return day.strftime("%Y%m%d")
