from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_TIMEZONE, PAYROLL_PERIOD_END_DAY, PAYROLL_PERIOD_START_DAY
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Tanggal tidak valid: {value!r} (YYYY-MM-DD)")


def parse_month(value: str) -> tuple[int, int]:
    """Parse YYYY-MM into (year, month)."""
    try:
        parsed = datetime.strptime((value or "").strip(), "%Y-%m")
    except ValueError:
        raise ValidationError(f"Bulan tidak valid: {value!r} (YYYY-MM)")
    return parsed.year, parsed.month


def payroll_window(year: int, month: int) -> tuple[date, date]:
    """26th of the previous month through the 25th of the given month."""
    start_year, start_month = (year - 1, 12) if month == 1 else (year, month - 1)
    return (
        date(start_year, start_month, PAYROLL_PERIOD_START_DAY),
        date(year, month, PAYROLL_PERIOD_END_DAY),
    )


def now_utc() -> datetime:
    """Current server time.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes coming back from MySQL are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC for DATETIME columns."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def get_zone(name: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    return ZoneInfo(name)


def to_local(value: datetime, tz: ZoneInfo) -> datetime:
    return as_utc(value).astimezone(tz)


def local_date(value: datetime, tz: ZoneInfo) -> date:
    return to_local(value, tz).date()


def local_at(day: date, at: time, tz: ZoneInfo) -> datetime:
    """Wall-clock `at` on `day` in `tz`, as an aware UTC instant."""
    return datetime.combine(day, at, tzinfo=tz).astimezone(timezone.utc)


def seconds_since_midnight(value: datetime) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def iter_dates(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekday(day: date) -> bool:
    return day.weekday() < 5


def payroll_month_of(day: date) -> str:
    """YYYY-MM of the payroll period containing `day` (26th rolls into next month)."""
    if day.day >= PAYROLL_PERIOD_START_DAY:
        year, month = (day.year + 1, 1) if day.month == 12 else (day.year, day.month + 1)
    else:
        year, month = day.year, day.month
    return f"{year:04d}-{month:02d}"
