"""Public holiday calendar (Indonesia)."""

from __future__ import annotations

from datetime import date
from typing import FrozenSet, Iterable, Optional

from ..common.datetime_utils import parse_iso_date

# Libur nasional & cuti bersama 2026.
DEFAULT_HOLIDAYS_2026 = (
    "2026-01-01",
    "2026-01-29",
    "2026-02-16",
    "2026-03-20",
    "2026-04-03",
    "2026-04-05",
    "2026-04-30",
    "2026-05-01",
    "2026-05-21",
    "2026-05-22",
    "2026-06-01",
    "2026-06-06",
    "2026-07-06",
    "2026-08-17",
    "2026-09-14",
    "2026-12-25",
)


def parse_holiday_list(raw: Optional[str]) -> list[date]:
    """Parse a comma separated YYYY-MM-DD list (EXTRA_HOLIDAYS)."""
    if not raw:
        return []
    return [parse_iso_date(part) for part in raw.split(",") if part.strip()]


class HolidayCalendar:
    def __init__(self, holidays: Iterable[date] = ()):
        self._days: FrozenSet[date] = frozenset(holidays)

    @classmethod
    def default(cls, extra: Iterable[date] = ()) -> "HolidayCalendar":
        days = [parse_iso_date(d) for d in DEFAULT_HOLIDAYS_2026]
        days.extend(extra)
        return cls(days)

    def is_holiday(self, day: date) -> bool:
        return day in self._days

    def __contains__(self, day: date) -> bool:
        return self.is_holiday(day)

    def __len__(self) -> int:
        return len(self._days)
