from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from ..attendance.model import AttendanceSession
from ..common.datetime_utils import iter_dates, is_weekday
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..users.model import User
from .period import ReportPeriod

SORT_FIELDS = ("full_name", "present", "late", "sick", "permission", "overtime", "alpha", "percentage")


@dataclass(frozen=True)
class EmployeeRecap:
    user_id: int
    full_name: str
    nik: Optional[str] = None
    present: int = 0
    late: int = 0
    sick: int = 0
    permission: int = 0
    overtime: int = 0
    alpha: int = 0
    working_days: int = 0
    percentage: int = 0

    @property
    def total_attendance(self) -> int:
        return self.present + self.late


def attendance_percentage(present: int, late: int, working_days: int) -> int:
    if working_days <= 0:
        return 0
    # Rounds half up.
    return int((present + late) * 100 / working_days + 0.5)


class PeriodAggregator:
    """Per-employee counters over a report window.

    Every session row is counted, so an extra (resumed / overtime) session
    on the same date counts again. ``primary_only`` restricts counting to
    session number 1 of each date.
    """

    def __init__(self, *, primary_only: bool = False):
        self._primary_only = primary_only

    def _alpha(self, period: ReportPeriod, recorded: set[date], today: date) -> int:
        cutoff = min(today, period.end)
        if cutoff < period.start:
            return 0
        return sum(1 for d in iter_dates(period.start, cutoff) if is_weekday(d) and d not in recorded)

    def aggregate_one(
        self,
        period: ReportPeriod,
        employee: User,
        sessions: Iterable[AttendanceSession],
        *,
        today: date,
    ) -> EmployeeRecap:
        counts = {status: 0 for status in AttendanceStatus}
        recorded: set[date] = set()

        for s in sessions:
            if s.user_id != employee.user_id or not period.contains(s.work_date):
                continue
            recorded.add(s.work_date)
            if self._primary_only and s.session_number != 1:
                continue
            counts[s.status] += 1

        working_days = period.working_days()
        present = counts[AttendanceStatus.PRESENT]
        late = counts[AttendanceStatus.LATE]

        return EmployeeRecap(
            user_id=employee.user_id,
            full_name=employee.full_name,
            nik=employee.nik,
            present=present,
            late=late,
            sick=counts[AttendanceStatus.SICK],
            permission=counts[AttendanceStatus.PERMISSION],
            overtime=counts[AttendanceStatus.OVERTIME],
            alpha=self._alpha(period, recorded, today),
            working_days=working_days,
            percentage=attendance_percentage(present, late, working_days),
        )

    def aggregate(
        self,
        period: ReportPeriod,
        employees: Sequence[User],
        sessions: Sequence[AttendanceSession],
        *,
        today: date,
    ) -> list[EmployeeRecap]:
        by_user: dict[int, list[AttendanceSession]] = {}
        for s in sessions:
            by_user.setdefault(s.user_id, []).append(s)

        return [
            self.aggregate_one(period, e, by_user.get(e.user_id, []), today=today)
            for e in employees
        ]


def filter_recaps(rows: Iterable[EmployeeRecap], term: Optional[str]) -> list[EmployeeRecap]:
    """Case-insensitive match on name or NIK."""
    term = (term or "").strip().lower()
    if not term:
        return list(rows)
    return [r for r in rows if term in r.full_name.lower() or (r.nik and term in r.nik.lower())]


def sort_recaps(rows: Iterable[EmployeeRecap], field: str = "full_name", *, descending: bool = False) -> list[EmployeeRecap]:
    if field not in SORT_FIELDS:
        raise ValidationError(f"Kolom urut tidak valid (pilihan: {', '.join(SORT_FIELDS)})")

    def _value(r: EmployeeRecap):
        value = getattr(r, field)
        return value.lower() if isinstance(value, str) else value

    # Two stable passes: user_id ascending stays the tiebreak in both directions.
    ordered = sorted(rows, key=lambda r: r.user_id)
    return sorted(ordered, key=_value, reverse=descending)

