from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from ..common.datetime_utils import iter_dates, is_weekday, payroll_window
from ..common.validators import require_choice
from ..core.enums import ReportType


@dataclass(frozen=True)
class ReportPeriod:
    report_type: ReportType
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def working_days(self) -> int:
        """Monday-Friday dates in the window (holidays are not subtracted)."""
        return sum(1 for d in iter_dates(self.start, self.end) if is_weekday(d))

    @property
    def label(self) -> str:
        if self.report_type == ReportType.DAILY:
            return self.start.strftime("%d/%m/%Y")
        return f"{self.start:%d/%m/%Y} - {self.end:%d/%m/%Y}"


def resolve_period(report_type: ReportType | str, target: date) -> ReportPeriod:
    """daily: that day; weekly: Monday-Sunday; monthly: 26th of previous month - 25th."""
    report_type = require_choice(report_type, ReportType, "Jenis laporan")

    if report_type == ReportType.DAILY:
        return ReportPeriod(report_type, target, target)
    if report_type == ReportType.WEEKLY:
        monday = target - timedelta(days=target.weekday())
        return ReportPeriod(report_type, monday, monday + timedelta(days=6))

    start, end = payroll_window(target.year, target.month)
    return ReportPeriod(report_type, start, end)
