from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...attendance.model import AttendanceSession
from ...common.datetime_utils import as_utc
from .base import WorkDurationCalculator


def _minutes(start: Optional[datetime], end: Optional[datetime]) -> int:
    if not start or not end:
        return 0
    return int((as_utc(end) - as_utc(start)).total_seconds() // 60)


class StandardWorkDurationCalculator(WorkDurationCalculator):
    """Standard rule: (out - in) - permit gap - break, not below 0."""

    def break_minutes(self, session: AttendanceSession) -> int:
        if not session.break_start or not session.break_end:
            return 0
        return max(_minutes(session.break_start.at, session.break_end.at), 0)

    def net_minutes(self, session: AttendanceSession) -> int:
        if not session.check_in or not session.check_out:
            return 0
        minutes = _minutes(session.check_in.at, session.check_out.at)
        # Only a resume after the exit counts as a gap.
        gap = _minutes(session.permit_exit_at, session.permit_resume_at)
        if gap > 0:
            minutes = max(minutes - gap, 0)
        return max(minutes - self.break_minutes(session), 0)


def format_duration(minutes: int) -> str:
    """``"7j 45m"``; ``"-"`` for zero or negative."""
    if minutes <= 0:
        return "-"
    return f"{minutes // 60}j {minutes % 60}m"
