from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from ...core.constants import NOTE_NATIONAL_HOLIDAY, NOTE_WEEKEND
from ...core.enums import AttendanceStatus, DayKind
from .base import AttendanceStrategy, StatusDecision


class OvertimeStrategy(AttendanceStrategy):
    """Work on a weekend/holiday, or a resumed session outside working hours."""

    def __init__(self, day_kind: DayKind):
        self.day_kind = day_kind

    def _day_note(self) -> Optional[str]:
        if self.day_kind == DayKind.HOLIDAY:
            return NOTE_NATIONAL_HOLIDAY
        if self.day_kind == DayKind.WEEKEND:
            return NOTE_WEEKEND
        return None

    def decide_checkin(self, *, local_now: datetime, deadline: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.OVERTIME, is_overtime=True, note=self._day_note())

    def decide_resume(self, *, local_now: datetime, session_number: int) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.OVERTIME,
            is_overtime=True,
            note=f"Overtime (Sesi {session_number})",
        )
