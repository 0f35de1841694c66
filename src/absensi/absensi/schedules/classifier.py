from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from ..attendance.strategies.base import AttendanceStrategy, StatusDecision
from ..attendance.strategies.late_strategy import LateStrategy
from ..attendance.strategies.normal_strategy import NormalStrategy
from ..attendance.strategies.overtime_strategy import OvertimeStrategy
from ..common.datetime_utils import seconds_since_midnight
from ..core.constants import PIKET_DEADLINE, REGULAR_DEADLINE, WORKDAY_END, WORKDAY_START
from ..core.enums import DayKind, ShiftType
from .holidays import HolidayCalendar


def _seconds(t: time) -> int:
    return t.hour * 3600 + t.minute * 60 + t.second


@dataclass
class ScheduleClassifier:
    """Decides day kind, lateness deadline and the status strategy for an event.

    All datetimes passed in are Jakarta-local wall-clock values.
    """

    holidays: HolidayCalendar = field(default_factory=HolidayCalendar.default)
    regular_deadline: time = REGULAR_DEADLINE
    piket_deadline: time = PIKET_DEADLINE
    workday_start: time = WORKDAY_START
    workday_end: time = WORKDAY_END

    def day_kind(self, day: date) -> DayKind:
        # A holiday falling on a weekend is still reported as a holiday.
        if self.holidays.is_holiday(day):
            return DayKind.HOLIDAY
        if day.weekday() >= 5:
            return DayKind.WEEKEND
        return DayKind.WORKDAY

    def lateness_deadline(self, shift_type: Optional[ShiftType]) -> time:
        if shift_type == ShiftType.PIKET:
            return self.piket_deadline
        return self.regular_deadline

    def for_checkin(self, *, local_now: datetime, shift_type: Optional[ShiftType]) -> AttendanceStrategy:
        kind = self.day_kind(local_now.date())
        if kind != DayKind.WORKDAY:
            return OvertimeStrategy(kind)

        deadline = self.lateness_deadline(shift_type)
        if seconds_since_midnight(local_now) > _seconds(deadline):
            return LateStrategy()
        return NormalStrategy()

    def for_resume(self, *, local_now: datetime) -> AttendanceStrategy:
        kind = self.day_kind(local_now.date())
        if kind != DayKind.WORKDAY:
            return OvertimeStrategy(kind)

        now_s = seconds_since_midnight(local_now)
        if now_s < _seconds(self.workday_start) or now_s >= _seconds(self.workday_end):
            return OvertimeStrategy(kind)
        return NormalStrategy()

    def classify_checkin(self, local_now: datetime, shift_type: Optional[ShiftType]) -> StatusDecision:
        strategy = self.for_checkin(local_now=local_now, shift_type=shift_type)
        return strategy.decide_checkin(local_now=local_now, deadline=self.lateness_deadline(shift_type))

    def classify_resume(self, local_now: datetime, session_number: int) -> StatusDecision:
        strategy = self.for_resume(local_now=local_now)
        return strategy.decide_resume(local_now=local_now, session_number=session_number)
