from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.model import SessionReportRow
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import get_zone, local_date, now_utc
from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import ReportType, Role
from ..users.repository import UserRepository
from .aggregator import EmployeeRecap, PeriodAggregator, filter_recaps, sort_recaps
from .period import ReportPeriod, resolve_period


@dataclass(frozen=True)
class RecapReport:
    period: ReportPeriod
    summary: list[EmployeeRecap]
    details: list[SessionReportRow]

    @property
    def is_summary_mode(self) -> bool:
        """Monthly recaps print one row per employee; daily/weekly one row per session."""
        return self.period.report_type == ReportType.MONTHLY


class RecapService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        aggregator: Optional[PeriodAggregator] = None,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self._attendance = attendance
        self._users = users
        self._aggregator = aggregator or PeriodAggregator()
        self._tz = get_zone(timezone)

    def build_recap(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        report_type: ReportType | str,
        target: date,
        search: Optional[str] = None,
        sort: str = "full_name",
        descending: bool = False,
        now: Optional[datetime] = None,
    ) -> RecapReport:
        period = resolve_period(report_type, target)
        today = local_date(now or now_utc(), self._tz)

        if current_role == Role.ADMIN:
            employees = list(self._users.list_users(role=Role.EMPLOYEE))
            user_id = None
        else:
            me = self._users.get_by_id(current_user_id)
            employees = [me] if me else []
            user_id = current_user_id

        rows: Sequence[SessionReportRow] = self._attendance.list_range(
            start_date=period.start, end_date=period.end, user_id=user_id
        )

        summary = self._aggregator.aggregate(period, employees, [r.session for r in rows], today=today)
        summary = sort_recaps(filter_recaps(summary, search), sort, descending=descending)

        visible = {r.user_id for r in summary}
        details = sorted(
            (r for r in rows if r.session.user_id in visible),
            key=lambda r: (r.session.work_date, r.full_name.lower(), r.session.session_number),
        )
        return RecapReport(period=period, summary=summary, details=details)
