from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceSession, NewSession, SessionReportRow, StampedEvent


class AttendanceRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_for_user_and_date(self, user_id: int, work_date: date) -> Sequence[AttendanceSession]:
        """All sessions of that day ordered by session_number."""

        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def create_session(self, new: NewSession) -> int:
        """Insert a session.

        Raises SessionAlreadyOpen when another open session (or the same
        session number) already exists for that user and date.
        """

        raise NotImplementedError

    def stamp_break_start(self, *, session_id: int, event: StampedEvent) -> bool:
        """Only succeeds on an open session that has not taken its break yet."""

        raise NotImplementedError

    def stamp_break_end(self, *, session_id: int, event: StampedEvent) -> bool:
        """Only succeeds on an open session with a break in progress."""

        raise NotImplementedError

    def close_session(
        self,
        *,
        session_id: int,
        check_out: StampedEvent,
        status: Optional[AttendanceStatus] = None,
        notes: Optional[str] = None,
        permit_exit_at: Optional[datetime] = None,
    ) -> bool:
        """Stamp check_out on a still-open session; None leaves status/notes unchanged."""

        raise NotImplementedError

    def list_range(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[SessionReportRow]:
        raise NotImplementedError
