from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import PiketSchedule


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[PiketSchedule]:
        raise NotImplementedError

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[PiketSchedule]:
        raise NotImplementedError

    def upsert(self, *, user_id: int, work_date: date, notes: Optional[str] = None) -> int:
        """Create or update a piket assignment.

        Returns schedule_id.
        """

        raise NotImplementedError

    def delete(self, *, schedule_id: int) -> bool:
        raise NotImplementedError

    def list_range(self, *, start: date, end: date, user_id: Optional[int] = None) -> Sequence[PiketSchedule]:
        """Assignments in [start, end] joined with the employee name."""

        raise NotImplementedError
