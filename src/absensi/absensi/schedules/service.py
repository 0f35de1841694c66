from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import parse_month, payroll_window
from ..common.validators import optional_text
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import PiketSchedule
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    """Use case: jadwal piket (duty roster)."""

    def __init__(self, schedules: ScheduleRepository, users: Optional[UserRepository] = None):
        self._schedules = schedules
        self._users = users

    def assign(
        self,
        *,
        current_role: Role,
        user_id: int,
        work_date: date,
        notes: Optional[str] = None,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

        if int(user_id) <= 0:
            raise ValidationError("Karyawan tidak valid")
        if self._users and not self._users.get_by_id(int(user_id)):
            raise NotFoundError("Karyawan tidak ditemukan")

        schedule_id = self._schedules.upsert(user_id=int(user_id), work_date=work_date, notes=optional_text(notes))
        logger.info("Piket assigned", extra={"user_id": int(user_id), "action": "piket_assign"})
        return schedule_id

    def delete(self, *, current_role: Role, schedule_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

        if not self._schedules.delete(schedule_id=int(schedule_id)):
            raise NotFoundError("Jadwal piket tidak ditemukan")

    def list_month(self, month: str, *, user_id: Optional[int] = None) -> Sequence[PiketSchedule]:
        """Assignments inside the 26th-25th payroll window of `month` (YYYY-MM)."""
        start, end = payroll_window(*parse_month(month))
        return self._schedules.list_range(start=start, end=end, user_id=user_id)

    def is_on_duty(self, *, user_id: int, work_date: date) -> bool:
        return self._schedules.get_for_user_and_date(user_id=int(user_id), work_date=work_date) is not None
