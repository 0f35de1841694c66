from __future__ import annotations

from datetime import datetime, time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in on a working day."""

    def decide_checkin(self, *, local_now: datetime, deadline: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
