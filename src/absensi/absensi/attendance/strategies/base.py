from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    is_overtime: bool = False
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, local_now: datetime, deadline: time) -> StatusDecision:
        raise NotImplementedError

    def decide_resume(self, *, local_now: datetime, session_number: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, note=f"Sesi ke-{session_number}")
