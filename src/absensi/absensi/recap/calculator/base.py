from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceSession


class WorkDurationCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time)."""

    @abstractmethod
    def net_minutes(self, session: AttendanceSession) -> int:
        raise NotImplementedError

    @abstractmethod
    def break_minutes(self, session: AttendanceSession) -> int:
        raise NotImplementedError
