from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Peran pengguna untuk otorisasi."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Status sesi absensi yang disimpan di basis data."""

    PRESENT = "present"
    LATE = "late"
    SICK = "sick"
    PERMISSION = "permission"
    ABSENT = "absent"
    OVERTIME = "overtime"


class ShiftType(str, Enum):
    REGULAR = "Regular"
    PIKET = "Piket"


class PermitType(str, Enum):
    """Jenis izin; nilainya sama dengan status sesi yang dihasilkan."""

    SICK = "sick"
    PERMISSION = "permission"

    def as_status(self) -> AttendanceStatus:
        return AttendanceStatus(self.value)


class RequestStatus(str, Enum):
    """Status alur persetujuan (tukar piket / izin panjang)."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AttendanceAction(str, Enum):
    CLOCK_IN = "clockIn"
    BREAK_START = "breakStart"
    BREAK_END = "breakEnd"
    CLOCK_OUT = "clockOut"
    PERMIT = "permit"
    RESUME = "resume"


class DayKind(str, Enum):
    WORKDAY = "workday"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class ReportType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
