from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, ShiftType


@dataclass(frozen=True)
class StampedEvent:
    """Satu cap waktu (masuk/istirahat/pulang) beserta bukti foto dan lokasi."""

    at: datetime
    photo_ref: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class AttendanceSession:
    """Entitas domain: satu sesi kerja karyawan pada satu tanggal (zona Jakarta)."""

    session_id: int
    user_id: int
    work_date: date
    session_number: int
    status: AttendanceStatus
    shift_type: ShiftType = ShiftType.REGULAR
    shift_label: Optional[str] = None
    check_in: Optional[StampedEvent] = None
    break_start: Optional[StampedEvent] = None
    break_end: Optional[StampedEvent] = None
    check_out: Optional[StampedEvent] = None
    is_overtime: bool = False
    notes: Optional[str] = None
    permit_exit_at: Optional[datetime] = None
    permit_resume_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.check_in is not None and self.check_out is None

    @property
    def on_break(self) -> bool:
        return self.break_start is not None and self.break_end is None


@dataclass(frozen=True)
class NewSession:
    """Values for a session row about to be inserted."""

    user_id: int
    work_date: date
    session_number: int
    status: AttendanceStatus
    check_in: StampedEvent
    shift_type: ShiftType = ShiftType.REGULAR
    shift_label: Optional[str] = None
    is_overtime: bool = False
    notes: Optional[str] = None
    check_out: Optional[StampedEvent] = None
    permit_resume_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionReportRow:
    """Read-model for recaps and exports (session joined with its employee)."""

    session: AttendanceSession
    full_name: str
    nik: Optional[str] = None
