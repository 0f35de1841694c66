from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from src.absensi.absensi.attendance.model import AttendanceSession, NewSession, SessionReportRow
from src.absensi.absensi.attendance.service import AttendanceService
from src.absensi.absensi.common.datetime_utils import as_utc
from src.absensi.absensi.core.enums import AttendanceStatus, PermitType, Role, ShiftType
from src.absensi.absensi.core.exceptions import (
    AuthorizationError,
    BreakAlreadyStarted,
    NoActiveBreak,
    NoOpenSession,
    NoSessionToday,
    SessionAlreadyOpen,
    SessionStillOpen,
    ValidationError,
)
from src.absensi.absensi.schedules.model import PiketSchedule
from src.absensi.absensi.users.model import User

JKT = ZoneInfo("Asia/Jakarta")


def jkt(y, m, d, hh, mm, ss=0) -> datetime:
    return datetime(y, m, d, hh, mm, ss, tzinfo=JKT)


class InMemoryUsers:
    def __init__(self, *users: User):
        self._by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(user_id)


class InMemorySchedules:
    def __init__(self, duties: set[tuple[int, date]] = frozenset()):
        self._duties = set(duties)

    def get_for_user_and_date(self, *, user_id: int, work_date: date):
        if (user_id, work_date) not in self._duties:
            return None
        return PiketSchedule(schedule_id=1, user_id=user_id, work_date=work_date)


class InMemoryAttendance:
    def __init__(self):
        self.sessions: dict[int, AttendanceSession] = {}
        self.writes = 0
        self.range_calls = []
        self._id = 0

    def get_by_id(self, session_id):
        return self.sessions.get(session_id)

    def list_for_user_and_date(self, user_id, work_date):
        rows = [s for s in self.sessions.values() if s.user_id == user_id and s.work_date == work_date]
        return sorted(rows, key=lambda s: s.session_number)

    def get_recent_for_user(self, user_id, limit):
        rows = [s for s in self.sessions.values() if s.user_id == user_id]
        rows.sort(key=lambda s: (s.work_date, s.session_number), reverse=True)
        return rows[:limit]

    def create_session(self, new: NewSession) -> int:
        for s in self.list_for_user_and_date(new.user_id, new.work_date):
            if s.is_open or s.session_number == new.session_number:
                raise SessionAlreadyOpen("duplicate")
        self._id += 1
        self.writes += 1
        self.sessions[self._id] = AttendanceSession(
            session_id=self._id,
            user_id=new.user_id,
            work_date=new.work_date,
            session_number=new.session_number,
            status=new.status,
            shift_type=new.shift_type,
            shift_label=new.shift_label,
            check_in=new.check_in,
            check_out=new.check_out,
            is_overtime=new.is_overtime,
            notes=new.notes,
            permit_resume_at=new.permit_resume_at,
        )
        return self._id

    def stamp_break_start(self, *, session_id, event):
        s = self.sessions[session_id]
        if not s.is_open or s.break_start is not None:
            return False
        self.writes += 1
        self.sessions[session_id] = replace(s, break_start=event)
        return True

    def stamp_break_end(self, *, session_id, event):
        s = self.sessions[session_id]
        if not s.is_open or not s.on_break:
            return False
        self.writes += 1
        self.sessions[session_id] = replace(s, break_end=event)
        return True

    def close_session(self, *, session_id, check_out, status=None, notes=None, permit_exit_at=None):
        s = self.sessions[session_id]
        if not s.is_open:
            return False
        self.writes += 1
        self.sessions[session_id] = replace(
            s,
            check_out=check_out,
            status=status or s.status,
            notes=notes if notes is not None else s.notes,
            permit_exit_at=permit_exit_at or s.permit_exit_at,
        )
        return True

    def list_range(self, *, start_date, end_date, user_id=None):
        self.range_calls.append((start_date, end_date, user_id))
        return [
            SessionReportRow(session=s, full_name="Budi")
            for s in self.sessions.values()
            if start_date <= s.work_date <= end_date and (user_id is None or s.user_id == user_id)
        ]


def _user(user_id: int, name: str = "Budi Santoso") -> User:
    return User(user_id=user_id, full_name=name, username=str(user_id), password_hash="x", role=Role.EMPLOYEE)


@pytest.fixture
def repo():
    return InMemoryAttendance()


def _service(repo, duties=frozenset()):
    return AttendanceService(repo, InMemoryUsers(_user(1), _user(2), _user(3)), InMemorySchedules(duties))


def test_full_workday_with_break():
    repo = InMemoryAttendance()
    svc = _service(repo)

    s = svc.clock_in(1, photo_ref="attendance/in.jpg", location="Kantor", now=jkt(2026, 3, 4, 8, 10))
    assert s.status == AttendanceStatus.PRESENT
    assert s.session_number == 1
    assert s.shift_label == "Management"
    assert s.shift_type == ShiftType.REGULAR
    assert s.check_in.photo_ref == "attendance/in.jpg"

    svc.break_start(1, now=jkt(2026, 3, 4, 12, 0))
    with pytest.raises(BreakAlreadyStarted):
        svc.break_start(1, now=jkt(2026, 3, 4, 12, 5))

    svc.break_end(1, now=jkt(2026, 3, 4, 13, 0))
    with pytest.raises(NoActiveBreak):
        svc.break_end(1, now=jkt(2026, 3, 4, 13, 1))
    with pytest.raises(BreakAlreadyStarted, match="sudah diambil"):
        svc.break_start(1, now=jkt(2026, 3, 4, 14, 0))

    done = svc.clock_out(1, now=jkt(2026, 3, 4, 17, 5))
    assert not done.is_open
    assert as_utc(done.check_out.at) == jkt(2026, 3, 4, 17, 5)

    with pytest.raises(NoOpenSession):
        svc.clock_out(1, now=jkt(2026, 3, 4, 17, 6))


def test_lateness_deadline_is_inclusive_to_the_second(repo):
    svc = _service(repo)
    assert svc.clock_in(1, now=jkt(2026, 3, 4, 8, 30, 0)).status == AttendanceStatus.PRESENT
    assert svc.clock_in(2, now=jkt(2026, 3, 4, 8, 30, 1)).status == AttendanceStatus.LATE


def test_piket_roster_uses_earlier_deadline(repo):
    svc = _service(repo, duties={(1, date(2026, 3, 4)), (2, date(2026, 3, 4))})

    on_time = svc.clock_in(1, now=jkt(2026, 3, 4, 8, 15, 0))
    late = svc.clock_in(2, now=jkt(2026, 3, 4, 8, 15, 1))

    assert on_time.shift_type == ShiftType.PIKET
    assert on_time.status == AttendanceStatus.PRESENT
    assert late.status == AttendanceStatus.LATE


def test_explicit_piket_shift_without_roster(repo):
    svc = _service(repo)
    s = svc.clock_in(1, shift_type=ShiftType.PIKET, now=jkt(2026, 3, 4, 8, 20))
    assert s.status == AttendanceStatus.LATE


def test_weekend_and_holiday_checkins_are_overtime(repo):
    svc = _service(repo)

    weekend = svc.clock_in(1, now=jkt(2026, 3, 7, 9, 0))
    holiday = svc.clock_in(2, now=jkt(2026, 3, 20, 7, 0))

    assert weekend.status == AttendanceStatus.OVERTIME
    assert weekend.is_overtime
    assert weekend.notes == "Hari Libur Pekan"
    assert holiday.status == AttendanceStatus.OVERTIME
    assert holiday.notes == "Hari Libur Nasional"


def test_second_clock_in_while_open_is_rejected_without_writes(repo):
    svc = _service(repo)
    svc.clock_in(1, now=jkt(2026, 3, 4, 8, 0))
    writes = repo.writes

    with pytest.raises(SessionAlreadyOpen):
        svc.clock_in(1, now=jkt(2026, 3, 4, 9, 0))
    assert repo.writes == writes


def test_break_without_session(repo):
    svc = _service(repo)
    with pytest.raises(NoOpenSession):
        svc.break_start(1, now=jkt(2026, 3, 4, 12, 0))


def test_resume_rules(repo):
    svc = _service(repo)

    with pytest.raises(NoSessionToday):
        svc.resume(1, now=jkt(2026, 3, 4, 9, 0))

    svc.clock_in(1, now=jkt(2026, 3, 4, 8, 0))
    with pytest.raises(SessionStillOpen):
        svc.resume(1, now=jkt(2026, 3, 4, 9, 0))

    svc.clock_out(1, now=jkt(2026, 3, 4, 11, 0))
    second = svc.resume(1, now=jkt(2026, 3, 4, 13, 0))
    assert second.session_number == 2
    assert second.status == AttendanceStatus.PRESENT
    assert second.notes == "Sesi ke-2"
    assert as_utc(second.permit_resume_at) == jkt(2026, 3, 4, 13, 0)

    svc.clock_out(1, now=jkt(2026, 3, 4, 16, 0))
    third = svc.resume(1, now=jkt(2026, 3, 4, 17, 0))
    assert third.status == AttendanceStatus.OVERTIME
    assert third.is_overtime
    assert third.notes == "Overtime (Sesi 3)"


def test_resume_keeps_shift_type_of_previous_session(repo):
    svc = _service(repo, duties={(1, date(2026, 3, 4))})
    svc.clock_in(1, now=jkt(2026, 3, 4, 8, 0))
    svc.clock_out(1, now=jkt(2026, 3, 4, 10, 0))

    assert svc.resume(1, now=jkt(2026, 3, 4, 11, 0)).shift_type == ShiftType.PIKET


def test_permit_closes_open_session(repo):
    svc = _service(repo)
    svc.clock_in(1, now=jkt(2026, 3, 4, 8, 0))

    s = svc.permit(1, permit_type=PermitType.SICK, notes="Demam", now=jkt(2026, 3, 4, 10, 0))

    assert s.status == AttendanceStatus.SICK
    assert s.notes == "Demam"
    assert not s.is_open
    assert as_utc(s.permit_exit_at) == jkt(2026, 3, 4, 10, 0)


def test_permit_without_session_records_closed_session(repo):
    svc = _service(repo)

    s = svc.permit(1, permit_type="permission", notes="Urusan keluarga", now=jkt(2026, 3, 4, 7, 30))

    assert s.status == AttendanceStatus.PERMISSION
    assert s.session_number == 1
    assert not s.is_open
    assert s.check_out.at == s.check_in.at


def test_permit_requires_reason_and_known_type(repo):
    svc = _service(repo)
    with pytest.raises(ValidationError):
        svc.permit(1, permit_type=PermitType.SICK, notes="  ", now=jkt(2026, 3, 4, 9, 0))
    with pytest.raises(ValidationError):
        svc.permit(1, permit_type="cuti", notes="Liburan", now=jkt(2026, 3, 4, 9, 0))
    assert repo.writes == 0


def test_stale_session_auto_closed_at_six(repo):
    svc = _service(repo)
    svc.clock_in(1, now=jkt(2026, 3, 4, 8, 0))

    assert svc.get_today(1, now=jkt(2026, 3, 5, 5, 59)) is None
    assert repo.sessions[1].is_open

    assert svc.get_today(1, now=jkt(2026, 3, 5, 6, 0)) is None
    closed = repo.sessions[1]
    assert not closed.is_open
    assert as_utc(closed.check_out.at) == jkt(2026, 3, 5, 6, 0)
    assert closed.notes == "(Auto-closed at 06:00)"


def test_auto_close_appends_to_existing_notes(repo):
    svc = _service(repo)
    svc.clock_in(1, now=jkt(2026, 3, 7, 8, 0))

    closed = svc.auto_close_stale(1, now=jkt(2026, 3, 8, 9, 0))

    assert closed.notes == "Hari Libur Pekan (Auto-closed at 06:00)"
    assert svc.auto_close_stale(1, now=jkt(2026, 3, 8, 9, 5)) is None


def test_get_today_prefers_open_session(repo):
    svc = _service(repo)
    svc.clock_in(1, now=jkt(2026, 3, 4, 8, 0))
    svc.clock_out(1, now=jkt(2026, 3, 4, 10, 0))
    svc.resume(1, now=jkt(2026, 3, 4, 11, 0))

    today = svc.get_today(1, now=jkt(2026, 3, 4, 12, 0))
    assert today.session_number == 2
    assert [s.session_number for s in svc.get_today_sessions(1, now=jkt(2026, 3, 4, 12, 0))] == [1, 2]


def test_history_is_scoped_to_employee(repo):
    svc = _service(repo)

    with pytest.raises(AuthorizationError):
        svc.history(current_user_id=1, current_role=Role.EMPLOYEE, user_id=2, month="2026-03")

    svc.history(current_user_id=1, current_role=Role.EMPLOYEE, now=jkt(2026, 3, 27, 9, 0))
    svc.history(current_user_id=9, current_role=Role.ADMIN, month="2026-01")

    assert repo.range_calls == [
        (date(2026, 3, 26), date(2026, 4, 25), 1),
        (date(2025, 12, 26), date(2026, 1, 25), None),
    ]


def test_to_ui_renders_local_times(repo):
    svc = _service(repo)
    s = svc.clock_in(1, location="-6.2000, 106.8166", now=jkt(2026, 3, 4, 8, 31, 5))

    ui = svc.to_ui(s)

    assert ui["status"] == "late"
    assert ui["status_label"] == "Telat"
    assert ui["css_class"] == "bg-danger"
    assert ui["date"] == "2026-03-04"
    assert ui["check_in"]["time"] == "08:31:05"
    assert ui["check_in"]["at"] == "2026-03-04T01:31:05+00:00"
    assert ui["check_out"] is None
