from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from ..common.datetime_utils import (
    as_utc,
    get_zone,
    local_at,
    now_utc,
    parse_month,
    payroll_month_of,
    payroll_window,
    to_local,
)
from ..common.validators import optional_text, require_choice, require_non_empty
from ..core.constants import (
    AUTO_CLOSE_AT,
    AUTO_CLOSE_NOTE,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_SHIFT_LABEL,
    DEFAULT_TIMEZONE,
    STATUS_LABELS,
)
from ..core.enums import AttendanceAction, AttendanceStatus, PermitType, Role, ShiftType
from ..core.exceptions import (
    AuthorizationError,
    BreakAlreadyStarted,
    NoActiveBreak,
    NoOpenSession,
    NoSessionToday,
    NotFoundError,
    SessionAlreadyOpen,
    SessionStillOpen,
)
from ..schedules.classifier import ScheduleClassifier
from ..schedules.repository import ScheduleRepository
from ..users.repository import UserRepository
from .model import AttendanceSession, NewSession, SessionReportRow, StampedEvent
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _open_session(sessions: Sequence[AttendanceSession]) -> Optional[AttendanceSession]:
    for s in sessions:
        if s.is_open:
            return s
    return None


class AttendanceService:
    """Session state machine for one employee's working day.

    Every operation reads the clock itself (``now`` exists for tests); the
    calendar date and all business rules are evaluated in the configured
    local timezone (Asia/Jakarta by default).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        schedules: ScheduleRepository | None = None,
        *,
        classifier: ScheduleClassifier | None = None,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self._attendance = attendance
        self._users = users
        self._schedules = schedules
        self._classifier = classifier or ScheduleClassifier()
        self._tz: ZoneInfo = get_zone(timezone)

    def _clock(self, now: datetime | None) -> tuple[datetime, datetime]:
        """Return (utc, local) for the given or current instant."""
        utc = as_utc(now) if now is not None else now_utc()
        return utc, to_local(utc, self._tz)

    def _require_user(self, user_id: int) -> None:
        if not self._users.get_by_id(user_id):
            raise NotFoundError("Karyawan tidak ditemukan")

    def _sessions(self, user_id: int, work_date: date) -> Sequence[AttendanceSession]:
        return list(self._attendance.list_for_user_and_date(user_id, work_date))

    def _effective_shift_type(self, *, user_id: int, work_date: date, shift_type: ShiftType | None) -> ShiftType:
        if shift_type is not None:
            return shift_type
        if self._schedules and self._schedules.get_for_user_and_date(user_id=user_id, work_date=work_date):
            return ShiftType.PIKET
        return ShiftType.REGULAR

    def _check_transition(
        self, action: AttendanceAction, sessions: Sequence[AttendanceSession]
    ) -> Optional[AttendanceSession]:
        """Raise the conflict for `action` on the given day, else return the open session."""
        current = _open_session(sessions)

        if action == AttendanceAction.CLOCK_IN:
            if current:
                raise SessionAlreadyOpen("Sesi sebelumnya belum selesai (belum absen pulang).")
        elif action in (AttendanceAction.BREAK_START, AttendanceAction.BREAK_END, AttendanceAction.CLOCK_OUT):
            if not current:
                raise NoOpenSession("Belum ada sesi aktif hari ini. Silakan absen masuk terlebih dahulu.")
            if action == AttendanceAction.BREAK_START and current.break_start is not None:
                if current.on_break:
                    raise BreakAlreadyStarted("Anda sedang istirahat.")
                raise BreakAlreadyStarted("Istirahat sudah diambil pada sesi ini.")
            if action == AttendanceAction.BREAK_END and not current.on_break:
                raise NoActiveBreak("Anda belum mulai istirahat.")
        elif action == AttendanceAction.RESUME:
            if not sessions:
                raise NoSessionToday("Belum ada absensi hari ini.")
            if current:
                raise SessionStillOpen("Masih ada sesi aktif. Silakan pulang dulu sebelum lanjut kerja.")

        return current

    def precheck(self, action: AttendanceAction, user_id: int, *, now: datetime | None = None) -> None:
        """Validate that `action` is currently allowed without changing anything."""
        _, local = self._clock(now)
        self._check_transition(action, self._sessions(user_id, local.date()))

    def _reload(self, session_id: int) -> AttendanceSession:
        session = self._attendance.get_by_id(session_id)
        if not session:
            raise NotFoundError("Sesi absensi tidak ditemukan")
        return session

    def clock_in(
        self,
        user_id: int,
        *,
        photo_ref: str | None = None,
        location: str | None = None,
        shift_label: str | None = None,
        shift_type: ShiftType | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        utc, local = self._clock(now)
        today = local.date()

        self._require_user(user_id)
        sessions = self._sessions(user_id, today)
        self._check_transition(AttendanceAction.CLOCK_IN, sessions)

        effective = self._effective_shift_type(user_id=user_id, work_date=today, shift_type=shift_type)
        decision = self._classifier.classify_checkin(local, effective)

        session_id = self._attendance.create_session(
            NewSession(
                user_id=user_id,
                work_date=today,
                session_number=len(sessions) + 1,
                status=decision.status,
                check_in=StampedEvent(at=utc, photo_ref=photo_ref, location=location),
                shift_type=effective,
                shift_label=optional_text(shift_label) or DEFAULT_SHIFT_LABEL,
                is_overtime=decision.is_overtime,
                notes=decision.note,
            )
        )
        logger.info(
            "Clock-in session %s status=%s",
            len(sessions) + 1,
            decision.status.value,
            extra={"user_id": user_id, "action": AttendanceAction.CLOCK_IN.value, "session_id": session_id},
        )
        return self._reload(session_id)

    def break_start(
        self,
        user_id: int,
        *,
        photo_ref: str | None = None,
        location: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        utc, local = self._clock(now)
        current = self._check_transition(AttendanceAction.BREAK_START, self._sessions(user_id, local.date()))

        event = StampedEvent(at=utc, photo_ref=photo_ref, location=location)
        if not self._attendance.stamp_break_start(session_id=current.session_id, event=event):
            # Lost a race: re-evaluate against the fresh state to report the right conflict.
            self._check_transition(AttendanceAction.BREAK_START, self._sessions(user_id, local.date()))
            raise BreakAlreadyStarted("Anda sedang istirahat.")

        logger.info(
            "Break started",
            extra={"user_id": user_id, "action": AttendanceAction.BREAK_START.value, "session_id": current.session_id},
        )
        return self._reload(current.session_id)

    def break_end(
        self,
        user_id: int,
        *,
        photo_ref: str | None = None,
        location: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        utc, local = self._clock(now)
        current = self._check_transition(AttendanceAction.BREAK_END, self._sessions(user_id, local.date()))

        event = StampedEvent(at=utc, photo_ref=photo_ref, location=location)
        if not self._attendance.stamp_break_end(session_id=current.session_id, event=event):
            self._check_transition(AttendanceAction.BREAK_END, self._sessions(user_id, local.date()))
            raise NoActiveBreak("Anda belum mulai istirahat.")

        logger.info(
            "Break ended",
            extra={"user_id": user_id, "action": AttendanceAction.BREAK_END.value, "session_id": current.session_id},
        )
        return self._reload(current.session_id)

    def clock_out(
        self,
        user_id: int,
        *,
        photo_ref: str | None = None,
        location: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        utc, local = self._clock(now)
        current = self._check_transition(AttendanceAction.CLOCK_OUT, self._sessions(user_id, local.date()))

        event = StampedEvent(at=utc, photo_ref=photo_ref, location=location)
        if not self._attendance.close_session(session_id=current.session_id, check_out=event):
            raise NoOpenSession("Sesi sudah ditutup.")

        logger.info(
            "Clock-out session %s",
            current.session_number,
            extra={"user_id": user_id, "action": AttendanceAction.CLOCK_OUT.value, "session_id": current.session_id},
        )
        return self._reload(current.session_id)

    def permit(
        self,
        user_id: int,
        *,
        permit_type: PermitType,
        notes: str,
        photo_ref: str | None = None,
        location: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Sick/permission for today.

        With an open session the session is closed early (``permit_exit_at``);
        otherwise a session that is closed from the start is recorded.
        """
        notes = require_non_empty(notes, "Alasan izin")
        status = require_choice(permit_type, PermitType, "Jenis izin").as_status()
        utc, local = self._clock(now)
        today = local.date()

        self._require_user(user_id)
        sessions = self._sessions(user_id, today)
        current = _open_session(sessions)
        event = StampedEvent(at=utc, photo_ref=photo_ref, location=location)

        if current:
            if not self._attendance.close_session(
                session_id=current.session_id,
                check_out=event,
                status=status,
                notes=notes,
                permit_exit_at=utc,
            ):
                raise NoOpenSession("Sesi sudah ditutup.")
            session_id = current.session_id
        else:
            session_id = self._attendance.create_session(
                NewSession(
                    user_id=user_id,
                    work_date=today,
                    session_number=len(sessions) + 1,
                    status=status,
                    check_in=event,
                    check_out=StampedEvent(at=utc),
                    shift_label=DEFAULT_SHIFT_LABEL,
                    notes=notes,
                )
            )

        logger.info(
            "Permit recorded type=%s",
            status.value,
            extra={"user_id": user_id, "action": AttendanceAction.PERMIT.value, "session_id": session_id},
        )
        return self._reload(session_id)

    def resume(
        self,
        user_id: int,
        *,
        photo_ref: str | None = None,
        location: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Open the next session of today after the previous one was closed."""
        utc, local = self._clock(now)
        today = local.date()

        sessions = self._sessions(user_id, today)
        self._check_transition(AttendanceAction.RESUME, sessions)

        number = len(sessions) + 1
        decision = self._classifier.classify_resume(local, number)
        previous = sessions[-1]

        session_id = self._attendance.create_session(
            NewSession(
                user_id=user_id,
                work_date=today,
                session_number=number,
                status=decision.status,
                check_in=StampedEvent(at=utc, photo_ref=photo_ref, location=location),
                shift_type=previous.shift_type,
                shift_label=DEFAULT_SHIFT_LABEL,
                is_overtime=decision.is_overtime,
                notes=decision.note,
                permit_resume_at=utc,
            )
        )
        logger.info(
            "Resumed as session %s status=%s",
            number,
            decision.status.value,
            extra={"user_id": user_id, "action": AttendanceAction.RESUME.value, "session_id": session_id},
        )
        return self._reload(session_id)

    def get_active_or_latest(self, user_id: int, work_date: date) -> Optional[AttendanceSession]:
        sessions = self._sessions(user_id, work_date)
        return _open_session(sessions) or (sessions[-1] if sessions else None)

    def auto_close_stale(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceSession]:
        """Close yesterday's forgotten session at today's 06:00 (local)."""
        _, local = self._clock(now)
        today = local.date()
        if local.time() < AUTO_CLOSE_AT:
            return None

        yesterday = today - timedelta(days=1)
        stale = _open_session(self._sessions(user_id, yesterday))
        if not stale:
            return None

        notes = f"{stale.notes} {AUTO_CLOSE_NOTE}" if stale.notes else AUTO_CLOSE_NOTE
        closed = self._attendance.close_session(
            session_id=stale.session_id,
            check_out=StampedEvent(at=local_at(today, AUTO_CLOSE_AT, self._tz)),
            notes=notes,
        )
        if not closed:
            return None

        logger.info(
            "Auto-closed session %s from %s",
            stale.session_number,
            yesterday.isoformat(),
            extra={"user_id": user_id, "action": "autoClose", "session_id": stale.session_id},
        )
        return self._reload(stale.session_id)

    def get_today(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceSession]:
        _, local = self._clock(now)
        self.auto_close_stale(user_id, now=now)
        return self.get_active_or_latest(user_id, local.date())

    def get_today_sessions(self, user_id: int, *, now: datetime | None = None) -> Sequence[AttendanceSession]:
        _, local = self._clock(now)
        return self._sessions(user_id, local.date())

    def history(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        month: str | None = None,
        user_id: int | None = None,
        now: datetime | None = None,
    ) -> Sequence[SessionReportRow]:
        """Sessions in the 26th-25th window of `month`; employees only see their own."""
        if current_role != Role.ADMIN:
            if user_id is not None and int(user_id) != int(current_user_id):
                raise AuthorizationError("Anda tidak memiliki akses")
            user_id = current_user_id

        if not month:
            _, local = self._clock(now)
            month = payroll_month_of(local.date())

        start, end = payroll_window(*parse_month(month))
        return self._attendance.list_range(start_date=start, end_date=end, user_id=user_id)

    def get_history_ui(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT):
        rows = self._attendance.get_recent_for_user(user_id, limit)
        return [self.to_ui(r) for r in rows]

    def to_ui(self, s: AttendanceSession) -> dict:
        css = {
            AttendanceStatus.PRESENT: "bg-success",
            AttendanceStatus.LATE: "bg-danger",
            AttendanceStatus.SICK: "bg-warning text-dark",
            AttendanceStatus.PERMISSION: "bg-info text-dark",
            AttendanceStatus.ABSENT: "bg-secondary",
            AttendanceStatus.OVERTIME: "bg-primary",
        }.get(s.status, "bg-secondary")

        def _event(e: StampedEvent | None) -> dict | None:
            if e is None:
                return None
            return {
                "at": as_utc(e.at).isoformat(),
                "time": to_local(e.at, self._tz).strftime("%H:%M:%S"),
                "photo": e.photo_ref,
                "location": e.location,
            }

        return {
            "id": s.session_id,
            "user_id": s.user_id,
            "date": s.work_date.strftime("%Y-%m-%d"),
            "session_number": s.session_number,
            "status": s.status.value,
            "status_label": STATUS_LABELS.get(s.status.value, s.status.value),
            "css_class": css,
            "shift_label": s.shift_label,
            "shift_type": s.shift_type.value,
            "is_overtime": s.is_overtime,
            "notes": s.notes,
            "check_in": _event(s.check_in),
            "break_start": _event(s.break_start),
            "break_end": _event(s.break_end),
            "check_out": _event(s.check_out),
            "permit_exit_at": as_utc(s.permit_exit_at).isoformat() if s.permit_exit_at else None,
            "permit_resume_at": as_utc(s.permit_resume_at).isoformat() if s.permit_resume_at else None,
        }
