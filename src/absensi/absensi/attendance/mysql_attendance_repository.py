from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import as_utc, to_db
from ..core.enums import AttendanceStatus, ShiftType
from ..core.exceptions import ConflictError, SessionAlreadyOpen
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_key_name, fetchall, fetchone, is_duplicate_key
from .model import AttendanceSession, NewSession, SessionReportRow, StampedEvent
from .repository import AttendanceRepository

_SESSION_COLUMNS = """
    a.session_id, a.user_id, a.work_date, a.session_number,
    a.check_in_at, a.check_in_photo, a.check_in_location,
    a.break_start_at, a.break_start_photo, a.break_start_location,
    a.break_end_at, a.break_end_photo, a.break_end_location,
    a.check_out_at, a.check_out_photo, a.check_out_location,
    a.shift_label, a.shift_type, a.status, a.is_overtime, a.notes,
    a.permit_exit_at, a.permit_resume_at
"""


def _event(r: Dict[str, Any], prefix: str) -> Optional[StampedEvent]:
    at = r.get(f"{prefix}_at")
    if at is None:
        return None
    return StampedEvent(at=as_utc(at), photo_ref=r.get(f"{prefix}_photo"), location=r.get(f"{prefix}_location"))


def _to_session(r: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        session_number=int(r["session_number"]),
        status=AttendanceStatus(r["status"]),
        shift_type=ShiftType(r.get("shift_type") or ShiftType.REGULAR.value),
        shift_label=r.get("shift_label"),
        check_in=_event(r, "check_in"),
        break_start=_event(r, "break_start"),
        break_end=_event(r, "break_end"),
        check_out=_event(r, "check_out"),
        is_overtime=bool(r.get("is_overtime")),
        notes=r.get("notes"),
        permit_exit_at=as_utc(r.get("permit_exit_at")),
        permit_resume_at=as_utc(r.get("permit_resume_at")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions a WHERE a.session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_for_user_and_date(self, user_id: int, work_date: date) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions a
                WHERE a.user_id=%s AND a.work_date=%s
                ORDER BY a.session_number ASC
                """,
                (int(user_id), work_date),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions a
                WHERE a.user_id=%s
                ORDER BY a.work_date DESC, a.session_number DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def create_session(self, new: NewSession) -> int:
        check_out = new.check_out
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        user_id, work_date, session_number,
                        check_in_at, check_in_photo, check_in_location,
                        check_out_at, check_out_photo, check_out_location,
                        shift_label, shift_type, status, is_overtime, notes, permit_resume_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(new.user_id),
                        new.work_date,
                        int(new.session_number),
                        to_db(new.check_in.at),
                        new.check_in.photo_ref,
                        new.check_in.location,
                        to_db(check_out.at) if check_out else None,
                        check_out.photo_ref if check_out else None,
                        check_out.location if check_out else None,
                        new.shift_label,
                        new.shift_type.value,
                        new.status.value,
                        int(new.is_overtime),
                        new.notes,
                        to_db(new.permit_resume_at),
                    ),
                )
                return int(cur.lastrowid)
        except Exception as e:
            # Lost a race with a concurrent request for the same day.
            key = duplicate_key_name(e)
            if key == "uq_session_number":
                raise ConflictError("Sesi lain baru saja tercatat. Silakan coba lagi.") from e
            if is_duplicate_key(e):
                raise SessionAlreadyOpen("Sesi sebelumnya belum selesai (belum absen pulang).") from e
            raise

    def stamp_break_start(self, *, session_id: int, event: StampedEvent) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET break_start_at=%s, break_start_photo=%s, break_start_location=%s
                WHERE session_id=%s AND check_out_at IS NULL
                  AND break_start_at IS NULL
                """,
                (to_db(event.at), event.photo_ref, event.location, int(session_id)),
            )
            return cur.rowcount > 0

    def stamp_break_end(self, *, session_id: int, event: StampedEvent) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET break_end_at=%s, break_end_photo=%s, break_end_location=%s
                WHERE session_id=%s AND check_out_at IS NULL
                  AND break_start_at IS NOT NULL AND break_end_at IS NULL
                """,
                (to_db(event.at), event.photo_ref, event.location, int(session_id)),
            )
            return cur.rowcount > 0

    def close_session(
        self,
        *,
        session_id: int,
        check_out: StampedEvent,
        status: Optional[AttendanceStatus] = None,
        notes: Optional[str] = None,
        permit_exit_at: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET check_out_at=%s, check_out_photo=%s, check_out_location=%s,
                    status=COALESCE(%s, status),
                    notes=COALESCE(%s, notes),
                    permit_exit_at=COALESCE(%s, permit_exit_at)
                WHERE session_id=%s AND check_out_at IS NULL
                """,
                (
                    to_db(check_out.at),
                    check_out.photo_ref,
                    check_out.location,
                    status.value if status else None,
                    notes,
                    to_db(permit_exit_at),
                    int(session_id),
                ),
            )
            return cur.rowcount > 0

    def list_range(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[SessionReportRow]:
        clauses = ["a.work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}, u.full_name, u.nik
                FROM attendance_sessions a
                JOIN users u ON u.user_id = a.user_id
                WHERE {where}
                ORDER BY a.work_date DESC, a.user_id ASC, a.session_number ASC
                """,
                tuple(params),
            )
            return [
                SessionReportRow(session=_to_session(r), full_name=r["full_name"], nik=r.get("nik"))
                for r in fetchall(cur)
            ]
