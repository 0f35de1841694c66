from __future__ import annotations

from datetime import date, datetime, timezone

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.absensi.absensi.attendance.model import NewSession, StampedEvent
from src.absensi.absensi.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.absensi.absensi.core.enums import AttendanceStatus
from src.absensi.absensi.core.exceptions import ConflictError, SessionAlreadyOpen
from src.absensi.absensi.database.mysql_base import duplicate_key_name


class FailingCursor:
    def __init__(self, error):
        self.error = error

    def execute(self, sql, params=None):
        raise self.error

    def close(self):
        pass


class FakeConnection:
    def __init__(self, error):
        self.error = error
        self.rolled_back = False

    def cursor(self, dictionary=False):
        return FailingCursor(self.error)

    def commit(self):
        raise AssertionError("nothing should be committed")

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FakeDatabase:
    def __init__(self, error):
        self.conn = FakeConnection(error)

    def connect(self):
        return self.conn


def _dup(key: str) -> mysql.connector.IntegrityError:
    return mysql.connector.IntegrityError(
        msg=f"Duplicate entry '1-2026-03-04-1' for key '{key}'",
        errno=errorcode.ER_DUP_ENTRY,
    )


def _new_session() -> NewSession:
    return NewSession(
        user_id=1,
        work_date=date(2026, 3, 4),
        session_number=2,
        status=AttendanceStatus.PRESENT,
        check_in=StampedEvent(at=datetime(2026, 3, 4, 2, 0, tzinfo=timezone.utc)),
    )


@pytest.mark.parametrize(
    "key, expected",
    [
        ("attendance_sessions.uq_open_session", "uq_open_session"),
        ("uq_session_number", "uq_session_number"),
    ],
)
def test_duplicate_key_name(key, expected):
    assert duplicate_key_name(_dup(key)) == expected


def test_duplicate_key_name_ignores_other_errors():
    assert duplicate_key_name(mysql.connector.IntegrityError(msg="fk", errno=errorcode.ER_NO_REFERENCED_ROW_2)) is None
    assert duplicate_key_name(ValueError("x")) is None


def test_open_session_clash_is_session_already_open():
    db = FakeDatabase(_dup("attendance_sessions.uq_open_session"))

    with pytest.raises(SessionAlreadyOpen):
        MySQLAttendanceRepository(db).create_session(_new_session())
    assert db.conn.rolled_back


def test_session_number_clash_is_a_plain_conflict():
    db = FakeDatabase(_dup("attendance_sessions.uq_session_number"))

    with pytest.raises(ConflictError) as exc:
        MySQLAttendanceRepository(db).create_session(_new_session())

    assert not isinstance(exc.value, SessionAlreadyOpen)
    assert "coba lagi" in str(exc.value)
    assert db.conn.rolled_back
