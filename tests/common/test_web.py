from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from flask import Flask

from src.absensi.absensi.common.web import error_response, serialize, status_for
from src.absensi.absensi.core.enums import AttendanceStatus
from src.absensi.absensi.core.exceptions import (
    AlreadyDecided,
    AuthenticationError,
    Forbidden,
    NoOpenSession,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from src.absensi.absensi.schedules.model import PiketSchedule


@pytest.mark.parametrize(
    "exc, status",
    [
        (ValidationError("x"), 400),
        (AuthenticationError("x"), 401),
        (Forbidden("x"), 403),
        (NotFoundError("x"), 404),
        (NoOpenSession("x"), 409),
        (AlreadyDecided("x"), 409),
        (UpstreamError("x"), 502),
    ],
)
def test_status_for(exc, status):
    assert status_for(exc) == status


def test_error_response_bodies():
    app = Flask(__name__)
    with app.app_context():
        resp, status = error_response(UpstreamError("Gagal mengunggah foto"))
        assert status == 502
        assert resp.get_json() == {
            "success": False,
            "message": "Gagal mengunggah foto",
            "error": "UpstreamError",
            "retryable": True,
        }

        resp, status = error_response(RuntimeError("boom"))
        assert status == 500
        assert resp.get_json()["message"] == "Terjadi kesalahan sistem"


def test_serialize_dataclass_enums_and_dates():
    data = serialize(
        [
            PiketSchedule(schedule_id=1, user_id=2, work_date=date(2026, 3, 4)),
            {"status": AttendanceStatus.LATE, "at": datetime(2026, 3, 4, 1, 0, tzinfo=timezone.utc)},
        ]
    )
    assert data[0] == {"schedule_id": 1, "user_id": 2, "work_date": "2026-03-04", "notes": None, "full_name": None}
    assert data[1] == {"status": "late", "at": "2026-03-04T01:00:00+00:00"}
