from __future__ import annotations

import base64
from dataclasses import replace
from types import SimpleNamespace

import pytest
from flask import Flask

from src.absensi.absensi.attendance.commands import CaptureService
from src.absensi.absensi.attendance.controller import register
from src.absensi.absensi.attendance.model import AttendanceSession
from src.absensi.absensi.attendance.service import AttendanceService
from src.absensi.absensi.core.enums import Role
from src.absensi.absensi.users.model import User


class Users:
    def get_by_id(self, user_id):
        if user_id == 1:
            return User(user_id=1, full_name="Budi", username="1001", password_hash="x", role=Role.EMPLOYEE)
        return None


class Sessions:
    def __init__(self):
        self.rows: dict[int, AttendanceSession] = {}

    def get_by_id(self, session_id):
        return self.rows.get(session_id)

    def list_for_user_and_date(self, user_id, work_date):
        return sorted(
            (s for s in self.rows.values() if s.user_id == user_id and s.work_date == work_date),
            key=lambda s: s.session_number,
        )

    def get_recent_for_user(self, user_id, limit):
        return [s for s in self.rows.values() if s.user_id == user_id][:limit]

    def create_session(self, new):
        sid = len(self.rows) + 1
        self.rows[sid] = AttendanceSession(
            session_id=sid,
            user_id=new.user_id,
            work_date=new.work_date,
            session_number=new.session_number,
            status=new.status,
            shift_label=new.shift_label,
            check_in=new.check_in,
            notes=new.notes,
            is_overtime=new.is_overtime,
        )
        return sid

    def close_session(self, *, session_id, check_out, status=None, notes=None, permit_exit_at=None):
        s = self.rows[session_id]
        if not s.is_open:
            return False
        self.rows[session_id] = replace(s, check_out=check_out, notes=notes or s.notes)
        return True


class Photos:
    def __init__(self):
        self.uploads = []

    def upload(self, content, filename, mime_type, metadata):
        self.uploads.append(content)
        return "attendance/x.jpg"


@pytest.fixture
def client_and_photos():
    app = Flask(__name__)
    app.secret_key = "test"

    users, photos = Users(), Photos()
    attendance = AttendanceService(Sessions(), users)
    container = SimpleNamespace(
        attendance_service=attendance,
        capture_service=CaptureService(attendance, users, photos),
        timezone="Asia/Jakarta",
    )
    register(app, container)
    return app.test_client(), photos


def _login(client):
    with client.session_transaction() as sess:
        sess["user_id"] = 1
        sess["role"] = "employee"


def test_requires_login(client_and_photos):
    client, _ = client_and_photos
    assert client.get("/api/attendance/today").status_code == 401


def test_clock_in_then_conflict(client_and_photos):
    client, photos = client_and_photos
    _login(client)
    photo = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8img").decode()

    resp = client.post("/api/attendance/clock-in", json={"photo": photo, "location": "-6.2000, 106.8166"})
    body = resp.get_json()

    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["session_number"] == 1
    assert body["data"]["check_in"]["photo"] == "attendance/x.jpg"
    assert body["data"]["check_in"]["map_url"] == "https://www.google.com/maps?q=-6.2000,106.8166"
    assert photos.uploads == [b"\xff\xd8img"]

    again = client.post("/api/attendance/clock-in", json={"photo": photo})
    assert again.status_code == 409
    assert again.get_json()["error"] == "SessionAlreadyOpen"
    assert len(photos.uploads) == 1

    today = client.get("/api/attendance/today").get_json()
    assert today["data"]["id"] == body["data"]["id"]


def test_unknown_action_and_bad_permit(client_and_photos):
    client, _ = client_and_photos
    _login(client)

    assert client.post("/api/attendance/teleport", json={}).status_code == 404

    resp = client.post("/api/attendance/permit", json={"type": "sick", "notes": ""})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_employee_cannot_read_someone_elses_history(client_and_photos):
    client, _ = client_and_photos
    _login(client)
    assert client.get("/api/attendance?userId=2&month=2026-03").status_code == 403
