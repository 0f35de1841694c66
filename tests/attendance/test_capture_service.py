from __future__ import annotations

import base64
from dataclasses import replace
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from src.absensi.absensi.attendance.commands import AttendanceCommand, CaptureService, PhotoPayload
from src.absensi.absensi.attendance.model import AttendanceSession
from src.absensi.absensi.attendance.service import AttendanceService
from src.absensi.absensi.core.enums import AttendanceAction, AttendanceStatus, PermitType, Role
from src.absensi.absensi.core.exceptions import NotFoundError, SessionAlreadyOpen, UpstreamError, ValidationError
from src.absensi.absensi.users.model import User

JKT = ZoneInfo("Asia/Jakarta")
NOW = datetime(2026, 3, 4, 8, 5, 30, tzinfo=JKT)


class Users:
    def __init__(self):
        self._u = {1: User(user_id=1, full_name="Siti Rahma", username="1002", password_hash="x", role=Role.EMPLOYEE)}

    def get_by_id(self, user_id):
        return self._u.get(user_id)


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
            check_out=new.check_out,
            notes=new.notes,
        )
        return sid

    def close_session(self, *, session_id, check_out, status=None, notes=None, permit_exit_at=None):
        s = self.rows[session_id]
        self.rows[session_id] = replace(s, check_out=check_out, status=status or s.status, notes=notes or s.notes)
        return True


class RecordingPhotoStore:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = []

    def upload(self, content, filename, mime_type, metadata):
        if self.fail:
            raise UpstreamError("Gagal mengunggah foto. Silakan coba lagi.")
        self.uploads.append((content, mime_type, metadata))
        return f"attendance/photo{len(self.uploads)}.jpg"


class StaticGeocoder:
    def __init__(self):
        self.calls = []

    def reverse(self, lat, lon):
        self.calls.append((lat, lon))
        return "Jl. Sudirman, Jakarta Pusat"


def _capture(photos=None, geocoder=None):
    sessions = Sessions()
    users = Users()
    attendance = AttendanceService(sessions, users)
    capture = CaptureService(attendance, users, photos or RecordingPhotoStore(), geocoder)
    return capture, sessions


def _photo() -> PhotoPayload:
    return PhotoPayload(content=b"\xff\xd8jpeg", mime_type="image/jpeg")


def test_clock_in_uploads_photo_and_reverse_geocodes():
    photos, geocoder = RecordingPhotoStore(), StaticGeocoder()
    capture, _ = _capture(photos, geocoder)

    s = capture.submit(
        AttendanceCommand(
            action=AttendanceAction.CLOCK_IN,
            user_id=1,
            photo=_photo(),
            latitude=-6.2,
            longitude=106.8166,
        ),
        now=NOW,
    )

    assert s.status == AttendanceStatus.PRESENT
    assert s.check_in.photo_ref == "attendance/photo1.jpg"
    assert s.check_in.location == "Jl. Sudirman, Jakarta Pusat"
    assert geocoder.calls == [(-6.2, 106.8166)]

    _, mime, meta = photos.uploads[0]
    assert mime == "image/jpeg"
    assert meta.employee_name == "Siti Rahma"
    assert meta.action == AttendanceAction.CLOCK_IN
    assert (meta.taken_at.hour, meta.taken_at.minute) == (8, 5)


def test_typed_location_wins_over_coordinates():
    geocoder = StaticGeocoder()
    capture, _ = _capture(geocoder=geocoder)

    s = capture.submit(
        AttendanceCommand(
            action=AttendanceAction.CLOCK_IN, user_id=1, location=" Kantor Pusat ", latitude=1.0, longitude=2.0
        ),
        now=NOW,
    )

    assert s.check_in.location == "Kantor Pusat"
    assert geocoder.calls == []


def test_coordinates_without_geocoder_are_kept_as_text():
    capture, _ = _capture()
    s = capture.submit(
        AttendanceCommand(action=AttendanceAction.CLOCK_IN, user_id=1, latitude=-6.2, longitude=106.81666),
        now=NOW,
    )
    assert s.check_in.location == "-6.2000, 106.8167"


def test_rejected_transition_uploads_nothing():
    photos = RecordingPhotoStore()
    capture, _ = _capture(photos)
    command = AttendanceCommand(action=AttendanceAction.CLOCK_IN, user_id=1, photo=_photo())

    capture.submit(command, now=NOW)
    with pytest.raises(SessionAlreadyOpen):
        capture.submit(command, now=NOW)

    assert len(photos.uploads) == 1


def test_failed_upload_leaves_no_session():
    capture, sessions = _capture(RecordingPhotoStore(fail=True))

    with pytest.raises(UpstreamError):
        capture.submit(AttendanceCommand(action=AttendanceAction.CLOCK_IN, user_id=1, photo=_photo()), now=NOW)

    assert sessions.rows == {}


def test_permit_requires_reason_before_upload():
    photos = RecordingPhotoStore()
    capture, _ = _capture(photos)

    with pytest.raises(ValidationError):
        capture.submit(
            AttendanceCommand(action=AttendanceAction.PERMIT, user_id=1, photo=_photo(), permit_type=PermitType.SICK),
            now=NOW,
        )
    assert photos.uploads == []


def test_permit_dispatch():
    capture, _ = _capture()
    s = capture.submit(
        AttendanceCommand(action=AttendanceAction.PERMIT, user_id=1, permit_type=PermitType.SICK, notes="Demam"),
        now=NOW,
    )
    assert s.status == AttendanceStatus.SICK


def test_unknown_user():
    capture, _ = _capture()
    with pytest.raises(NotFoundError):
        capture.submit(AttendanceCommand(action=AttendanceAction.CLOCK_IN, user_id=42), now=NOW)


def test_photo_from_data_url():
    encoded = base64.b64encode(b"\x89PNGdata").decode()
    photo = PhotoPayload.from_data_url(f"data:image/png;base64,{encoded}")

    assert photo.content == b"\x89PNGdata"
    assert photo.mime_type == "image/png"

    with pytest.raises(ValidationError):
        PhotoPayload.from_data_url("data:text/plain;base64,aGVsbG8=")
    with pytest.raises(ValidationError):
        PhotoPayload.from_data_url("not a data url")
