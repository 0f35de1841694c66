from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import as_utc, get_zone, now_utc, to_local
from ..common.validators import require_choice, require_non_empty
from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import AttendanceAction, PermitType, ShiftType
from ..core.exceptions import NotFoundError, ValidationError
from ..geo.geocoding import Geocoder, format_coordinates
from ..photos.store import PhotoMetadata, PhotoStore
from ..users.repository import UserRepository
from .model import AttendanceSession
from .service import AttendanceService

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:([A-Za-z-+/]+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class PhotoPayload:
    content: bytes
    mime_type: str = "image/jpeg"
    filename: str = "photo.jpg"

    @classmethod
    def from_data_url(cls, value: str) -> "PhotoPayload":
        """Decode a ``data:image/...;base64,`` URL sent by the camera page."""
        m = _DATA_URL_RE.match((value or "").strip())
        if not m or not m.group(1).startswith("image/"):
            raise ValidationError("Format foto tidak valid")
        try:
            content = base64.b64decode(m.group(2), validate=False)
        except (binascii.Error, ValueError):
            raise ValidationError("Format foto tidak valid")
        return cls(content=content, mime_type=m.group(1))


@dataclass(frozen=True)
class AttendanceCommand:
    """One capture submission: which button was pressed plus everything it needs."""

    action: AttendanceAction
    user_id: int
    photo: Optional[PhotoPayload] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    shift_label: Optional[str] = None
    shift_type: Optional[ShiftType] = None
    permit_type: Optional[PermitType] = None
    notes: Optional[str] = None


class CaptureService:
    """Runs a command: precheck, resolve location, upload photo, then act.

    Nothing is written to the attendance table unless every earlier step
    succeeded, so a failed upload leaves no partial session behind.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        users: UserRepository,
        photos: PhotoStore,
        geocoder: Optional[Geocoder] = None,
        *,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self._attendance = attendance
        self._users = users
        self._photos = photos
        self._geocoder = geocoder
        self._tz = get_zone(timezone)

    def _validate(self, command: AttendanceCommand) -> AttendanceCommand:
        action = require_choice(command.action, AttendanceAction, "Aksi")
        if action == AttendanceAction.PERMIT:
            require_choice(command.permit_type, PermitType, "Jenis izin")
            require_non_empty(command.notes, "Alasan izin")
        if command.shift_type is not None:
            require_choice(command.shift_type, ShiftType, "Jenis shift")
        return command

    def resolve_location(self, command: AttendanceCommand) -> Optional[str]:
        if command.location and command.location.strip():
            return command.location.strip()
        if command.latitude is None or command.longitude is None:
            return None
        if self._geocoder is None:
            return format_coordinates(command.latitude, command.longitude)
        return self._geocoder.reverse(command.latitude, command.longitude)

    def submit(self, command: AttendanceCommand, *, now: Optional[datetime] = None) -> AttendanceSession:
        command = self._validate(command)
        action = AttendanceAction(command.action)
        now = as_utc(now) if now is not None else now_utc()

        user = self._users.get_by_id(command.user_id)
        if not user:
            raise NotFoundError("Karyawan tidak ditemukan")

        self._attendance.precheck(action, user.user_id, now=now)
        location = self.resolve_location(command)

        photo_ref = None
        if command.photo is not None:
            photo_ref = self._photos.upload(
                command.photo.content,
                command.photo.filename,
                command.photo.mime_type,
                PhotoMetadata(
                    employee_name=user.full_name,
                    action=action,
                    taken_at=to_local(now, self._tz),
                    location=location,
                ),
            )

        logger.debug("Dispatching %s", action.value, extra={"user_id": user.user_id, "action": action.value})

        if action == AttendanceAction.CLOCK_IN:
            return self._attendance.clock_in(
                user.user_id,
                photo_ref=photo_ref,
                location=location,
                shift_label=command.shift_label,
                shift_type=ShiftType(command.shift_type) if command.shift_type else None,
                now=now,
            )
        if action == AttendanceAction.BREAK_START:
            return self._attendance.break_start(user.user_id, photo_ref=photo_ref, location=location, now=now)
        if action == AttendanceAction.BREAK_END:
            return self._attendance.break_end(user.user_id, photo_ref=photo_ref, location=location, now=now)
        if action == AttendanceAction.CLOCK_OUT:
            return self._attendance.clock_out(user.user_id, photo_ref=photo_ref, location=location, now=now)
        if action == AttendanceAction.PERMIT:
            return self._attendance.permit(
                user.user_id,
                permit_type=PermitType(command.permit_type),
                notes=command.notes,
                photo_ref=photo_ref,
                location=location,
                now=now,
            )
        return self._attendance.resume(user.user_id, photo_ref=photo_ref, location=location, now=now)
