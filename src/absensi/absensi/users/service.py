from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import get_zone, local_date, now_utc
from ..common.validators import optional_text, require_min_length, require_non_empty
from ..core.constants import DEFAULT_PASSWORD, DEFAULT_TIMEZONE
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User, UserProfile
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    nik: Optional[str] = None


@dataclass(frozen=True)
class DashboardStats:
    total_employees: int
    present_today: int
    late_today: int


class AuthService:
    """Use case: login."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        username = (username or "").strip()
        user = self._users.get_by_username(username) if username else None
        if not user or not user.is_active:
            raise AuthenticationError("Username atau password salah")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.warning("Failed login", extra={"user_id": user.user_id, "action": "login"})
            raise AuthenticationError("Username atau password salah")

        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role, nik=user.nik)


class UserService:
    """Use case: manage employees (admin)."""

    def __init__(
        self,
        users: UserRepository,
        attendance: Optional[AttendanceRepository] = None,
        *,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self._users = users
        self._attendance = attendance
        self._tz = get_zone(timezone)

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Karyawan tidak ditemukan")
        return user

    def list_employees(self) -> Sequence[User]:
        return self._users.list_users(role=Role.EMPLOYEE)

    def list_all(self, *, current_role: Role) -> Sequence[User]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")
        return self._users.list_users()

    def create_employee(
        self,
        *,
        current_role: Role,
        full_name: str,
        nik: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        role: Role = Role.EMPLOYEE,
        email: Optional[str] = None,
        branch: Optional[str] = None,
        position: Optional[str] = None,
        phone_number: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> int:
        """Username defaults to the NIK, password to the shared default."""
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

        full_name = require_non_empty(full_name, "Nama lengkap")
        nik = optional_text(nik)
        username = optional_text(username) or nik
        if not username:
            raise ValidationError("Username atau NIK wajib diisi")
        password = password or DEFAULT_PASSWORD
        require_min_length(password, "Password", 6)

        if self._users.get_by_username(username):
            raise ValidationError("Username sudah terdaftar")
        if nik and self._users.get_by_nik(nik):
            raise ValidationError("NIK sudah terdaftar")

        user_id = self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=Role(role),
            profile=UserProfile(
                nik=nik,
                email=optional_text(email),
                branch=optional_text(branch),
                position=optional_text(position),
                phone_number=optional_text(phone_number),
                photo_url=optional_text(photo_url),
            ),
        )
        logger.info("Employee %s created", user_id, extra={"action": "user_create"})
        return user_id

    def update_employee(
        self,
        *,
        current_role: Role,
        user_id: int,
        profile: UserProfile,
        password: Optional[str] = None,
    ) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

        user = self.get(user_id)
        if profile.full_name is not None:
            require_non_empty(profile.full_name, "Nama lengkap")
        if profile.nik:
            other = self._users.get_by_nik(profile.nik)
            if other and other.user_id != user.user_id:
                raise ValidationError("NIK sudah terdaftar")

        self._users.update_profile(user.user_id, profile)
        if password:
            require_min_length(password, "Password", 6)
            self._users.update_password(user.user_id, generate_password_hash(password))

        return self.get(user.user_id)

    def delete_employee(self, *, current_role: Role, current_user_id: int, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

        user = self.get(user_id)
        if user.user_id == int(current_user_id):
            raise ValidationError("Tidak dapat menghapus akun sendiri")

        if not self._users.delete_by_id(user.user_id):
            raise NotFoundError("Karyawan tidak ditemukan")
        logger.info("Employee %s deleted", user.user_id, extra={"action": "user_delete"})

    def dashboard_stats(self, *, now: Optional[datetime] = None) -> DashboardStats:
        """Total employees and distinct employees present / late today."""
        employees = self._users.list_users(role=Role.EMPLOYEE)
        present: set[int] = set()
        late: set[int] = set()

        if self._attendance is not None:
            today = local_date(now or now_utc(), self._tz)
            for row in self._attendance.list_range(start_date=today, end_date=today):
                if row.session.status == AttendanceStatus.PRESENT:
                    present.add(row.session.user_id)
                elif row.session.status == AttendanceStatus.LATE:
                    late.add(row.session.user_id)

        return DashboardStats(total_employees=len(employees), present_today=len(present), late_today=len(late))
