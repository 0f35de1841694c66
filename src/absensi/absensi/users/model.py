from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Entitas domain: karyawan / admin.

    Catatan: objek data murni (tanpa akses DB).
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    nik: Optional[str] = None
    email: Optional[str] = None
    branch: Optional[str] = None
    position: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class UserProfile:
    """Editable profile fields; None means "leave unchanged"."""

    full_name: Optional[str] = None
    nik: Optional[str] = None
    email: Optional[str] = None
    branch: Optional[str] = None
    position: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None
