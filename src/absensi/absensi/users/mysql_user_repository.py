from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import User, UserProfile
from .repository import UserRepository

_USER_COLUMNS = """
    user_id, full_name, username, password_hash, role, nik, email,
    branch, position, phone_number, photo_url, is_active
"""


def _to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        nik=row.get("nik"),
        email=row.get("email"),
        branch=row.get("branch"),
        position=row.get("position"),
        phone_number=row.get("phone_number"),
        photo_url=row.get("photo_url"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_one("username", username)

    def get_by_nik(self, nik: str) -> Optional[User]:
        return self._get_one("nik", nik)

    def list_users(self, *, role: Optional[Role] = None) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY full_name ASC, user_id ASC")
            else:
                cur.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE role=%s ORDER BY full_name ASC, user_id ASC",
                    (role.value,),
                )
            return [_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        role: Role,
        profile: UserProfile,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(
                        full_name, username, password_hash, role, nik, email,
                        branch, position, phone_number, photo_url, is_active
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (
                        full_name,
                        username,
                        password_hash,
                        role.value,
                        profile.nik,
                        profile.email,
                        profile.branch,
                        profile.position,
                        profile.phone_number,
                        profile.photo_url,
                    ),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ValidationError("Username atau NIK sudah terdaftar") from e
            raise

    def update_profile(self, user_id: int, profile: UserProfile) -> bool:
        changes = {k: v for k, v in asdict(profile).items() if v is not None}
        if not changes:
            return False

        assignments = ", ".join(f"{column}=%s" for column in changes)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE users SET {assignments} WHERE user_id=%s",
                    (*changes.values(), int(user_id)),
                )
                return cur.rowcount > 0
        except Exception as e:
            if is_duplicate_key(e):
                raise ValidationError("NIK sudah terdaftar") from e
            raise

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        # Sessions, piket entries, swaps and permits go with it (ON DELETE CASCADE).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
