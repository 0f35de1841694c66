from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import as_utc, to_db
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Announcement
from .repository import AnnouncementRepository

_COLUMNS = "announcement_id, title, content, image_url, expires_at, created_at, author_id"


def _to_announcement(r: Dict[str, Any]) -> Announcement:
    return Announcement(
        announcement_id=int(r["announcement_id"]),
        title=r["title"],
        content=r["content"],
        created_at=as_utc(r["created_at"]),
        image_url=r.get("image_url"),
        expires_at=as_utc(r.get("expires_at")),
        author_id=r.get("author_id"),
    )


class MySQLAnnouncementRepository(AnnouncementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        title: str,
        content: str,
        image_url: Optional[str],
        expires_at: Optional[datetime],
        author_id: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO announcements(title, content, image_url, expires_at, author_id, created_at)
                VALUES(%s,%s,%s,%s,%s,UTC_TIMESTAMP())
                """,
                (title, content, image_url, to_db(expires_at), author_id),
            )
            return int(cur.lastrowid)

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM announcements WHERE announcement_id=%s", (int(announcement_id),))
            r = fetchone(cur)
            return _to_announcement(r) if r else None

    def list_all(self) -> Sequence[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM announcements ORDER BY created_at DESC, announcement_id DESC")
            return [_to_announcement(r) for r in fetchall(cur)]

    def delete(self, announcement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM announcements WHERE announcement_id=%s", (int(announcement_id),))
            return cur.rowcount > 0
