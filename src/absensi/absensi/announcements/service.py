from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import as_utc, now_utc
from ..common.validators import optional_text, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import Announcement
from .repository import AnnouncementRepository

logger = logging.getLogger(__name__)


class AnnouncementService:
    """Papan informasi: CRUD sederhana dengan filter kedaluwarsa saat dibaca."""

    def __init__(self, announcements: AnnouncementRepository):
        self._announcements = announcements

    def create(
        self,
        *,
        current_role: Role,
        author_id: int,
        title: str,
        content: str,
        image_url: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")

        announcement_id = self._announcements.create(
            title=require_non_empty(title, "Judul"),
            content=require_non_empty(content, "Isi pengumuman"),
            image_url=optional_text(image_url),
            expires_at=as_utc(expires_at),
            author_id=int(author_id),
        )
        logger.info("Announcement %s created", announcement_id, extra={"user_id": int(author_id)})
        return announcement_id

    def list_visible(self, *, now: Optional[datetime] = None) -> Sequence[Announcement]:
        now = now or now_utc()
        return [a for a in self._announcements.list_all() if a.is_visible(now)]

    def list_all(self, *, current_role: Role) -> Sequence[Announcement]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")
        return self._announcements.list_all()

    def delete(self, *, current_role: Role, announcement_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")
        if not self._announcements.delete(int(announcement_id)):
            raise NotFoundError("Pengumuman tidak ditemukan")
