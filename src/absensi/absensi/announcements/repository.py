from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Announcement


class AnnouncementRepository(Protocol):
    def create(
        self,
        *,
        title: str,
        content: str,
        image_url: Optional[str],
        expires_at: Optional[datetime],
        author_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Announcement]:
        """Newest first."""

        raise NotImplementedError

    def delete(self, announcement_id: int) -> bool:
        raise NotImplementedError
