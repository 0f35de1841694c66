from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import as_utc


@dataclass(frozen=True)
class Announcement:
    announcement_id: int
    title: str
    content: str
    created_at: datetime
    image_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    author_id: Optional[int] = None

    def is_visible(self, now: datetime) -> bool:
        return self.expires_at is None or as_utc(self.expires_at) > as_utc(now)
