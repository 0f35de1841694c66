from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class PiketSchedule:
    """Satu penugasan piket: (karyawan, tanggal)."""

    schedule_id: int
    user_id: int
    work_date: date
    notes: Optional[str] = None
    full_name: Optional[str] = None
