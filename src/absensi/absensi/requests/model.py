from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import PermitType, RequestStatus


@dataclass(frozen=True)
class ShiftSwapRequest:
    swap_id: int
    requester_id: int
    target_user_id: int
    requester_date: date
    target_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    requester_name: Optional[str] = None
    target_name: Optional[str] = None


@dataclass(frozen=True)
class LeavePermit:
    """Izin/sakit beberapa hari (terpisah dari aksi izin di sesi absensi)."""

    permit_id: int
    user_id: int
    permit_type: PermitType
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    full_name: Optional[str] = None
