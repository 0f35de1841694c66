from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import PermitType, RequestStatus
from .model import LeavePermit, ShiftSwapRequest


class RequestRepository(Protocol):
    # Shift swaps
    def create_swap(
        self,
        *,
        requester_id: int,
        target_user_id: int,
        requester_date: date,
        target_date: date,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_swap(self, *, swap_id: int) -> Optional[ShiftSwapRequest]:
        raise NotImplementedError

    def list_swaps(self, *, user_id: Optional[int] = None, limit: int = 200) -> Sequence[ShiftSwapRequest]:
        """All swaps, or those where `user_id` is requester or target. Newest first."""

        raise NotImplementedError

    def decide_swap(
        self,
        *,
        swap_id: int,
        status: RequestStatus,
        decided_by: int,
        moves: Sequence[Tuple[int, date]] = (),
    ) -> bool:
        """Only a pending swap can be decided.

        ``moves`` are ``(schedule_id, new_work_date)`` piket changes committed
        together with the decision; a clash raises ConflictError and nothing is saved.
        """

        raise NotImplementedError

    # Leave permits
    def create_permit(
        self,
        *,
        user_id: int,
        permit_type: PermitType,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_permit(self, *, permit_id: int) -> Optional[LeavePermit]:
        raise NotImplementedError

    def list_permits(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeavePermit]:
        raise NotImplementedError

    def decide_permit(self, *, permit_id: int, status: RequestStatus, decided_by: int) -> bool:
        raise NotImplementedError
