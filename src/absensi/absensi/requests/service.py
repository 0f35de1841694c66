from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence, Tuple

from ..common.validators import require_choice, require_non_empty
from ..core.enums import PermitType, RequestStatus, Role
from ..core.exceptions import (
    AlreadyDecided,
    AuthorizationError,
    ConflictError,
    Forbidden,
    NotFoundError,
    ValidationError,
)
from ..schedules.repository import ScheduleRepository
from ..users.repository import UserRepository
from .model import LeavePermit, ShiftSwapRequest
from .repository import RequestRepository

logger = logging.getLogger(__name__)

_DECISIONS = {
    "approve": RequestStatus.APPROVED,
    "approved": RequestStatus.APPROVED,
    "reject": RequestStatus.REJECTED,
    "rejected": RequestStatus.REJECTED,
}


def _decision(value) -> RequestStatus:
    if isinstance(value, RequestStatus) and value != RequestStatus.PENDING:
        return value
    status = _DECISIONS.get(str(getattr(value, "value", value) or "").strip().lower())
    if status is None:
        raise ValidationError("Keputusan tidak valid (pilihan: approved, rejected)")
    return status


class RequestService:
    """Use case: tukar piket dan izin beberapa hari."""

    def __init__(
        self,
        requests: RequestRepository,
        users: UserRepository,
        schedules: Optional[ScheduleRepository] = None,
    ):
        self._requests = requests
        self._users = users
        self._schedules = schedules

    # -------- Shift swaps --------
    def create_swap(
        self,
        *,
        requester_id: int,
        target_user_id: Optional[int],
        requester_date: Optional[date],
        target_date: Optional[date],
        reason: str,
    ) -> int:
        if not target_user_id:
            raise ValidationError("Rekan tukar wajib dipilih")
        if requester_date is None or target_date is None:
            raise ValidationError("Tanggal piket wajib diisi")
        reason = require_non_empty(reason, "Alasan")

        if int(target_user_id) == int(requester_id):
            raise ValidationError("Tidak bisa menukar piket dengan diri sendiri")
        if not self._users.get_by_id(int(target_user_id)):
            raise NotFoundError("Karyawan tujuan tidak ditemukan")

        swap_id = self._requests.create_swap(
            requester_id=int(requester_id),
            target_user_id=int(target_user_id),
            requester_date=requester_date,
            target_date=target_date,
            reason=reason,
        )
        logger.info("Shift swap requested", extra={"user_id": int(requester_id), "action": "swap_create"})
        return swap_id

    def list_swaps(self, *, current_user_id: int, current_role: Role) -> Sequence[ShiftSwapRequest]:
        if current_role == Role.ADMIN:
            return self._requests.list_swaps()
        return self._requests.list_swaps(user_id=int(current_user_id))

    def respond_swap(
        self,
        *,
        swap_id: int,
        acting_user_id: int,
        current_role: Role,
        decision,
    ) -> ShiftSwapRequest:
        status = _decision(decision)

        swap = self._requests.get_swap(swap_id=int(swap_id))
        if not swap:
            raise NotFoundError("Permintaan tukar piket tidak ditemukan")
        if current_role != Role.ADMIN and int(acting_user_id) != swap.target_user_id:
            raise Forbidden("Hanya rekan tujuan atau admin yang dapat memproses permintaan ini")
        if swap.status != RequestStatus.PENDING:
            raise AlreadyDecided("Permintaan sudah diproses")

        moves = self._swap_moves(swap) if status == RequestStatus.APPROVED else []
        if not self._requests.decide_swap(
            swap_id=swap.swap_id,
            status=status,
            decided_by=int(acting_user_id),
            moves=moves,
        ):
            raise AlreadyDecided("Permintaan sudah diproses")

        logger.info(
            "Shift swap %s %s",
            swap.swap_id,
            status.value,
            extra={"user_id": int(acting_user_id), "action": "swap_respond"},
        )
        return self._requests.get_swap(swap_id=swap.swap_id) or swap

    def _swap_moves(self, swap: ShiftSwapRequest) -> list[Tuple[int, date]]:
        """Piket rows to move on approval. Raises ConflictError if a destination day is taken."""
        if not self._schedules:
            return []

        mine = self._schedules.get_for_user_and_date(user_id=swap.requester_id, work_date=swap.requester_date)
        theirs = self._schedules.get_for_user_and_date(user_id=swap.target_user_id, work_date=swap.target_date)

        moves: list[Tuple[int, date]] = []
        for row, dest in ((mine, swap.target_date), (theirs, swap.requester_date)):
            if not row or row.work_date == dest:
                continue
            if self._schedules.get_for_user_and_date(user_id=row.user_id, work_date=dest):
                raise ConflictError(f"Karyawan sudah terjadwal piket pada {dest:%d/%m/%Y}")
            moves.append((row.schedule_id, dest))
        return moves

    # -------- Leave permits --------
    def create_permit(
        self,
        *,
        user_id: int,
        permit_type,
        start_date: Optional[date],
        end_date: Optional[date],
        reason: str,
    ) -> int:
        permit_type = require_choice(permit_type, PermitType, "Jenis izin")
        if start_date is None or end_date is None:
            raise ValidationError("Tanggal izin wajib diisi")
        if end_date < start_date:
            raise ValidationError("Tanggal selesai harus >= tanggal mulai")
        reason = require_non_empty(reason, "Alasan")

        return self._requests.create_permit(
            user_id=int(user_id),
            permit_type=permit_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
        )

    def list_permits(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        status: Optional[RequestStatus] = None,
    ) -> Sequence[LeavePermit]:
        if current_role == Role.ADMIN:
            return self._requests.list_permits(status=status)
        return self._requests.list_permits(status=status, user_id=int(current_user_id))

    def set_permit_status(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        permit_id: int,
        decision,
    ) -> LeavePermit:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Anda tidak memiliki akses")
        status = _decision(decision)

        permit = self._requests.get_permit(permit_id=int(permit_id))
        if not permit:
            raise NotFoundError("Pengajuan izin tidak ditemukan")
        if permit.status != RequestStatus.PENDING:
            raise AlreadyDecided("Pengajuan sudah diproses")

        if not self._requests.decide_permit(permit_id=permit.permit_id, status=status, decided_by=int(admin_user_id)):
            raise AlreadyDecided("Pengajuan sudah diproses")

        logger.info(
            "Leave permit %s %s",
            permit.permit_id,
            status.value,
            extra={"user_id": int(admin_user_id), "action": "permit_decide"},
        )
        return self._requests.get_permit(permit_id=permit.permit_id) or permit
