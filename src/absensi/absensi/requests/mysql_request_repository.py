from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core.enums import PermitType, RequestStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import LeavePermit, ShiftSwapRequest
from .repository import RequestRepository

_SWAP_SELECT = """
    SELECT s.swap_id, s.requester_id, s.target_user_id, s.requester_date, s.target_date,
           s.reason, s.status, s.created_at, s.decided_by, s.decided_at,
           ru.full_name AS requester_name, tu.full_name AS target_name
    FROM shift_swaps s
    JOIN users ru ON ru.user_id = s.requester_id
    JOIN users tu ON tu.user_id = s.target_user_id
"""

_PERMIT_SELECT = """
    SELECT p.permit_id, p.user_id, p.permit_type, p.start_date, p.end_date, p.reason,
           p.status, p.created_at, p.decided_by, p.decided_at, u.full_name
    FROM leave_permits p
    JOIN users u ON u.user_id = p.user_id
"""


def _to_swap(r: Dict[str, Any]) -> ShiftSwapRequest:
    return ShiftSwapRequest(
        swap_id=int(r["swap_id"]),
        requester_id=int(r["requester_id"]),
        target_user_id=int(r["target_user_id"]),
        requester_date=r["requester_date"],
        target_date=r["target_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        requester_name=r.get("requester_name"),
        target_name=r.get("target_name"),
    )


def _to_permit(r: Dict[str, Any]) -> LeavePermit:
    return LeavePermit(
        permit_id=int(r["permit_id"]),
        user_id=int(r["user_id"]),
        permit_type=PermitType(r["permit_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        full_name=r.get("full_name"),
    )


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Shift swaps --------
    def create_swap(
        self,
        *,
        requester_id: int,
        target_user_id: int,
        requester_date: date,
        target_date: date,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_swaps(requester_id, target_user_id, requester_date, target_date, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(requester_id),
                    int(target_user_id),
                    requester_date,
                    target_date,
                    reason,
                    RequestStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_swap(self, *, swap_id: int) -> Optional[ShiftSwapRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SWAP_SELECT} WHERE s.swap_id=%s", (int(swap_id),))
            r = fetchone(cur)
            return _to_swap(r) if r else None

    def list_swaps(self, *, user_id: Optional[int] = None, limit: int = 200) -> Sequence[ShiftSwapRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if user_id is not None:
            clauses.append("(s.requester_id=%s OR s.target_user_id=%s)")
            params.extend([int(user_id), int(user_id)])

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SWAP_SELECT}
                WHERE {where}
                ORDER BY s.created_at DESC, s.swap_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_swap(r) for r in fetchall(cur)]

    def decide_swap(
        self,
        *,
        swap_id: int,
        status: RequestStatus,
        decided_by: int,
        moves: Sequence[Tuple[int, date]] = (),
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE shift_swaps
                    SET status=%s, decided_by=%s, decided_at=UTC_TIMESTAMP()
                    WHERE swap_id=%s AND status=%s
                    """,
                    (status.value, int(decided_by), int(swap_id), RequestStatus.PENDING.value),
                )
                if cur.rowcount == 0:
                    return False
                for schedule_id, work_date in moves:
                    cur.execute(
                        "UPDATE piket_schedules SET work_date=%s WHERE schedule_id=%s",
                        (work_date, int(schedule_id)),
                    )
                return True
        except Exception as e:
            # uq_piket_user_date; the whole decision is rolled back.
            if is_duplicate_key(e):
                raise ConflictError("Karyawan sudah terjadwal piket pada tanggal tersebut") from e
            raise

    # -------- Leave permits --------
    def create_permit(
        self,
        *,
        user_id: int,
        permit_type: PermitType,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_permits(user_id, permit_type, start_date, end_date, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), permit_type.value, start_date, end_date, reason, RequestStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get_permit(self, *, permit_id: int) -> Optional[LeavePermit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_PERMIT_SELECT} WHERE p.permit_id=%s", (int(permit_id),))
            r = fetchone(cur)
            return _to_permit(r) if r else None

    def list_permits(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeavePermit]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("p.status=%s")
            params.append(status.value)
        if user_id is not None:
            clauses.append("p.user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_PERMIT_SELECT}
                WHERE {where}
                ORDER BY p.created_at DESC, p.permit_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_permit(r) for r in fetchall(cur)]

    def decide_permit(self, *, permit_id: int, status: RequestStatus, decided_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_permits
                SET status=%s, decided_by=%s, decided_at=UTC_TIMESTAMP()
                WHERE permit_id=%s AND status=%s
                """,
                (status.value, int(decided_by), int(permit_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
