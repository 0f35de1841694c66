from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PiketSchedule
from .repository import ScheduleRepository


def _to_schedule(r: Dict[str, Any]) -> PiketSchedule:
    return PiketSchedule(
        schedule_id=int(r["schedule_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        notes=r.get("notes"),
        full_name=r.get("full_name"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, schedule_id: int) -> Optional[PiketSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT schedule_id, user_id, work_date, notes FROM piket_schedules WHERE schedule_id=%s",
                (int(schedule_id),),
            )
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[PiketSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT schedule_id, user_id, work_date, notes
                FROM piket_schedules
                WHERE user_id=%s AND work_date=%s
                """,
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def upsert(self, *, user_id: int, work_date: date, notes: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO piket_schedules(user_id, work_date, notes)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE notes=VALUES(notes)
                """,
                (int(user_id), work_date, notes),
            )

            # If it was an update, lastrowid can be 0; fetch schedule_id.
            if cur.lastrowid:
                return int(cur.lastrowid)

            cur.execute(
                "SELECT schedule_id FROM piket_schedules WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return int(r["schedule_id"]) if r else 0

    def delete(self, *, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM piket_schedules WHERE schedule_id=%s", (int(schedule_id),))
            return cur.rowcount > 0

    def list_range(self, *, start: date, end: date, user_id: Optional[int] = None) -> Sequence[PiketSchedule]:
        clauses = ["p.work_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if user_id is not None:
            clauses.append("p.user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT p.schedule_id, p.user_id, p.work_date, p.notes, u.full_name
                FROM piket_schedules p
                JOIN users u ON u.user_id = p.user_id
                WHERE {where}
                ORDER BY p.work_date ASC, u.full_name ASC
                """,
                tuple(params),
            )
            return [_to_schedule(r) for r in fetchall(cur)]
