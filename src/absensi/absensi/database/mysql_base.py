from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

import mysql.connector
from mysql.connector import errorcode

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


@contextmanager
def db_cursor(db: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """Yield ``(connection, cursor)``; commit on clean exit, roll back on error."""
    conn = db.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Row]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Row]:
    return list(cur.fetchall() or ())


def is_duplicate_key(exc: Exception) -> bool:
    """True for unique-index violations (open session, piket day, username)."""
    if not isinstance(exc, mysql.connector.IntegrityError):
        return False
    duplicate = getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY
    if duplicate:
        logger.debug("Unique constraint hit: %s", exc)
    return duplicate


_KEY_NAME = re.compile(r"for key '(?:[\w$]+\.)?([\w$]+)'")


def duplicate_key_name(exc: Exception) -> Optional[str]:
    """Name of the unique index a duplicate-key error hit, e.g. ``uq_open_session``."""
    if not is_duplicate_key(exc):
        return None
    match = _KEY_NAME.search(getattr(exc, "msg", None) or str(exc))
    return match.group(1) if match else None
