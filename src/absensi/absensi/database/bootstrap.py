"""Schema and demo-data setup used by ``AUTO_INIT_DB``/``AUTO_SEED_DB`` and the scripts."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Mapping, NamedTuple

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig
from .mysql_base import db_cursor, fetchone

logger = logging.getLogger(__name__)

_DB_SELECTION = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$", re.IGNORECASE | re.MULTILINE)


class DemoUser(NamedTuple):
    full_name: str
    username: str
    password: str
    role: str
    nik: str | None
    position: str


DEMO_USERS = (
    DemoUser("Admin Demo", "admin", "admin123", "admin", None, "Admin"),
    DemoUser("Budi Santoso", "1001", "password123", "employee", "1001", "Staff"),
    DemoUser("Siti Rahma", "1002", "password123", "employee", "1002", "Staff"),
)


def split_statements(sql: str) -> Iterator[str]:
    """Split a script on top-level ``;``, skipping ``--`` comment lines.

    Semicolons inside quoted literals are kept.
    """
    statement: list[str] = []
    quote: str | None = None
    escaped = False
    for line in sql.splitlines(keepends=True):
        if quote is None and line.lstrip().startswith("--"):
            continue
        for ch in line:
            if escaped:
                escaped = False
            elif ch == "\\" and quote:
                escaped = True
            elif ch in ("'", '"'):
                if quote is None:
                    quote = ch
                elif quote == ch:
                    quote = None
            elif ch == ";" and quote is None:
                text = "".join(statement).strip()
                statement = []
                if text:
                    yield text
                continue
            statement.append(ch)
    text = "".join(statement).strip()
    if text:
        yield text


def _execute_file(db: DatabaseConnection, path: str | Path) -> int:
    # The configured database name wins over whatever the file selects.
    sql = _DB_SELECTION.sub("", Path(path).read_text(encoding="utf-8"))
    count = 0
    with db_cursor(db, dictionary=False) as (_, cur):
        for statement in split_statements(sql):
            cur.execute(statement)
            count += 1
    return count


def ensure_database_exists(db_config: Mapping) -> None:
    db = DatabaseConnection(DBConfig.from_settings(db_config))
    conn = db.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{db.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
        cur.close()
    finally:
        conn.close()


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    db = DatabaseConnection(DBConfig.from_settings(db_config))
    count = _execute_file(db, schema_path)
    logger.info("Applied schema %s (%d statements) to %s", schema_path, count, db.config.describe())


def apply_seed_sql(db_config: Mapping, *, seed_path: str | Path) -> None:
    db = DatabaseConnection(DBConfig.from_settings(db_config))
    count = _execute_file(db, seed_path)
    logger.info("Applied seed %s (%d statements)", seed_path, count)


def ensure_demo_users(db_config: Mapping, users: tuple[DemoUser, ...] = DEMO_USERS) -> None:
    """Insert or refresh the demo logins, resetting their passwords."""
    db = DatabaseConnection(DBConfig.from_settings(db_config))
    with db_cursor(db) as (_, cur):
        for u in users:
            password_hash = generate_password_hash(u.password)
            cur.execute("SELECT user_id FROM users WHERE username=%s", (u.username,))
            if fetchone(cur):
                cur.execute(
                    "UPDATE users SET full_name=%s, password_hash=%s, role=%s, nik=%s, is_active=1 WHERE username=%s",
                    (u.full_name, password_hash, u.role, u.nik, u.username),
                )
            else:
                cur.execute(
                    "INSERT INTO users (full_name, username, password_hash, role, nik, position) "
                    "VALUES (%s, %s, %s, %s, %s, %s)",
                    (u.full_name, u.username, password_hash, u.role, u.nik, u.position),
                )
    logger.info("Demo users ready: %s", ", ".join(u.username for u in users))


def list_tables(db_config: Mapping) -> list[str]:
    db = DatabaseConnection(DBConfig.from_settings(db_config))
    with db_cursor(db, dictionary=False) as (_, cur):
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
