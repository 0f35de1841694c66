from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import mysql.connector

logger = logging.getLogger(__name__)

# Attendance timestamps are stored as naive UTC.
SESSION_TIME_ZONE = "+00:00"


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_settings(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "absensi_db")),
        )

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Opens one short-lived MySQL connection per unit of work.

    Every connection is pinned to UTC so DATETIME columns round-trip
    without the server's local offset leaking in.
    """

    def __init__(self, config: DBConfig):
        self.config = config

    def connect(self, *, with_database: bool = True):
        kwargs: dict[str, Any] = dict(
            host=self.config.host,
            port=self.config.port,
            user=self.config.user,
            password=self.config.password,
            time_zone=SESSION_TIME_ZONE,
            use_pure=True,
        )
        if with_database:
            kwargs["database"] = self.config.database
        return mysql.connector.connect(**kwargs)

    def ping(self) -> bool:
        try:
            conn = self.connect()
        except mysql.connector.Error as e:
            logger.warning("Database %s unreachable: %s", self.config.describe(), e)
            return False
        try:
            return bool(conn.is_connected())
        finally:
            conn.close()
