"""Load database/seed.sql and (re)create the demo accounts.

Demo logins: admin / admin123, 1001 / password123, 1002 / password123.
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.absensi.absensi.common.logging_config import configure_logging
from src.absensi.absensi.database.bootstrap import apply_seed_sql, ensure_demo_users

logger = logging.getLogger("absensi.seed_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FORMAT", "text"))
    db_config = dict(settings.DB_CONFIG)

    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
    ensure_demo_users(db_config)
    logger.info("Demo data seeded into %s", db_config.get("database"))


if __name__ == "__main__":
    main()
