from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory

from config import get_settings_module

from .common.logging_config import configure_logging
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .container import build_container
from .announcements.controller import register as register_announcements
from .attendance.controller import register as register_attendance
from .recap.controller import register as register_recap
from .requests.controller import register as register_requests
from .schedules.controller import register as register_schedules
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="templates")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FORMAT", "text"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    upload_dir = os.path.abspath(getattr(settings, "UPLOAD_DIR", "uploads"))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    root = Path(__file__).resolve().parents[3]
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=root / "database" / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=root / "database" / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")

    container = build_container(
        db_config=db_config,
        timezone=getattr(settings, "TIMEZONE", "Asia/Jakarta"),
        upload_dir=upload_dir,
        photo_watermark=bool(getattr(settings, "PHOTO_WATERMARK", True)),
        geocoder_url=getattr(settings, "GEOCODER_URL"),
        geocoder_user_agent=getattr(settings, "GEOCODER_USER_AGENT"),
        geocoder_timeout=float(getattr(settings, "GEOCODER_TIMEOUT", 10)),
        extra_holidays=getattr(settings, "EXTRA_HOLIDAYS", ""),
    )

    register_users(app, container)
    register_attendance(app, container)
    register_schedules(app, container)
    register_requests(app, container)
    register_announcements(app, container)
    register_recap(app, container)

    @app.route("/uploads/<path:filename>", endpoint="uploaded_file")
    def uploaded_file(filename: str):
        return send_from_directory(upload_dir, filename)

    @app.route("/api/health", endpoint="api_health")
    def api_health():
        database_up = container.conn.ping()
        body = {"success": database_up, "status": "ok" if database_up else "degraded", "database": database_up}
        return jsonify(body), 200 if database_up else 503

    return app
