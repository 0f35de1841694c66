from __future__ import annotations

from datetime import datetime

from flask import Flask, jsonify, request

from ..common.datetime_utils import get_zone, now_utc, to_local
from ..common.web import admin_required, current_role, current_user_id, error_response, login_required, payload, serialize
from ..container import Container
from ..core.exceptions import ValidationError
from ..photos.store import save_upload


def _parse_expiry(value, tz):
    """Accepts 'YYYY-MM-DD' or 'YYYY-MM-DDTHH:MM' in office local time."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError("Format tanggal kedaluwarsa tidak valid")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def register(app: Flask, container: Container) -> None:
    service = container.announcement_service
    tz = get_zone(container.timezone)

    @app.route("/api/announcements", methods=["GET"], endpoint="api_announcements")
    @login_required
    def api_announcements():
        try:
            return jsonify({"success": True, "data": serialize(list(service.list_visible()))})
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/announcements", methods=["GET"], endpoint="api_admin_announcements")
    @admin_required
    def api_admin_announcements():
        try:
            return jsonify({"success": True, "data": serialize(list(service.list_all(current_role=current_role())))})
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/announcements", methods=["POST"], endpoint="api_admin_announcements_create")
    @admin_required
    def api_admin_announcements_create():
        try:
            data = payload()
            image_url = data.get("imageUrl") or data.get("image_url")
            file = request.files.get("image")
            if file and file.filename:
                image_url = save_upload(
                    file.read(),
                    file.filename,
                    upload_dir=container.upload_dir,
                    subdir="announcements",
                    now=to_local(now_utc(), tz),
                )

            announcement_id = service.create(
                current_role=current_role(),
                author_id=current_user_id(),
                title=data.get("title", ""),
                content=data.get("content", ""),
                image_url=image_url,
                expires_at=_parse_expiry(data.get("expiresAt") or data.get("expires_at"), tz),
            )
            return jsonify({"success": True, "data": {"announcement_id": announcement_id}}), 201
        except Exception as e:
            return error_response(e)

    @app.route(
        "/api/admin/announcements/<int:announcement_id>",
        methods=["DELETE"],
        endpoint="api_admin_announcements_delete",
    )
    @admin_required
    def api_admin_announcements_delete(announcement_id: int):
        try:
            service.delete(current_role=current_role(), announcement_id=announcement_id)
            return jsonify({"success": True, "message": "Pengumuman dihapus"})
        except Exception as e:
            return error_response(e)
