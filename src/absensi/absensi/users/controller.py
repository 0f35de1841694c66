from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import get_zone, now_utc, to_local
from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    error_response,
    login_required,
    payload,
    serialize,
)
from ..container import Container
from ..core.enums import Role
from ..photos.store import save_upload
from .model import User, UserProfile

logger = logging.getLogger(__name__)


def _user_json(u: User) -> dict:
    data = serialize(u)
    data.pop("password_hash", None)
    return data


def _profile_from(data: dict, photo_url=None) -> UserProfile:
    def _get(*keys):
        for k in keys:
            if k in data and data[k] is not None:
                return str(data[k])
        return None

    return UserProfile(
        full_name=_get("fullName", "full_name"),
        nik=_get("nik"),
        email=_get("email"),
        branch=_get("branch"),
        position=_get("position"),
        phone_number=_get("phoneNumber", "phone_number"),
        photo_url=photo_url or _get("photoUrl", "photo_url"),
    )


def register(app: Flask, container: Container) -> None:
    def _save_photo():
        file = request.files.get("photo")
        if not file or not file.filename:
            return None
        return save_upload(
            file.read(),
            file.filename,
            upload_dir=container.upload_dir,
            subdir="profiles",
            now=to_local(now_utc(), get_zone(container.timezone)),
        )

    @app.route("/api/login", methods=["POST"], endpoint="api_login")
    def api_login():
        try:
            data = payload()
            s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

            session.permanent = bool(data.get("remember") or data.get("remember_me"))
            app.permanent_session_lifetime = timedelta(days=7)

            session["user_id"] = s_user.user_id
            session["name"] = s_user.full_name
            session["role"] = s_user.role.value

            logger.info("Login", extra={"user_id": s_user.user_id, "action": "login"})
            return jsonify({"success": True, "data": serialize(s_user)})
        except Exception as e:
            return error_response(e)

    @app.route("/api/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        session.clear()
        return jsonify({"success": True, "message": "Berhasil keluar"})

    @app.route("/api/user", methods=["GET"], endpoint="api_me")
    @login_required
    def api_me():
        try:
            return jsonify({"success": True, "data": _user_json(container.user_service.get(current_user_id()))})
        except Exception as e:
            return error_response(e)

    @app.route("/api/employees", methods=["GET"], endpoint="api_employees")
    @login_required
    def api_employees():
        """Roster for pickers (shift swap target, piket assignment)."""
        try:
            rows = container.user_service.list_employees()
            return jsonify(
                {
                    "success": True,
                    "data": [{"user_id": u.user_id, "full_name": u.full_name, "nik": u.nik} for u in rows],
                }
            )
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/users", methods=["GET"], endpoint="api_admin_users")
    @admin_required
    def api_admin_users():
        try:
            rows = container.user_service.list_all(current_role=current_role())
            return jsonify({"success": True, "data": [_user_json(u) for u in rows]})
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/users", methods=["POST"], endpoint="api_admin_users_create")
    @admin_required
    def api_admin_users_create():
        try:
            data = payload()
            profile = _profile_from(data, photo_url=_save_photo())
            role = data.get("role") or Role.EMPLOYEE.value
            user_id = container.user_service.create_employee(
                current_role=current_role(),
                full_name=profile.full_name or "",
                nik=profile.nik,
                username=data.get("username"),
                password=data.get("password"),
                role=Role(role) if role in {r.value for r in Role} else Role.EMPLOYEE,
                email=profile.email,
                branch=profile.branch,
                position=profile.position,
                phone_number=profile.phone_number,
                photo_url=profile.photo_url,
            )
            return jsonify({"success": True, "data": _user_json(container.user_service.get(user_id))}), 201
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/users/<int:user_id>", methods=["PUT", "PATCH"], endpoint="api_admin_users_update")
    @admin_required
    def api_admin_users_update(user_id: int):
        try:
            data = payload()
            user = container.user_service.update_employee(
                current_role=current_role(),
                user_id=user_id,
                profile=_profile_from(data, photo_url=_save_photo()),
                password=data.get("password") or None,
            )
            return jsonify({"success": True, "data": _user_json(user)})
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/users/<int:user_id>", methods=["DELETE"], endpoint="api_admin_users_delete")
    @admin_required
    def api_admin_users_delete(user_id: int):
        try:
            container.user_service.delete_employee(
                current_role=current_role(),
                current_user_id=current_user_id(),
                user_id=user_id,
            )
            return jsonify({"success": True, "message": "Karyawan dihapus"})
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/stats", methods=["GET"], endpoint="api_admin_stats")
    @admin_required
    def api_admin_stats():
        try:
            return jsonify({"success": True, "data": serialize(container.user_service.dashboard_stats())})
        except Exception as e:
            return error_response(e)
