from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.web import current_role, current_user_id, error_response, login_required, payload
from ..container import Container
from ..core.enums import AttendanceAction, PermitType, ShiftType
from ..core.exceptions import ValidationError
from ..geo.geocoding import map_url
from .commands import AttendanceCommand, PhotoPayload

_ROUTE_ACTIONS = {
    "clock-in": AttendanceAction.CLOCK_IN,
    "break-start": AttendanceAction.BREAK_START,
    "break-end": AttendanceAction.BREAK_END,
    "clock-out": AttendanceAction.CLOCK_OUT,
    "permit": AttendanceAction.PERMIT,
    "resume": AttendanceAction.RESUME,
}

# Older camera pages post the data URL under one of these names.
_PHOTO_FIELDS = ("photo", "checkInPhoto", "image")


def _float_or_none(value) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError("Koordinat tidak valid")


def _photo_from_request(data: dict) -> Optional[PhotoPayload]:
    file = request.files.get("photo")
    if file and file.filename:
        return PhotoPayload(
            content=file.read(),
            mime_type=file.mimetype or "image/jpeg",
            filename=file.filename,
        )

    for key in _PHOTO_FIELDS:
        value = data.get(key)
        if isinstance(value, str) and value.startswith("data:"):
            return PhotoPayload.from_data_url(value)
    return None


def build_command(action: AttendanceAction, user_id: int, data: dict) -> AttendanceCommand:
    shift_type = data.get("shiftType") or data.get("shift_type")
    permit_type = data.get("type") or data.get("permit_type")
    return AttendanceCommand(
        action=action,
        user_id=user_id,
        photo=_photo_from_request(data),
        location=data.get("location"),
        latitude=_float_or_none(data.get("latitude") or data.get("lat")),
        longitude=_float_or_none(data.get("longitude") or data.get("lon")),
        shift_label=data.get("shift") or data.get("shift_label"),
        shift_type=ShiftType(shift_type) if shift_type in {s.value for s in ShiftType} else None,
        permit_type=PermitType(permit_type) if permit_type in {p.value for p in PermitType} else permit_type,
        notes=data.get("notes"),
    )


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _session_json(s):
        if s is None:
            return None
        out = service.to_ui(s)
        for key in ("check_in", "break_start", "break_end", "check_out"):
            if out[key]:
                out[key]["map_url"] = map_url(out[key]["location"])
        return out

    @app.route("/api/attendance/<string:action>", methods=["POST"], endpoint="api_attendance_action")
    @login_required
    def api_attendance_action(action: str):
        try:
            act = _ROUTE_ACTIONS.get(action)
            if act is None:
                return jsonify({"success": False, "message": "Aksi tidak dikenal"}), 404

            command = build_command(act, current_user_id(), payload())
            session = container.capture_service.submit(command)
            return jsonify({"success": True, "data": _session_json(session)}), 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    @login_required
    def api_attendance_today():
        try:
            record = service.get_today(current_user_id())
            return jsonify({"success": True, "data": _session_json(record)})
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/today/sessions", methods=["GET"], endpoint="api_attendance_today_sessions")
    @login_required
    def api_attendance_today_sessions():
        try:
            sessions = service.get_today_sessions(current_user_id())
            return jsonify({"success": True, "data": [_session_json(s) for s in sessions]})
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_history")
    @login_required
    def api_attendance_history():
        try:
            user_id_s = request.args.get("userId") or request.args.get("user_id")
            rows = service.history(
                current_user_id=current_user_id(),
                current_role=current_role(),
                month=request.args.get("month"),
                user_id=int(user_id_s) if user_id_s and user_id_s.isdigit() else None,
            )
            data = []
            for r in rows:
                item = _session_json(r.session)
                item["full_name"] = r.full_name
                item["nik"] = r.nik
                data.append(item)
            return jsonify({"success": True, "data": data})
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/recent", methods=["GET"], endpoint="api_attendance_recent")
    @login_required
    def api_attendance_recent():
        try:
            limit_s = request.args.get("limit", "")
            limit = min(int(limit_s), 100) if limit_s.isdigit() else 30
            return jsonify({"success": True, "data": service.get_history_ui(current_user_id(), limit=limit)})
        except Exception as e:
            return error_response(e)
