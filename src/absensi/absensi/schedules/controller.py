from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import get_zone, local_date, now_utc, payroll_month_of
from ..common.web import (
    admin_required,
    current_role,
    error_response,
    login_required,
    parse_optional_date,
    payload,
    serialize,
)
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/piket", methods=["GET"], endpoint="api_piket")
    @login_required
    def api_piket():
        try:
            month = request.args.get("month") or payroll_month_of(
                local_date(now_utc(), get_zone(container.timezone))
            )
            user_id_s = request.args.get("userId") or request.args.get("user_id")
            rows = container.schedule_service.list_month(
                month,
                user_id=int(user_id_s) if user_id_s and user_id_s.isdigit() else None,
            )
            return jsonify({"success": True, "data": serialize(list(rows))})
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/piket", methods=["POST"], endpoint="api_admin_piket_assign")
    @admin_required
    def api_admin_piket_assign():
        try:
            data = payload()
            work_date = parse_optional_date(data.get("date") or data.get("work_date"))
            if work_date is None:
                raise ValidationError("Tanggal piket wajib diisi")
            user_id_s = str(data.get("userId") or data.get("user_id") or "0")
            schedule_id = container.schedule_service.assign(
                current_role=current_role(),
                user_id=int(user_id_s) if user_id_s.isdigit() else 0,
                work_date=work_date,
                notes=data.get("notes"),
            )
            return jsonify({"success": True, "data": {"schedule_id": schedule_id}}), 201
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/piket/<int:schedule_id>", methods=["DELETE"], endpoint="api_admin_piket_delete")
    @admin_required
    def api_admin_piket_delete(schedule_id: int):
        try:
            container.schedule_service.delete(current_role=current_role(), schedule_id=schedule_id)
            return jsonify({"success": True, "message": "Jadwal piket dihapus"})
        except Exception as e:
            return error_response(e)
