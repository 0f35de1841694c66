from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    error_response,
    login_required,
    parse_optional_date,
    payload,
    serialize,
)
from ..container import Container
from ..core.enums import RequestStatus


def _int_or_none(value):
    value = str(value or "").strip()
    return int(value) if value.isdigit() else None


def register(app: Flask, container: Container) -> None:
    service = container.request_service

    # -------- Shift swaps --------
    @app.route("/api/shift-swaps", methods=["GET"], endpoint="api_shift_swaps")
    @login_required
    def api_shift_swaps():
        try:
            rows = service.list_swaps(current_user_id=current_user_id(), current_role=current_role())
            return jsonify({"success": True, "data": serialize(list(rows))})
        except Exception as e:
            return error_response(e)

    @app.route("/api/shift-swaps", methods=["POST"], endpoint="api_shift_swaps_create")
    @login_required
    def api_shift_swaps_create():
        try:
            data = payload()
            swap_id = service.create_swap(
                requester_id=current_user_id(),
                target_user_id=_int_or_none(data.get("targetUserId") or data.get("target_user_id")),
                requester_date=parse_optional_date(data.get("requesterDate") or data.get("requester_date")),
                target_date=parse_optional_date(data.get("targetDate") or data.get("target_date")),
                reason=data.get("reason", ""),
            )
            return jsonify({"success": True, "data": {"swap_id": swap_id}}), 201
        except Exception as e:
            return error_response(e)

    @app.route("/api/shift-swaps/<int:swap_id>/respond", methods=["POST"], endpoint="api_shift_swaps_respond")
    @login_required
    def api_shift_swaps_respond(swap_id: int):
        try:
            data = payload()
            swap = service.respond_swap(
                swap_id=swap_id,
                acting_user_id=current_user_id(),
                current_role=current_role(),
                decision=data.get("status") or data.get("decision"),
            )
            return jsonify({"success": True, "data": serialize(swap)})
        except Exception as e:
            return error_response(e)

    # -------- Leave permits --------
    @app.route("/api/permits", methods=["GET"], endpoint="api_permits")
    @login_required
    def api_permits():
        try:
            status_s = request.args.get("status")
            status = RequestStatus(status_s) if status_s in {s.value for s in RequestStatus} else None
            rows = service.list_permits(current_user_id=current_user_id(), current_role=current_role(), status=status)
            return jsonify({"success": True, "data": serialize(list(rows))})
        except Exception as e:
            return error_response(e)

    @app.route("/api/permits", methods=["POST"], endpoint="api_permits_create")
    @login_required
    def api_permits_create():
        try:
            data = payload()
            permit_id = service.create_permit(
                user_id=current_user_id(),
                permit_type=data.get("type") or data.get("permit_type"),
                start_date=parse_optional_date(data.get("startDate") or data.get("start_date")),
                end_date=parse_optional_date(data.get("endDate") or data.get("end_date")),
                reason=data.get("reason", ""),
            )
            return jsonify({"success": True, "data": {"permit_id": permit_id}}), 201
        except Exception as e:
            return error_response(e)

    @app.route("/api/admin/permits/<int:permit_id>/status", methods=["POST", "PUT"], endpoint="api_admin_permit_status")
    @admin_required
    def api_admin_permit_status(permit_id: int):
        try:
            permit = service.set_permit_status(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                permit_id=permit_id,
                decision=payload().get("status"),
            )
            return jsonify({"success": True, "data": serialize(permit)})
        except Exception as e:
            return error_response(e)
