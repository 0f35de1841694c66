from __future__ import annotations

import io

from flask import Flask, jsonify, render_template, request, send_file

from ..common.datetime_utils import get_zone, local_date, now_utc
from ..common.web import current_role, current_user_id, error_response, login_required, parse_optional_date, serialize
from ..container import Container
from ..core.exceptions import ValidationError
from .exporter import PRINT_TEMPLATE

_EXCEL_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def register(app: Flask, container: Container) -> None:
    tz = get_zone(container.timezone)
    exporter = container.recap_exporter

    def _build():
        args = request.args
        target = parse_optional_date(args.get("date")) or local_date(now_utc(), tz)
        return container.recap_service.build_recap(
            current_user_id=current_user_id(),
            current_role=current_role(),
            report_type=args.get("type") or "monthly",
            target=target,
            search=args.get("search"),
            sort=args.get("sort") or "full_name",
            descending=(args.get("order") or "asc").lower() == "desc",
        )

    @app.route("/api/recap", methods=["GET"], endpoint="api_recap")
    @login_required
    def api_recap():
        try:
            report = _build()
            columns, rows = exporter.table(report)
            return jsonify(
                {
                    "success": True,
                    "data": {
                        "period": {**serialize(report.period), "label": report.period.label},
                        "working_days": report.period.working_days(),
                        "summary_mode": report.is_summary_mode,
                        "summary": serialize(report.summary),
                        "columns": columns,
                        "rows": rows,
                    },
                }
            )
        except Exception as e:
            return error_response(e)

    @app.route("/api/recap/export", methods=["GET"], endpoint="api_recap_export")
    @login_required
    def api_recap_export():
        try:
            fmt = (request.args.get("format") or "csv").lower()
            report = _build()

            if fmt == "csv":
                return send_file(
                    io.BytesIO(exporter.to_csv(report)),
                    mimetype="text/csv",
                    as_attachment=True,
                    download_name=exporter.filename(report, "csv"),
                )
            if fmt in ("excel", "xlsx"):
                return send_file(
                    io.BytesIO(exporter.to_excel(report)),
                    mimetype=_EXCEL_MIME,
                    as_attachment=True,
                    download_name=exporter.filename(report, "xlsx"),
                )
            if fmt in ("html", "pdf", "print"):
                return render_template(PRINT_TEMPLATE, **exporter.html_context(report))

            raise ValidationError("Format ekspor tidak valid (pilihan: csv, excel, html)")
        except Exception as e:
            return error_response(e)
