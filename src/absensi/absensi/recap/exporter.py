"""Recap rendering: CSV, Excel and a printable HTML page."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..attendance.model import SessionReportRow
from ..common.datetime_utils import get_zone, to_local
from ..core.constants import DEFAULT_TIMEZONE, STATUS_LABELS
from .calculator.base import WorkDurationCalculator
from .calculator.standard_calculator import StandardWorkDurationCalculator, format_duration
from .service import RecapReport

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
PRINT_TEMPLATE = "recap_print.html"

_templates = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=select_autoescape(["html"]))

SUMMARY_COLUMNS = ["No", "Nama", "NIK", "Hadir", "Telat", "Sakit", "Izin", "Alpha", "Persentase"]
DETAIL_COLUMNS = [
    "No",
    "Tanggal",
    "Nama",
    "Masuk",
    "Mulai Istirahat",
    "Selesai Istirahat",
    "Pulang",
    "Total Kerja",
    "Istirahat",
    "Status",
    "Keterangan",
]


class RecapExporter:
    def __init__(
        self,
        *,
        calculator: Optional[WorkDurationCalculator] = None,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self._calculator = calculator or StandardWorkDurationCalculator()
        self._tz = get_zone(timezone)

    def _hhmm(self, value: Optional[datetime]) -> str:
        return to_local(value, self._tz).strftime("%H:%M") if value else "-"

    def summary_rows(self, report: RecapReport) -> list[dict]:
        return [
            {
                "No": i,
                "Nama": r.full_name,
                "NIK": r.nik or "-",
                "Hadir": r.present,
                "Telat": r.late,
                "Sakit": r.sick,
                "Izin": r.permission,
                "Alpha": r.alpha,
                "Persentase": f"{r.percentage}%",
            }
            for i, r in enumerate(report.summary, start=1)
        ]

    def detail_row(self, index: int, row: SessionReportRow) -> dict:
        s = row.session
        return {
            "No": index,
            "Tanggal": s.work_date.strftime("%d/%m/%Y"),
            "Nama": row.full_name,
            "Masuk": self._hhmm(s.check_in.at if s.check_in else None),
            "Mulai Istirahat": self._hhmm(s.break_start.at if s.break_start else None),
            "Selesai Istirahat": self._hhmm(s.break_end.at if s.break_end else None),
            "Pulang": self._hhmm(s.check_out.at if s.check_out else None),
            "Total Kerja": format_duration(self._calculator.net_minutes(s)),
            "Istirahat": format_duration(self._calculator.break_minutes(s)),
            "Status": STATUS_LABELS.get(s.status.value, s.status.value),
            "Keterangan": s.notes or "-",
        }

    def detail_rows(self, report: RecapReport) -> list[dict]:
        return [self.detail_row(i, r) for i, r in enumerate(report.details, start=1)]

    def table(self, report: RecapReport) -> tuple[list[str], list[dict]]:
        if report.is_summary_mode:
            return SUMMARY_COLUMNS, self.summary_rows(report)
        return DETAIL_COLUMNS, self.detail_rows(report)

    def filename(self, report: RecapReport, ext: str) -> str:
        p = report.period
        return f"rekap_{p.report_type.value}_{p.start:%Y%m%d}_{p.end:%Y%m%d}.{ext}"

    def to_csv(self, report: RecapReport) -> bytes:
        columns, rows = self.table(report)
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=columns)
        writer.writeheader()
        writer.writerows(rows)
        # BOM for Excel.
        return buf.getvalue().encode("utf-8-sig")

    def to_excel(self, report: RecapReport) -> bytes:
        columns, rows = self.table(report)
        df = pd.DataFrame(rows, columns=columns)
        out = io.BytesIO()
        with pd.ExcelWriter(out, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Rekap")
        return out.getvalue()

    def html_context(self, report: RecapReport, *, title: str = "Laporan Absensi") -> dict:
        columns, rows = self.table(report)
        return {
            "title": title,
            "period_label": report.period.label,
            "working_days": report.period.working_days() if report.is_summary_mode else None,
            "columns": columns,
            "rows": rows,
        }

    def to_html(self, report: RecapReport, *, title: str = "Laporan Absensi") -> str:
        """Render the print page outside a request (scripts, tests)."""
        return _templates.get_template(PRINT_TEMPLATE).render(**self.html_context(report, title=title))
