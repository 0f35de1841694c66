from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest
from flask import Flask

from src.absensi.absensi.core.enums import ReportType
from src.absensi.absensi.recap.aggregator import EmployeeRecap
from src.absensi.absensi.recap.controller import register
from src.absensi.absensi.recap.exporter import TEMPLATE_DIR, RecapExporter
from src.absensi.absensi.recap.period import ReportPeriod
from src.absensi.absensi.recap.service import RecapReport


class FakeRecapService:
    def __init__(self):
        self.calls = []

    def build_recap(self, **kwargs):
        self.calls.append(kwargs)
        period = ReportPeriod(ReportType.MONTHLY, date(2026, 2, 26), date(2026, 3, 25))
        return RecapReport(
            period=period,
            summary=[EmployeeRecap(user_id=1, full_name="Siti <Rahma>", nik="1002", present=18, late=1, percentage=95)],
            details=[],
        )


@pytest.fixture
def client():
    app = Flask(__name__, template_folder=str(TEMPLATE_DIR))
    app.secret_key = "test"
    register(
        app,
        SimpleNamespace(recap_service=FakeRecapService(), recap_exporter=RecapExporter(), timezone="Asia/Jakarta"),
    )
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["user_id"] = 9
        sess["role"] = "admin"
    return c


def test_print_export_renders_template(client):
    resp = client.get("/api/recap/export?format=html&date=2026-03-10")
    body = resp.get_data(as_text=True)

    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    assert "Periode: 26/02/2026 - 25/03/2026" in body
    assert "Hari kerja: 20 hari" in body
    assert "Siti &lt;Rahma&gt;" in body
    assert "95%" in body


def test_unknown_export_format(client):
    resp = client.get("/api/recap/export?format=docx")
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
