from __future__ import annotations

from datetime import date

import pytest

from src.absensi.absensi.common.datetime_utils import payroll_month_of
from src.absensi.absensi.core.enums import ReportType
from src.absensi.absensi.core.exceptions import ValidationError
from src.absensi.absensi.recap.period import resolve_period


def test_monthly_period_runs_26th_to_25th():
    p = resolve_period("monthly", date(2026, 2, 10))
    assert (p.start, p.end) == (date(2026, 1, 26), date(2026, 2, 25))
    assert p.working_days() == 23
    assert p.contains(date(2026, 1, 26))
    assert not p.contains(date(2026, 2, 26))


def test_january_period_starts_in_previous_year():
    p = resolve_period(ReportType.MONTHLY, date(2026, 1, 5))
    assert (p.start, p.end) == (date(2025, 12, 26), date(2026, 1, 25))


def test_weekly_period_is_monday_to_sunday():
    p = resolve_period("weekly", date(2026, 3, 5))
    assert (p.start, p.end) == (date(2026, 3, 2), date(2026, 3, 8))
    assert p.working_days() == 5
    assert p.label == "02/03/2026 - 08/03/2026"


def test_daily_period():
    p = resolve_period("daily", date(2026, 3, 7))
    assert p.start == p.end == date(2026, 3, 7)
    assert p.working_days() == 0
    assert p.label == "07/03/2026"


def test_unknown_report_type():
    with pytest.raises(ValidationError):
        resolve_period("yearly", date(2026, 3, 7))


@pytest.mark.parametrize(
    "day, month",
    [
        (date(2026, 3, 25), "2026-03"),
        (date(2026, 3, 26), "2026-04"),
        (date(2026, 12, 28), "2027-01"),
    ],
)
def test_payroll_month_of(day, month):
    assert payroll_month_of(day) == month
