# accounting/services/fiscal_period.py

"""
FISCAL YEAR WINDOWS

A fiscal year starts on day 1 of the company's start month and ends the day
before the same date one year later. Fiscal year N is the window that STARTS
in calendar year N.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from django.utils import timezone

MIN_YEAR = 1900
MAX_YEAR = 3000


@dataclass(frozen=True)
class FiscalPeriod:
    fiscal_year: int
    start_month: int
    period_start: date
    period_end: date

    @property
    def label(self) -> str:
        return f"{self.period_start.isoformat()} to {self.period_end.isoformat()}"


def _valid_year(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if year < MIN_YEAR or year > MAX_YEAR:
        return None
    return year


def _start_month(company) -> int:
    month = getattr(company, "fiscal_year_start_month", None) or 1
    return month if 1 <= month <= 12 else 1


def current_fiscal_year(company, today=None) -> int:
    today = today or timezone.localdate()
    start_this_year = date(today.year, _start_month(company), 1)
    return today.year - 1 if today < start_this_year else today.year


def resolve_fiscal_year_period(company, requested_year=None, today=None) -> FiscalPeriod:
    year = _valid_year(requested_year)
    if year is None:
        year = current_fiscal_year(company, today=today)

    month = _start_month(company)
    period_start = date(year, month, 1)
    period_end = date(year + 1, month, 1) - timedelta(days=1)

    return FiscalPeriod(
        fiscal_year=year,
        start_month=month,
        period_start=period_start,
        period_end=period_end,
    )
