# accounting/tests/test_fiscal_period.py

from datetime import date

from django.test import SimpleTestCase

from accounting.models import Company
from accounting.services.fiscal_period import current_fiscal_year, resolve_fiscal_year_period


class FiscalPeriodTests(SimpleTestCase):
    def test_calendar_year(self):
        period = resolve_fiscal_year_period(Company(fiscal_year_start_month=1), 2024)

        self.assertEqual(period.period_start, date(2024, 1, 1))
        self.assertEqual(period.period_end, date(2024, 12, 31))
        self.assertEqual(period.label, "2024-01-01 to 2024-12-31")

    def test_july_start_wraps_into_next_year(self):
        period = resolve_fiscal_year_period(Company(fiscal_year_start_month=7), 2024)

        self.assertEqual(period.period_start, date(2024, 7, 1))
        self.assertEqual(period.period_end, date(2025, 6, 30))

    def test_leap_day_end(self):
        period = resolve_fiscal_year_period(Company(fiscal_year_start_month=3), 2023)

        self.assertEqual(period.period_end, date(2024, 2, 29))

    def test_current_year_before_start_month_is_previous(self):
        company = Company(fiscal_year_start_month=7)

        self.assertEqual(current_fiscal_year(company, today=date(2025, 3, 10)), 2024)
        self.assertEqual(current_fiscal_year(company, today=date(2025, 7, 1)), 2025)

    def test_invalid_year_is_inferred(self):
        company = Company(fiscal_year_start_month=4)

        for requested in (None, "abc", 1899, 3001, True):
            period = resolve_fiscal_year_period(company, requested, today=date(2025, 2, 1))
            self.assertEqual(period.fiscal_year, 2024)
