# accounting/tests/test_fiscal_close.py

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models import FiscalYearClose
from accounting.services.fiscal_close_service import close_fiscal_year
from core.exceptions import AlreadyClosedError, DomainValidationError, NotFoundError
from core.tests.factories import fund, make_branch, make_user


class FiscalYearCloseTests(TestCase):
    """
    GUARANTEES:
    - One close per (branch, fiscal year); a second attempt fails
    - No close while the period is still running
    - The close record is immutable and non-deletable
    """

    def setUp(self):
        self.branch = make_branch()
        self.user = make_user(self.branch, username="manager")
        fund(self.branch, cash="250")

    def test_close_once(self):
        record = close_fiscal_year(
            branch=self.branch,
            user=self.user,
            fiscal_year=2024,
            note="Year end",
            today=date(2025, 1, 5),
        )

        self.assertEqual(record.period_start, date(2024, 1, 1))
        self.assertEqual(record.period_end, date(2024, 12, 31))
        self.assertEqual(record.closed_by, self.user)
        self.assertEqual(
            record.summary["year_end_owner"]["year_end_position"]["accounts"]["CASH"],
            Decimal("250.00"),
        )

        with self.assertRaises(AlreadyClosedError):
            close_fiscal_year(branch=self.branch, fiscal_year=2024, today=date(2025, 2, 1))

        self.assertEqual(FiscalYearClose.objects.count(), 1)
        self.assertEqual(FiscalYearClose.objects.get().note, "Year end")

    def test_refused_before_period_end(self):
        with self.assertRaises(DomainValidationError):
            close_fiscal_year(branch=self.branch, fiscal_year=2024, today=date(2024, 12, 31))

        self.assertFalse(FiscalYearClose.objects.exists())

    def test_other_branch_can_close_same_year(self):
        other = make_branch(name="Second", code="SEC")

        close_fiscal_year(branch=self.branch, fiscal_year=2024, today=date(2025, 1, 1))
        close_fiscal_year(branch=other, fiscal_year=2024, today=date(2025, 1, 1))

        self.assertEqual(FiscalYearClose.objects.count(), 2)

    def test_unknown_branch(self):
        with self.assertRaises(NotFoundError):
            close_fiscal_year(branch="nope", fiscal_year=2024, today=date(2025, 1, 1))

    def test_record_is_immutable(self):
        record = close_fiscal_year(branch=self.branch, fiscal_year=2024, today=date(2025, 1, 1))

        record.note = "changed"
        with self.assertRaises(ValidationError):
            record.save()
        with self.assertRaises(ValidationError):
            record.delete()
