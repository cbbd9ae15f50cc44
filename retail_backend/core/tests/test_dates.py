# core/tests/test_dates.py

from datetime import date, datetime

from django.test import SimpleTestCase
from django.utils import timezone

from core.dates import to_date
from core.exceptions import DomainValidationError


class ToDateTests(SimpleTestCase):
    """
    GUARANTEES:
    - ISO strings, dates and datetimes all come back as a date
    - Empty input is None unless today is asked for
    - Malformed or impossible dates raise DomainValidationError
    """

    def test_accepted_inputs(self):
        self.assertEqual(to_date("2026-02-28"), date(2026, 2, 28))
        self.assertEqual(to_date(" 2026-02-28 "), date(2026, 2, 28))
        self.assertEqual(to_date(date(2026, 1, 5)), date(2026, 1, 5))
        self.assertEqual(to_date(datetime(2026, 1, 5, 14, 30)), date(2026, 1, 5))

    def test_empty_input(self):
        self.assertIsNone(to_date(None))
        self.assertIsNone(to_date(""))
        self.assertEqual(to_date(None, default_today=True), timezone.localdate())

    def test_invalid_dates_raise_typed_error(self):
        for value in ("2026-13-45", "2026-02-30", "not-a-date", "31/12/2026", 20260101):
            with self.subTest(value=value):
                with self.assertRaises(DomainValidationError) as ctx:
                    to_date(value, label="invoice_date")
                self.assertEqual(ctx.exception.code, "VALIDATION_ERROR")
                self.assertIn("invoice_date", str(ctx.exception))
