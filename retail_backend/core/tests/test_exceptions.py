# core/tests/test_exceptions.py

from decimal import Decimal

from django.test import SimpleTestCase

from core.exceptions import (
    AlreadyClosedError,
    DomainValidationError,
    InsufficientFundsError,
    InsufficientStockError,
    NotFoundError,
    RetailCoreError,
)
from core.ids import as_uuid


class ErrorTaxonomyTests(SimpleTestCase):
    def test_codes_are_stable(self):
        self.assertEqual(DomainValidationError.code, "VALIDATION_ERROR")
        self.assertEqual(NotFoundError.code, "NOT_FOUND")
        self.assertEqual(AlreadyClosedError.code, "ALREADY_CLOSED")
        self.assertEqual(InsufficientStockError.code, "INSUFFICIENT_STOCK")
        self.assertEqual(InsufficientFundsError.code, "INSUFFICIENT_FUNDS")

    def test_insufficient_stock_message_names_product_and_shortfall(self):
        exc = InsufficientStockError(product="Rice", requested=Decimal("8"), available=Decimal("5"))

        self.assertIsInstance(exc, RetailCoreError)
        self.assertEqual(exc.missing, Decimal("3"))
        self.assertEqual(str(exc), "Insufficient stock for product Rice. Missing 3 units.")

    def test_insufficient_funds_carries_context(self):
        exc = InsufficientFundsError(
            account_type="CASH",
            available=Decimal("10.00"),
            required=Decimal("50.00"),
            purpose="purchase payment",
        )

        self.assertEqual(exc.account_type, "CASH")
        self.assertIn("Available 10.00, required 50.00", str(exc))


class AsUuidTests(SimpleTestCase):
    def test_garbage_is_none(self):
        self.assertIsNone(as_uuid("not-a-uuid"))
        self.assertIsNone(as_uuid(None))

    def test_string_round_trips(self):
        value = "12345678-1234-5678-1234-567812345678"
        self.assertEqual(str(as_uuid(value)), value)
