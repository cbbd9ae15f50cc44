# accounting/tests/test_invoice_totals.py

from decimal import Decimal

from django.test import SimpleTestCase

from accounting.services.invoice_totals import (
    PAID,
    PARTIAL,
    UNPAID,
    compute_totals,
    invoice_status,
    purchase_status,
)


class InvoiceTotalsTests(SimpleTestCase):
    """
    GUARANTEES:
    - total = max(subtotal - discount + tax, 0)
    - paid is clamped into [0, total]
    - due = total - paid, never negative
    """

    def test_partial_payment(self):
        totals = compute_totals(subtotal=100, discount=10, tax=5, paid_amount=50)

        self.assertEqual(totals.total, Decimal("95.00"))
        self.assertEqual(totals.paid, Decimal("50.00"))
        self.assertEqual(totals.due, Decimal("45.00"))
        self.assertEqual(totals.status, PARTIAL)

    def test_fully_paid(self):
        totals = compute_totals(subtotal=100, paid_amount=100)

        self.assertEqual((totals.total, totals.paid, totals.due), (Decimal("100.00"), Decimal("100.00"), Decimal("0.00")))
        self.assertEqual(totals.status, PAID)

    def test_overpayment_is_clamped(self):
        totals = compute_totals(subtotal="40", paid_amount="60")

        self.assertEqual(totals.paid, Decimal("40.00"))
        self.assertEqual(totals.due, Decimal("0.00"))

    def test_discount_larger_than_subtotal_floors_at_zero(self):
        totals = compute_totals(subtotal=10, discount=25, paid_amount=5)

        self.assertEqual(totals.total, Decimal("0.00"))
        self.assertEqual(totals.paid, Decimal("0.00"))
        self.assertEqual(totals.status, UNPAID)

    def test_negative_paid_is_zero(self):
        totals = compute_totals(subtotal=10, paid_amount=-5)

        self.assertEqual(totals.paid, Decimal("0.00"))
        self.assertEqual(totals.status, UNPAID)

    def test_status_rule(self):
        self.assertEqual(invoice_status(0, 0), UNPAID)
        self.assertEqual(invoice_status(10, 0), UNPAID)
        self.assertEqual(invoice_status(10, 3), PARTIAL)
        self.assertEqual(invoice_status(10, 10), PAID)

    def test_purchase_status_mapping(self):
        self.assertEqual(purchase_status(compute_totals(subtotal=10, paid_amount=10)), "RECEIVED")
        self.assertEqual(purchase_status(compute_totals(subtotal=10, paid_amount=4)), "PARTIAL")
        self.assertEqual(purchase_status(compute_totals(subtotal=10)), "ORDERED")
