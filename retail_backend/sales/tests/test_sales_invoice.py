# sales/tests/test_sales_invoice.py

from decimal import Decimal

from django.test import TestCase, override_settings

from accounting.services.account_balances import get_balances
from core.exceptions import DomainValidationError, InsufficientStockError
from core.tests.factories import make_branch, make_customer, make_product, make_user, stock
from products.models import StockMovement
from products.services.stock_ledger import current_stock
from sales.models import (
    CustomerLedgerEntry,
    LoyaltyTransaction,
    SalesInvoice,
    SalesPayment,
)
from sales.services.customer_ledger import customer_balance
from sales.services.invoice_service import create_sales_invoice


class CreateSalesInvoiceTests(TestCase):
    """
    GUARANTEES:
    - Stock is consumed FIFO and its cost captured per line
    - Totals, payment, customer ledger and loyalty are consistent
    - Any failure rolls everything back (stock included)
    """

    def setUp(self):
        self.branch = make_branch()
        self.user = make_user(self.branch)
        self.rice = make_product(self.branch, sku="RICE", sell_price="20.00")
        self.oil = make_product(self.branch, sku="OIL", name="Oil 1L", sell_price="15.00")
        stock(self.rice, 10, unit_cost="12.00")
        stock(self.oil, 2, unit_cost="9.00")
        self.customer = make_customer(self.branch)

    def test_cash_sale_paid_in_full(self):
        invoice = create_sales_invoice(
            branch=self.branch,
            items=[{"product_id": self.rice.id, "quantity": 3}],
            paid_amount="60",
            user=self.user,
        )

        self.assertEqual(invoice.total, Decimal("60.00"))
        self.assertEqual(invoice.due_amount, Decimal("0.00"))
        self.assertEqual(invoice.status, SalesInvoice.Status.PAID)
        self.assertTrue(invoice.number.startswith("INV-"))

        item = invoice.items.get()
        self.assertEqual(item.cost_of_goods, Decimal("36.00"))
        self.assertEqual(item.line_total, Decimal("60.00"))

        self.assertEqual(current_stock(product=self.rice, branch=self.branch), Decimal("7"))
        self.assertEqual(get_balances(branch=self.branch)["CASH"], Decimal("60.00"))
        self.assertEqual(SalesPayment.objects.get(invoice=invoice).amount, Decimal("60.00"))

        movement = StockMovement.objects.get(reference_id=str(invoice.id))
        self.assertEqual(movement.movement_type, StockMovement.MovementType.SALE)
        self.assertEqual(movement.quantity, Decimal("-3"))
        self.assertEqual(movement.unit_cost, Decimal("12.00"))
        self.assertEqual(movement.created_by, self.user)

    def test_partial_credit_sale_debits_customer(self):
        invoice = create_sales_invoice(
            branch=self.branch,
            customer=self.customer.id,
            items=[
                {"product_id": self.rice.id, "quantity": 5, "discount": "10"},
                {"product_id": self.oil.id, "quantity": 2, "unit_price": "14.00"},
            ],
            discount="8",
            tax="5",
            paid_amount="50",
            payment_method="card",
        )

        # (100 - 10) + 28 = 118; 118 - 8 + 5 = 115
        self.assertEqual(invoice.subtotal, Decimal("118.00"))
        self.assertEqual(invoice.total, Decimal("115.00"))
        self.assertEqual(invoice.paid_amount, Decimal("50.00"))
        self.assertEqual(invoice.due_amount, Decimal("65.00"))
        self.assertEqual(invoice.status, SalesInvoice.Status.PARTIAL)

        self.assertEqual(get_balances(branch=self.branch)["CARD"], Decimal("50.00"))
        self.assertEqual(customer_balance(self.customer), Decimal("65.00"))
        self.assertEqual(
            CustomerLedgerEntry.objects.get(customer=self.customer).entry_type,
            CustomerLedgerEntry.EntryType.DEBIT,
        )

    def test_loyalty_points_awarded(self):
        create_sales_invoice(
            branch=self.branch,
            customer=self.customer,
            items=[{"product_id": self.rice.id, "quantity": 10}],
            paid_amount="200",
        )

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 2)
        self.assertEqual(LoyaltyTransaction.objects.get().points, 2)

    @override_settings(LOYALTY_POINT_VALUE="50")
    def test_loyalty_point_value_is_configurable(self):
        create_sales_invoice(
            branch=self.branch,
            customer=self.customer,
            items=[{"product_id": self.rice.id, "quantity": 5}],
        )

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 2)

    def test_unpaid_sale_without_customer(self):
        invoice = create_sales_invoice(
            branch=self.branch,
            items=[{"product_id": self.oil.id, "quantity": 1}],
        )

        self.assertEqual(invoice.status, SalesInvoice.Status.UNPAID)
        self.assertFalse(SalesPayment.objects.exists())
        self.assertFalse(CustomerLedgerEntry.objects.exists())

    def test_failure_on_later_line_rolls_back_earlier_lines(self):
        with self.assertRaises(InsufficientStockError):
            create_sales_invoice(
                branch=self.branch,
                items=[
                    {"product_id": self.rice.id, "quantity": 4},
                    {"product_id": self.oil.id, "quantity": 3},
                ],
                paid_amount="10",
            )

        self.assertEqual(current_stock(product=self.rice, branch=self.branch), Decimal("10"))
        self.assertFalse(SalesInvoice.objects.exists())
        self.assertEqual(get_balances(branch=self.branch)["CASH"], Decimal("0.00"))

    def test_validation_before_any_write(self):
        other = make_branch(name="Second", code="SEC")
        foreign = make_product(other, sku="RICE")
        stranger = make_customer(other, name="Bob")

        bad_requests = [
            {"items": []},
            {"items": [{"product_id": foreign.id, "quantity": 1}]},
            {"items": [{"product_id": self.rice.id, "quantity": 0}]},
            {"items": [{"product_id": self.rice.id, "quantity": 1, "discount": "25"}]},
            {"items": [{"product_id": self.rice.id, "quantity": 1, "unit_price": "-1"}]},
            {"items": [{"product_id": self.rice.id, "quantity": 1}], "discount": "-1"},
            {"items": [{"product_id": self.rice.id, "quantity": 1}], "customer": stranger.id},
            {"items": [{"product_id": self.rice.id, "quantity": 1}], "paid_amount": "5", "payment_method": "IOU"},
            {"items": [{"product_id": self.rice.id, "quantity": 1}], "invoice_date": "2026-13-45"},
            {"items": [{"product_id": self.rice.id, "quantity": 1}], "invoice_date": "yesterday"},
        ]

        for kwargs in bad_requests:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(DomainValidationError):
                    create_sales_invoice(branch=self.branch, **kwargs)

        self.assertFalse(SalesInvoice.objects.exists())
        self.assertEqual(current_stock(product=self.rice, branch=self.branch), Decimal("10"))

    def test_inactive_product_rejected(self):
        self.rice.is_active = False
        self.rice.save()

        with self.assertRaises(DomainValidationError):
            create_sales_invoice(branch=self.branch, items=[{"product_id": self.rice.id, "quantity": 1}])
