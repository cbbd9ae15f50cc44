# sales/tests/test_sales_payments.py

from decimal import Decimal

from django.test import TestCase

from accounting.services.account_balances import get_balances
from core.exceptions import DomainValidationError, NotFoundError
from core.tests.factories import make_branch, make_customer, make_product, stock
from sales.models import SalesInvoice, SalesPayment
from sales.services.customer_ledger import customer_balance
from sales.services.invoice_service import create_sales_invoice
from sales.services.payment_service import add_sales_payment


class AddSalesPaymentTests(TestCase):
    """
    GUARANTEES:
    - Payments never exceed what is due
    - Each payment credits the chosen account and the customer ledger
    - Branch-scoped lookups do not see other branches' invoices
    """

    def setUp(self):
        self.branch = make_branch()
        self.customer = make_customer(self.branch)
        product = make_product(self.branch, sell_price="25.00")
        stock(product, 10)
        self.invoice = create_sales_invoice(
            branch=self.branch,
            customer=self.customer,
            items=[{"product_id": product.id, "quantity": 4}],
            paid_amount="30",
        )

    def test_payments_settle_invoice(self):
        add_sales_payment(invoice_id=self.invoice.id, amount="20", payment_method="BANK")

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("50.00"))
        self.assertEqual(self.invoice.due_amount, Decimal("50.00"))
        self.assertEqual(self.invoice.status, SalesInvoice.Status.PARTIAL)

        add_sales_payment(invoice_id=str(self.invoice.id), amount="50", branch=self.branch)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.due_amount, Decimal("0.00"))
        self.assertEqual(self.invoice.status, SalesInvoice.Status.PAID)

        balances = get_balances(branch=self.branch)
        self.assertEqual(balances["CASH"], Decimal("80.00"))
        self.assertEqual(balances["BANK"], Decimal("20.00"))
        self.assertEqual(customer_balance(self.customer), Decimal("0.00"))
        self.assertEqual(SalesPayment.objects.filter(invoice=self.invoice).count(), 3)

    def test_rejects_bad_amounts(self):
        for amount in ("0", "-5", "70.01"):
            with self.subTest(amount=amount):
                with self.assertRaises(DomainValidationError):
                    add_sales_payment(invoice_id=self.invoice.id, amount=amount)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("30.00"))

    def test_rejects_fully_paid_invoice(self):
        add_sales_payment(invoice_id=self.invoice.id, amount="70")

        with self.assertRaises(DomainValidationError):
            add_sales_payment(invoice_id=self.invoice.id, amount="1")

    def test_rejects_non_account_method(self):
        with self.assertRaises(DomainValidationError):
            add_sales_payment(invoice_id=self.invoice.id, amount="5", payment_method="VOUCHER")

    def test_branch_scope(self):
        other = make_branch(name="Second", code="SEC")

        with self.assertRaises(NotFoundError):
            add_sales_payment(invoice_id=self.invoice.id, amount="5", branch=other)
        with self.assertRaises(NotFoundError):
            add_sales_payment(invoice_id="not-an-id", amount="5")
