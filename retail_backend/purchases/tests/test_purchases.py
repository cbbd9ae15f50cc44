# purchases/tests/test_purchases.py

from decimal import Decimal

from django.test import TestCase

from accounting.services.account_balances import get_balances, set_balances
from core.exceptions import DomainValidationError, InsufficientFundsError, NotFoundError
from core.tests.factories import fund, make_branch, make_product, make_supplier
from products.models import StockBatch, StockMovement
from products.services.stock_ledger import current_stock
from purchases.models import PurchaseInvoice, PurchaseItem, SupplierPayment
from purchases.services.payment_service import pay_supplier_invoice
from purchases.services.purchase_service import create_purchase_invoice


class CreatePurchaseInvoiceTests(TestCase):
    """
    GUARANTEES:
    - Funds are checked before any side effect
    - Each line receives exactly one stock batch + PURCHASE movement
    - Paid part leaves the chosen account and is recorded as a SupplierPayment
    """

    def setUp(self):
        self.branch = make_branch()
        self.supplier = make_supplier(self.branch)
        self.product = make_product(self.branch, sell_price="15.00")

    def _purchase(self, **kwargs):
        params = {
            "branch": self.branch,
            "supplier": self.supplier.id,
            "items": [
                {
                    "product_id": self.product.id,
                    "quantity": 10,
                    "unit_cost": "8.00",
                    "batch_number": "LOT-7",
                    "expiry_date": "2030-01-31",
                }
            ],
            "paid_amount": "50",
        }
        params.update(kwargs)
        return create_purchase_invoice(**params)

    def test_end_to_end_funding(self):
        with self.assertRaises(InsufficientFundsError):
            self._purchase()

        self.assertFalse(PurchaseInvoice.objects.exists())
        self.assertFalse(StockBatch.objects.exists())

        set_balances(branch=self.branch, balances={"CASH": "100"})
        invoice = self._purchase()

        self.assertEqual(get_balances(branch=self.branch)["CASH"], Decimal("50.00"))
        self.assertEqual(invoice.total, Decimal("80.00"))
        self.assertEqual(invoice.due_amount, invoice.total - Decimal("50.00"))
        self.assertEqual(invoice.status, PurchaseInvoice.STATUS_PARTIAL)
        self.assertEqual(SupplierPayment.objects.get(invoice=invoice).amount, Decimal("50.00"))

    def test_lines_receive_batches(self):
        fund(self.branch, cash="100")
        invoice = self._purchase()

        item = PurchaseItem.objects.get(invoice=invoice)
        batch = item.stock_batch
        self.assertEqual(batch.batch_number, "LOT-7")
        self.assertEqual(str(batch.expiry_date), "2030-01-31")
        self.assertEqual(batch.sell_price, Decimal("15.00"))
        self.assertEqual(current_stock(product=self.product, branch=self.branch), Decimal("10"))

        movement = StockMovement.objects.get(reference_id=str(invoice.id))
        self.assertEqual(movement.movement_type, StockMovement.MovementType.PURCHASE)
        self.assertEqual(movement.quantity, Decimal("10"))

    def test_default_batch_number_and_unpaid_status(self):
        invoice = self._purchase(
            items=[{"product_id": self.product.id, "quantity": 2, "unit_cost": "5"}],
            paid_amount="0",
        )

        self.assertEqual(invoice.status, PurchaseInvoice.STATUS_ORDERED)
        self.assertTrue(invoice.items.get().batch_number.startswith("BAT-"))
        self.assertFalse(SupplierPayment.objects.exists())

    def test_fully_paid_is_received(self):
        fund(self.branch, bank="100")
        invoice = self._purchase(paid_amount="80", payment_method="BANK", discount="0", tax="0")

        self.assertEqual(invoice.status, PurchaseInvoice.STATUS_RECEIVED)
        self.assertEqual(get_balances(branch=self.branch)["BANK"], Decimal("20.00"))

    def test_global_supplier_is_allowed(self):
        shared = make_supplier(None, name="Shared")

        invoice = self._purchase(supplier=shared, paid_amount="0")

        self.assertEqual(invoice.supplier, shared)

    def test_validation(self):
        other = make_branch(name="Second", code="SEC")
        foreign_supplier = make_supplier(other, name="Far Away")
        foreign_product = make_product(other, sku="FAR")

        bad_requests = [
            {"supplier": foreign_supplier.id},
            {"items": []},
            {"items": [{"product_id": foreign_product.id, "quantity": 1, "unit_cost": "1"}]},
            {"items": [{"product_id": self.product.id, "quantity": -1, "unit_cost": "1"}]},
            {"items": [{"product_id": self.product.id, "quantity": 1, "unit_cost": "-1"}]},
            {"items": [{"product_id": self.product.id, "quantity": 1, "unit_cost": "5", "discount": "6"}]},
            {"payment_method": "CREDIT"},
            {"invoice_date": "2026-13-45"},
            {
                "items": [
                    {
                        "product_id": self.product.id,
                        "quantity": 1,
                        "unit_cost": "5",
                        "expiry_date": "not-a-date",
                    }
                ]
            },
        ]

        for kwargs in bad_requests:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(DomainValidationError):
                    self._purchase(**kwargs)

        self.assertFalse(PurchaseInvoice.objects.exists())


class SupplierPaymentTests(TestCase):
    def setUp(self):
        self.branch = make_branch()
        supplier = make_supplier(self.branch)
        product = make_product(self.branch)
        self.invoice = create_purchase_invoice(
            branch=self.branch,
            supplier=supplier,
            items=[{"product_id": product.id, "quantity": 4, "unit_cost": "25"}],
        )
        fund(self.branch, cash="150")

    def test_pay_down_to_received(self):
        pay_supplier_invoice(invoice_id=self.invoice.id, amount="40")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, PurchaseInvoice.STATUS_PARTIAL)
        self.assertEqual(self.invoice.due_amount, Decimal("60.00"))

        pay_supplier_invoice(invoice_id=self.invoice.id, amount="60", branch=self.branch)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, PurchaseInvoice.STATUS_RECEIVED)
        self.assertEqual(self.invoice.due_amount, Decimal("0.00"))
        self.assertEqual(get_balances(branch=self.branch)["CASH"], Decimal("50.00"))

    def test_rejections(self):
        for amount in ("0", "100.01"):
            with self.subTest(amount=amount):
                with self.assertRaises(DomainValidationError):
                    pay_supplier_invoice(invoice_id=self.invoice.id, amount=amount)

        with self.assertRaises(InsufficientFundsError):
            pay_supplier_invoice(invoice_id=self.invoice.id, amount="100", payment_method="CARD")

        with self.assertRaises(NotFoundError):
            pay_supplier_invoice(
                invoice_id=self.invoice.id,
                amount="10",
                branch=make_branch(name="Second", code="SEC"),
            )
        with self.assertRaises(NotFoundError):
            pay_supplier_invoice(
                invoice_id=self.invoice.id,
                amount="10",
                branch=str(make_branch(name="Third", code="THR").id),
            )
        with self.assertRaises(DomainValidationError):
            pay_supplier_invoice(invoice_id=self.invoice.id, amount="10", payment_date="31/12/2026")

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("0.00"))
        self.assertFalse(SupplierPayment.objects.exists())

    def test_fully_paid_invoice_rejects_more(self):
        pay_supplier_invoice(invoice_id=self.invoice.id, amount="100")

        with self.assertRaises(DomainValidationError):
            pay_supplier_invoice(invoice_id=self.invoice.id, amount="1")

    def test_branch_given_as_id_string(self):
        payment = pay_supplier_invoice(
            invoice_id=str(self.invoice.id),
            amount="10",
            branch=str(self.branch.id),
            payment_date="2026-03-01",
        )

        self.assertEqual(str(payment.payment_date), "2026-03-01")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.due_amount, Decimal("90.00"))
