# products/tests/test_stock_ledger.py

from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from core.exceptions import DomainValidationError, InsufficientStockError
from core.tests.factories import make_branch, make_product, stock
from products.models import StockBatch, StockMovement
from products.services.stock_ledger import (
    consume_fifo,
    current_stock,
    receive_batch,
    record_movement,
)


class FifoConsumptionTests(TestCase):
    """
    GUARANTEES:
    - Earliest expiry first, undated batches last, then oldest batch
    - Cost of goods is the sum of consumed quantity x batch cost
    - Not enough stock -> InsufficientStockError, no batch touched
    """

    def setUp(self):
        self.branch = make_branch()
        self.product = make_product(self.branch)

        today = timezone.localdate()
        now = timezone.now()

        # C: no expiry, received first
        self.batch_c = stock(self.product, 5, unit_cost="1.00", batch_number="C")
        StockBatch.objects.filter(pk=self.batch_c.pk).update(created_at=now - timedelta(days=3))

        self.batch_a = stock(
            self.product, 5, unit_cost="3.00", batch_number="A", expiry_date=today + timedelta(days=10)
        )
        StockBatch.objects.filter(pk=self.batch_a.pk).update(created_at=now - timedelta(days=2))

        self.batch_b = stock(
            self.product, 5, unit_cost="2.00", batch_number="B", expiry_date=today + timedelta(days=5)
        )
        StockBatch.objects.filter(pk=self.batch_b.pk).update(created_at=now - timedelta(days=1))

    def _remaining(self, batch):
        batch.refresh_from_db()
        return batch.quantity_remaining

    def test_consumes_earliest_expiry_first(self):
        result = consume_fifo(product=self.product, branch=self.branch, quantity=8)

        self.assertEqual(self._remaining(self.batch_b), Decimal("0"))
        self.assertEqual(self._remaining(self.batch_a), Decimal("2"))
        self.assertEqual(self._remaining(self.batch_c), Decimal("5"))

        # 5 x 2.00 + 3 x 3.00
        self.assertEqual(result.cost_of_goods, Decimal("19.00"))
        self.assertEqual([a.batch_id for a in result.allocations], [self.batch_b.id, self.batch_a.id])

    def test_undated_batch_is_consumed_last(self):
        consume_fifo(product=self.product, branch=self.branch, quantity=12)

        self.assertEqual(self._remaining(self.batch_c), Decimal("3"))
        self.assertEqual(current_stock(product=self.product, branch=self.branch), Decimal("3"))

    def test_insufficient_stock_leaves_batches_untouched(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            consume_fifo(product=self.product, branch=self.branch, quantity=16)

        self.assertEqual(ctx.exception.missing, Decimal("1"))
        self.assertIn("Missing 1 units", str(ctx.exception))
        self.assertEqual(current_stock(product=self.product, branch=self.branch), Decimal("15"))

    def test_zero_quantity_rejected(self):
        with self.assertRaises(DomainValidationError):
            consume_fifo(product=self.product, branch=self.branch, quantity=0)

    def test_stock_is_received_minus_consumed(self):
        consume_fifo(product=self.product, branch=self.branch, quantity=4)
        stock(self.product, Decimal("2.5"))

        self.assertEqual(current_stock(product=self.product, branch=self.branch), Decimal("13.5"))


class ReceiveBatchTests(TestCase):
    def setUp(self):
        self.branch = make_branch()
        self.product = make_product(self.branch, sell_price="7.50")

    def test_defaults_batch_number_and_sell_price(self):
        batch = receive_batch(product=self.product, branch=self.branch, quantity=3, unit_cost="2")

        self.assertTrue(batch.batch_number.startswith("BAT-"))
        self.assertEqual(batch.sell_price, Decimal("7.50"))
        self.assertEqual(batch.quantity_remaining, Decimal("3"))

    def test_rejects_non_positive_quantity_and_negative_cost(self):
        with self.assertRaises(DomainValidationError):
            receive_batch(product=self.product, branch=self.branch, quantity=0, unit_cost="1")
        with self.assertRaises(DomainValidationError):
            receive_batch(product=self.product, branch=self.branch, quantity=1, unit_cost="-1")

    def test_batch_must_match_product_branch(self):
        other = make_branch(name="Second", code="SEC")
        with self.assertRaises(ValidationError):
            receive_batch(product=self.product, branch=other, quantity=1, unit_cost="1")


class BatchImmutabilityTests(TestCase):
    def setUp(self):
        self.branch = make_branch()
        self.product = make_product(self.branch)
        self.batch = stock(self.product, 5)

    def test_remaining_cannot_increase(self):
        self.batch.quantity_remaining = Decimal("6")
        with self.assertRaises(ValidationError):
            self.batch.save()

    def test_cost_is_immutable(self):
        self.batch.unit_cost = Decimal("99.00")
        with self.assertRaises(ValidationError):
            self.batch.save()

    def test_batches_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.batch.delete()


class StockMovementTests(TestCase):
    def setUp(self):
        self.branch = make_branch()
        self.product = make_product(self.branch)

    def test_movements_are_append_only(self):
        movement = record_movement(
            product=self.product,
            branch=self.branch,
            movement_type=StockMovement.MovementType.PURCHASE,
            quantity=3,
            unit_cost="2.00",
        )

        movement.note = "edited"
        with self.assertRaises(ValidationError):
            movement.save()
        with self.assertRaises(ValidationError):
            movement.delete()

    def test_sign_must_match_direction(self):
        with self.assertRaises(ValidationError):
            record_movement(
                product=self.product,
                branch=self.branch,
                movement_type=StockMovement.MovementType.SALE,
                quantity=3,
            )
