# products/tests/test_stock_alerts.py

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from core.tests.factories import make_branch, make_product, stock
from products.services.stock_alerts import expiring_batches, low_stock_products


class StockAlertTests(TestCase):
    def setUp(self):
        self.branch = make_branch()
        self.today = timezone.localdate()

    def test_low_stock_includes_products_at_or_below_threshold(self):
        low = make_product(self.branch, sku="LOW", min_stock=Decimal("5"))
        stock(low, 5)
        fine = make_product(self.branch, sku="OK", min_stock=Decimal("5"))
        stock(fine, 6)
        empty = make_product(self.branch, sku="EMPTY", min_stock=Decimal("1"))

        skus = [p.sku for p in low_stock_products(branch=self.branch)]

        self.assertEqual(skus, ["EMPTY", "LOW"])
        self.assertNotIn(fine.sku, skus)
        self.assertEqual(empty.sku, "EMPTY")

    def test_expiring_batches_window(self):
        product = make_product(self.branch)
        soon = stock(product, 1, expiry_date=self.today + timedelta(days=3))
        stock(product, 1, expiry_date=self.today + timedelta(days=90))
        stock(product, 1)

        found = list(expiring_batches(branch=self.branch, days=30, today=self.today))

        self.assertEqual(found, [soon])
