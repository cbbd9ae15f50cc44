# products/models/product.py

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from branches.models import Branch
from .category import Category


class Product(models.Model):
    """
    Represents a sellable product, scoped to one branch.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives in StockBatch
    - Current stock = sum of batch quantity_remaining (see services.stock_ledger)
    - sell_price is the default price; SalesItem snapshots the price actually charged
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="products",
    )

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    sku = models.CharField(max_length=128, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    unit = models.CharField(max_length=32, blank=True, default="pcs")

    sell_price = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    # Low-stock alert threshold
    min_stock = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0")
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["branch", "sku"],
                name="uniq_product_sku_per_branch",
            ),
            models.CheckConstraint(
                condition=Q(sell_price__gte=0),
                name="chk_product_sell_price_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"
