# products/models/stock_transfer.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from branches.models import Branch
from .product import Product


class StockTransfer(models.Model):
    """Stock moved from one branch to another (header)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=40, unique=True)

    from_branch = models.ForeignKey(
        Branch, on_delete=models.PROTECT, related_name="transfers_out"
    )
    to_branch = models.ForeignKey(
        Branch, on_delete=models.PROTECT, related_name="transfers_in"
    )

    transfer_date = models.DateField(default=timezone.localdate)
    note = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_transfers",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(from_branch=F("to_branch")),
                name="chk_transfer_branches_differ",
            ),
        ]

    def __str__(self):
        return self.number


class StockTransferItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transfer = models.ForeignKey(
        StockTransfer, on_delete=models.CASCADE, related_name="items"
    )

    # Product as known at the source branch
    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="transfer_items"
    )
    # Counterpart product at the target branch (same SKU)
    target_product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="transfer_items_in"
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000")
    )

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_transfer_item_qty_gt_zero",
            ),
        ]
