# products/models/stock_batch.py

"""
STOCK BATCH

Represents ONE received lot of a product at a branch.

- quantity_received, unit_cost, sell_price, expiry_date are immutable after creation
- quantity_remaining is mutated ONLY via services.stock_ledger and may only go down
- Never deleted (movements and purchase lines point at it)
- Sources: purchase receipt, positive adjustment, sales-return restock, transfer-in
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from branches.models import Branch
from .product import Product


class StockBatch(models.Model):
    IMMUTABLE_FIELDS = (
        "product_id",
        "branch_id",
        "batch_number",
        "expiry_date",
        "quantity_received",
        "unit_cost",
        "sell_price",
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="stock_batches",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="stock_batches",
    )

    batch_number = models.CharField(max_length=128)

    # Null = no expiry; such batches are consumed after every dated batch
    expiry_date = models.DateField(null=True, blank=True)

    quantity_received = models.DecimalField(max_digits=14, decimal_places=3)
    quantity_remaining = models.DecimalField(max_digits=14, decimal_places=3)

    unit_cost = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000")
    )
    sell_price = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    # Not auto_now_add: FIFO tie-break relies on it, so it must be settable
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["branch", "product", "expiry_date"],
                name="batch_branch_product_exp_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_received__gt=0),
                name="chk_stockbatch_qty_received_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(quantity_remaining__gte=0),
                name="chk_stockbatch_qty_remaining_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(quantity_remaining__lte=F("quantity_received")),
                name="chk_stockbatch_remaining_lte_received",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name="chk_stockbatch_unit_cost_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if self.quantity_received is None or self.quantity_received <= 0:
            raise ValidationError(
                {"quantity_received": "quantity_received must be greater than zero"}
            )

        if self.quantity_remaining is None or self.quantity_remaining < 0:
            raise ValidationError(
                {"quantity_remaining": "quantity_remaining cannot be negative"}
            )

        if self.quantity_remaining > self.quantity_received:
            raise ValidationError(
                {"quantity_remaining": "quantity_remaining cannot exceed quantity_received"}
            )

        if self.product_id and self.branch_id:
            product_branch = (
                Product.objects.filter(pk=self.product_id)
                .values_list("branch_id", flat=True)
                .first()
            )
            if product_branch is not None and product_branch != self.branch_id:
                raise ValidationError("Batch branch must match product branch")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = StockBatch.objects.filter(pk=self.pk).first()
            if original is not None:
                for field in self.IMMUTABLE_FIELDS:
                    if getattr(original, field) != getattr(self, field):
                        raise ValidationError(
                            f"StockBatch.{field} is immutable after creation"
                        )
                if self.quantity_remaining > original.quantity_remaining:
                    raise ValidationError(
                        "StockBatch.quantity_remaining can only decrease; restock with a new batch"
                    )

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Stock batches cannot be deleted")

    @property
    def stock_value(self) -> Decimal:
        return (self.quantity_remaining or Decimal("0")) * (self.unit_cost or Decimal("0"))

    def __str__(self):
        return f"{self.product} | {self.batch_number} | {self.quantity_remaining}"
