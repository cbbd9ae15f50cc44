# products/models/stock_movement.py

"""
INVENTORY MOVEMENT LEDGER

Immutable audit row describing one stock change.

GUARANTEES:
- Append-only (no updates, no deletes)
- quantity is signed: positive = stock in, negative = stock out
- Sign must agree with the movement type (ADJUSTMENT may go either way)
- reference_type/reference_id point at the causing document
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from branches.models import Branch
from .product import Product


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        PURCHASE = "PURCHASE", "Purchase receipt"
        SALE = "SALE", "Sale"
        ADJUSTMENT = "ADJUSTMENT", "Manual adjustment"
        RETURN = "RETURN", "Sales return"
        TRANSFER_IN = "TRANSFER_IN", "Transfer in"
        TRANSFER_OUT = "TRANSFER_OUT", "Transfer out"

    INBOUND = {MovementType.PURCHASE, MovementType.RETURN, MovementType.TRANSFER_IN}
    OUTBOUND = {MovementType.SALE, MovementType.TRANSFER_OUT}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch = models.ForeignKey(
        Branch, on_delete=models.PROTECT, related_name="stock_movements"
    )
    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=20, choices=MovementType.choices)

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_cost = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    reference_type = models.CharField(max_length=40, blank=True)
    reference_id = models.CharField(max_length=64, blank=True)

    note = models.CharField(max_length=255, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["branch", "product", "created_at"],
                name="move_branch_product_at_idx",
            ),
            models.Index(
                fields=["reference_type", "reference_id"],
                name="move_reference_idx",
            ),
        ]

    def clean(self):
        if self.quantity is None or self.quantity == 0:
            raise ValidationError("quantity must be non-zero")

        if self.movement_type in self.INBOUND and self.quantity < 0:
            raise ValidationError(f"{self.movement_type} movements must be positive")

        if self.movement_type in self.OUTBOUND and self.quantity > 0:
            raise ValidationError(f"{self.movement_type} movements must be negative")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity}"
