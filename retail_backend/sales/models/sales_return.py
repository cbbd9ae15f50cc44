# sales/models/sales_return.py

"""
SALES RETURNS (APPEND-ONLY)

Every return is a header plus lines pointing at the sold line they reverse.
They are the single source of truth for:
- remaining returnable quantity per SalesItem
- restocked cost (cost_amount) for profit reporting
- the invoice's effective total (total minus all return totals)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from branches.models import Branch
from products.models import Product
from .sales_invoice import SalesInvoice
from .sales_item import SalesItem


class SalesReturn(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=40, unique=True)

    invoice = models.ForeignKey(
        SalesInvoice,
        on_delete=models.PROTECT,
        related_name="returns",
    )
    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="sales_returns",
    )

    return_date = models.DateField(default=timezone.localdate)

    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    refund_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    refund_method = models.CharField(max_length=8, default="CASH")
    reason = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales_returns",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(refund_amount__gte=Decimal("0.00"))
                & Q(refund_amount__lte=models.F("total")),
                name="sales_return_refund_within_total",
            ),
        ]

    def __str__(self):
        return f"{self.number} ({self.total})"


class SalesReturnItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sales_return = models.ForeignKey(
        SalesReturn,
        on_delete=models.PROTECT,
        related_name="items",
    )
    sales_item = models.ForeignKey(
        SalesItem,
        on_delete=models.PROTECT,
        related_name="return_items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="sales_return_items",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    line_total = models.DecimalField(max_digits=14, decimal_places=2)

    # Cost put back into stock (restock batch cost)
    unit_cost = models.DecimalField(max_digits=18, decimal_places=4, default=Decimal("0.0000"))
    cost_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="sales_return_item_quantity_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Return items are immutable once created")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Return items cannot be deleted")
