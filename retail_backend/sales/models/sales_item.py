# sales/models/sales_item.py

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from products.models import Product
from .sales_invoice import SalesInvoice


class SalesItem(models.Model):
    """
    Immutable sold line.

    Financial snapshot:
    - unit_price: price actually charged
    - line_total: quantity * unit_price - discount
    - cost_of_goods: FIFO cost of the consumed batches (COGS)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice = models.ForeignKey(
        SalesInvoice,
        on_delete=models.PROTECT,
        related_name="items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="sales_items",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(max_digits=14, decimal_places=2)
    cost_of_goods = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    # 1-based position on the invoice, in the order the lines were entered
    line_no = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["line_no", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="sales_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gte=Decimal("0.00")),
                name="sales_item_unit_price_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(discount__gte=Decimal("0.00")),
                name="sales_item_discount_nonnegative",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Sales items are immutable once created")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Sales items cannot be deleted")

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} x {self.quantity}"
