# sales/models/sales_invoice.py

"""
SALES INVOICE (HEADER)

Totals are derived by accounting.services.invoice_totals and written ONLY by
the sales services:
- total = max(subtotal - discount + tax, 0)
- 0 <= paid_amount
- due_amount >= 0
After returns, due/paid are measured against the invoice's effective total
(total minus returned value), so paid_amount may exceed due-based math but
never the original total.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from branches.models import Branch
from .customer import Customer

User = settings.AUTH_USER_MODEL


class SalesInvoice(models.Model):
    class Status(models.TextChoices):
        PAID = "PAID", "Paid"
        PARTIAL = "PARTIAL", "Partially paid"
        UNPAID = "UNPAID", "Unpaid"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=40, unique=True)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="sales_invoices",
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="invoices",
        null=True,
        blank=True,
    )

    invoice_date = models.DateField(default=timezone.localdate)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    due_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.UNPAID)

    payment_method = models.CharField(max_length=8, default="CASH")
    note = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales_invoices_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["branch", "invoice_date"], name="sales_branch_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total__gte=Decimal("0.00")),
                name="sales_invoice_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=Decimal("0.00"))
                & Q(paid_amount__lte=F("total")),
                name="sales_invoice_paid_within_total",
            ),
            models.CheckConstraint(
                condition=Q(due_amount__gte=Decimal("0.00")),
                name="sales_invoice_due_nonnegative",
            ),
        ]

    def __str__(self):
        return f"{self.number} ({self.total})"
