# accounting/models/company.py

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q


class Company(models.Model):
    """
    The business owning every branch (single row).

    fiscal_year_start_month drives fiscal-year windows for reports and close.
    opening_capital is the owner's initial equity on the balance sheet.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200, default="My Business")
    owner_name = models.CharField(max_length=200, blank=True)
    currency = models.CharField(max_length=8, default="USD")

    start_date = models.DateField(null=True, blank=True)

    fiscal_year_start_month = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(12)],
    )

    opening_capital = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "companies"
        constraints = [
            models.CheckConstraint(
                condition=Q(fiscal_year_start_month__gte=1)
                & Q(fiscal_year_start_month__lte=12),
                name="chk_company_fiscal_start_month_range",
            ),
            models.CheckConstraint(
                condition=Q(opening_capital__gte=0),
                name="chk_company_opening_capital_gte_zero",
            ),
        ]

    def __str__(self):
        return self.name
