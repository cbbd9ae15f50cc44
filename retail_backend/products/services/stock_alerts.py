# products/services/stock_alerts.py

"""
Read-only stock alerts: low stock and soon-to-expire batches.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import DecimalField, F, OuterRef, Subquery, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from products.models import Product, StockBatch


def low_stock_products(*, branch):
    """Active products whose stock is at or below min_stock, lowest first."""
    stock_sq = (
        StockBatch.objects.filter(product=OuterRef("pk"))
        .values("product")
        .annotate(total=Sum("quantity_remaining"))
        .values("total")
    )

    return (
        Product.objects.filter(branch=branch, is_active=True)
        .annotate(
            stock=Coalesce(
                Subquery(stock_sq, output_field=DecimalField(max_digits=14, decimal_places=3)),
                Value(Decimal("0")),
                output_field=DecimalField(max_digits=14, decimal_places=3),
            )
        )
        .filter(stock__lte=F("min_stock"))
        .order_by("stock", "name")
    )


def expiring_batches(*, branch, days=None, today=None):
    """Batches with stock left that expire within `days` (default EXPIRY_ALERT_DAYS)."""
    today = today or timezone.localdate()
    window = settings.EXPIRY_ALERT_DAYS if days is None else int(days)

    return (
        StockBatch.objects.select_related("product")
        .filter(
            branch=branch,
            quantity_remaining__gt=0,
            expiry_date__isnull=False,
            expiry_date__lte=today + timedelta(days=window),
        )
        .order_by("expiry_date", "created_at")
    )
