# sales/services/loyalty.py

"""
LOYALTY POINTS

One point per LOYALTY_POINT_VALUE of invoice value (floored).
Callers hold a row lock on the customer (select_for_update) before calling.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from django.conf import settings

from core.money import to_money
from sales.models import LoyaltyTransaction


def point_value() -> Decimal:
    return to_money(getattr(settings, "LOYALTY_POINT_VALUE", "100"))


def points_for(amount) -> int:
    value = point_value()
    amount = to_money(amount)
    if value <= 0 or amount <= 0:
        return 0
    return int((amount / value).to_integral_value(rounding=ROUND_FLOOR))


def award_points(*, customer, invoice, amount) -> int:
    points = points_for(amount)
    if points <= 0:
        return 0

    customer.loyalty_points += points
    customer.save(update_fields=["loyalty_points"])

    LoyaltyTransaction.objects.create(
        customer=customer,
        invoice=invoice,
        points=points,
        transaction_type=LoyaltyTransaction.TransactionType.EARN,
        note=f"Earned on {invoice.number}",
    )
    return points


def reverse_points(*, customer, invoice, amount, note="") -> int:
    """Take back points for returned value, never below zero."""
    points = min(points_for(amount), customer.loyalty_points)
    if points <= 0:
        return 0

    customer.loyalty_points -= points
    customer.save(update_fields=["loyalty_points"])

    LoyaltyTransaction.objects.create(
        customer=customer,
        invoice=invoice,
        points=-points,
        transaction_type=LoyaltyTransaction.TransactionType.REVERSAL,
        note=note or f"Reversed on return for {invoice.number}",
    )
    return points
