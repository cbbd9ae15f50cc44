# accounting/services/invoice_totals.py

"""
INVOICE TOTALS ENGINE

Pure derivation shared by sales and purchase invoices (no I/O):

    total = max(subtotal - discount + tax, 0)
    paid  = clamp(paid_amount, 0, total)
    due   = total - paid
    status: PAID if due == 0 and total > 0, PARTIAL if paid > 0, else UNPAID
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from core.money import ZERO, to_money

PAID = "PAID"
PARTIAL = "PARTIAL"
UNPAID = "UNPAID"

PURCHASE_STATUS = {
    PAID: "RECEIVED",
    PARTIAL: "PARTIAL",
    UNPAID: "ORDERED",
}


@dataclass(frozen=True)
class InvoiceTotals:
    total: Decimal
    paid: Decimal
    due: Decimal
    status: str


def invoice_status(total, paid) -> str:
    total = to_money(total)
    paid = to_money(paid)
    due = max(total - paid, ZERO)

    if due == ZERO and total > ZERO:
        return PAID
    if paid > ZERO:
        return PARTIAL
    return UNPAID


def compute_totals(*, subtotal, discount=0, tax=0, paid_amount=0) -> InvoiceTotals:
    total = max(to_money(subtotal) - to_money(discount) + to_money(tax), ZERO)
    paid = min(max(to_money(paid_amount), ZERO), total)
    due = total - paid

    return InvoiceTotals(
        total=total,
        paid=paid,
        due=due,
        status=invoice_status(total, paid),
    )


def purchase_status(totals: InvoiceTotals) -> str:
    return PURCHASE_STATUS[totals.status]
