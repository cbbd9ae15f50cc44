# sales/services/customer_ledger.py

from __future__ import annotations

from decimal import Decimal

from django.db.models import DecimalField, Q, Sum
from django.db.models.functions import Coalesce

from core.money import ZERO, to_money
from sales.models import CustomerLedgerEntry

DEBIT = CustomerLedgerEntry.EntryType.DEBIT
CREDIT = CustomerLedgerEntry.EntryType.CREDIT


def post_entry(*, customer, branch, entry_type, amount, invoice=None, note=""):
    """Append a ledger row; zero amounts are skipped."""
    amt = to_money(amount)
    if customer is None or amt <= 0:
        return None

    return CustomerLedgerEntry.objects.create(
        customer=customer,
        branch_id=getattr(branch, "id", branch),
        invoice=invoice,
        entry_type=entry_type,
        amount=amt,
        note=(note or "")[:255],
    )


def customer_balance(customer) -> Decimal:
    """What the customer owes: sum(DEBIT) - sum(CREDIT)."""
    field = DecimalField(max_digits=20, decimal_places=2)
    totals = CustomerLedgerEntry.objects.filter(customer=customer).aggregate(
        debit=Coalesce(Sum("amount", filter=Q(entry_type=DEBIT)), ZERO, output_field=field),
        credit=Coalesce(Sum("amount", filter=Q(entry_type=CREDIT)), ZERO, output_field=field),
    )
    return to_money(totals["debit"] - totals["credit"])
