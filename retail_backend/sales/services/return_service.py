# sales/services/return_service.py

"""
SALES RETURN SERVICE (ATOMIC)

Each requested line resolves to ONE sold line:
- explicit sales_item_id, or
- product_id: the first line of that product with quantity left to return

Per sold line:
    max_returnable = sold - sum(previously returned)   (this request included)

Side effects, all in one unit of work:
- restock: a new batch RET-<invoice number> carrying the returned share of the
  line's COGS, priced at the returned unit price, + RETURN movement
- refund = min(requested, return total, paid so far), paid out of the refund account
- customer ledger CREDIT for the part of the return not refunded
- invoice re-derived against total - all returns
- loyalty points for the returned value taken back (never below zero)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce

from accounting.services.account_balances import (
    OUT,
    account_type_from_payment_method,
    apply_movement,
    ensure_funds,
)
from accounting.services.invoice_totals import invoice_status
from audit.services import log_audit_on_commit
from core.dates import to_date
from core.documents import doc_number
from core.exceptions import DomainValidationError, NotFoundError
from core.ids import as_uuid
from core.money import ZERO, to_money, to_quantity, to_unit_cost
from products.models import StockMovement
from products.services.stock_ledger import receive_batch, record_movement
from sales.models import Customer, SalesItem, SalesReturn, SalesReturnItem
from sales.services.customer_ledger import CREDIT, post_entry
from sales.services.invoice_service import effective_total
from sales.services.loyalty import reverse_points
from sales.services.payment_service import get_invoice_for_update

logger = logging.getLogger(__name__)

QTY_FIELD = DecimalField(max_digits=14, decimal_places=3)
MONEY_FIELD = DecimalField(max_digits=14, decimal_places=2)


def _already_returned(invoice):
    """-> ({sales_item_id: quantity returned}, {sales_item_id: cost put back})"""
    rows = (
        SalesReturnItem.objects.filter(sales_item__invoice=invoice)
        .values("sales_item_id")
        .annotate(
            qty=Coalesce(Sum("quantity"), Decimal("0"), output_field=QTY_FIELD),
            cost=Coalesce(Sum("cost_amount"), ZERO, output_field=MONEY_FIELD),
        )
    )
    returned = defaultdict(lambda: Decimal("0"))
    returned_cost = defaultdict(lambda: ZERO)
    for row in rows:
        returned[row["sales_item_id"]] = to_quantity(row["qty"])
        returned_cost[row["sales_item_id"]] = to_money(row["cost"])
    return returned, returned_cost


def _returned_cost(sales_item, *, qty, returned_before, cost_before) -> Decimal:
    """
    Share of the line's captured COGS for `qty` units.

    The return that empties the line takes whatever cost is left, so the
    returns of a line always add up to exactly its cost_of_goods.
    """
    if returned_before + qty >= sales_item.quantity:
        return to_money(sales_item.cost_of_goods - cost_before)
    return to_money(sales_item.cost_of_goods * qty / sales_item.quantity)


def _resolve_lines(items, *, invoice) -> list:
    """
    -> [(sales_item, quantity, unit_price, cost_amount)]

    Validates every line against what is still returnable before anything
    is written.
    """
    if not items:
        raise DomainValidationError("At least one return item is required")

    sold = list(
        SalesItem.objects.filter(invoice=invoice)
        .select_related("product")
        .order_by("line_no", "id")
    )
    by_id = {item.id: item for item in sold}
    returned, returned_cost = _already_returned(invoice)

    resolved = []
    for raw in items:
        qty = to_quantity(raw.get("quantity"))
        if qty <= 0:
            raise DomainValidationError("Return quantity must be greater than zero")

        item_id = as_uuid(raw.get("sales_item_id") or raw.get("sales_item"))
        if item_id is not None:
            sales_item = by_id.get(item_id)
            if sales_item is None:
                raise NotFoundError("Sales item not found on this invoice")
        else:
            product_id = as_uuid(raw.get("product_id") or raw.get("product"))
            candidates = [s for s in sold if s.product_id == product_id]
            if not candidates:
                raise NotFoundError("Product was not sold on this invoice")
            sales_item = next(
                (s for s in candidates if s.quantity - returned[s.id] > 0),
                candidates[0],
            )

        max_returnable = sales_item.quantity - returned[sales_item.id]
        if qty > max_returnable:
            raise DomainValidationError(
                f"Return quantity {qty} exceeds returnable quantity {max_returnable} "
                f"for {sales_item.product.name}"
            )

        unit_price = raw.get("unit_price")
        if unit_price in (None, ""):
            unit_price = to_money(sales_item.unit_price)
        else:
            unit_price = to_money(unit_price, fallback=None)
            if unit_price is None or unit_price < 0:
                raise DomainValidationError("unit_price must be a non-negative amount")

        cost_amount = _returned_cost(
            sales_item,
            qty=qty,
            returned_before=returned[sales_item.id],
            cost_before=returned_cost[sales_item.id],
        )
        returned[sales_item.id] += qty
        returned_cost[sales_item.id] += cost_amount
        resolved.append((sales_item, qty, unit_price, cost_amount))

    return resolved


@transaction.atomic
def process_sales_return(
    *,
    invoice_id,
    items,
    refund_amount=0,
    refund_method="CASH",
    branch=None,
    reason="",
    return_date=None,
    user=None,
) -> SalesReturn:
    invoice = get_invoice_for_update(invoice_id=invoice_id, branch=branch)

    requested_refund = to_money(refund_amount, fallback=None)
    if requested_refund is None or requested_refund < 0:
        raise DomainValidationError("refund_amount must be a non-negative amount")

    lines = _resolve_lines(items, invoice=invoice)
    day = to_date(return_date, label="return_date", default_today=True)

    return_total = to_money(
        sum((to_money(qty * unit_price) for _, qty, unit_price, _ in lines), Decimal("0"))
    )
    refund = min(requested_refund, return_total, to_money(invoice.paid_amount))

    refund_account = None
    if refund > 0:
        refund_account = account_type_from_payment_method(refund_method)
        if refund_account is None:
            raise DomainValidationError("Refunds must use CASH, BANK or CARD")
        ensure_funds(
            branch=invoice.branch_id,
            account_type=refund_account,
            amount=refund,
            purpose="sales refund",
        )

    sales_return = SalesReturn.objects.create(
        number=doc_number("RET"),
        invoice=invoice,
        branch_id=invoice.branch_id,
        return_date=day,
        total=return_total,
        refund_amount=refund,
        refund_method=refund_account or "",
        reason=(reason or "").strip()[:255],
        created_by=user,
    )

    for sales_item, qty, unit_price, cost_amount in lines:
        unit_cost = to_unit_cost(cost_amount / qty)

        receive_batch(
            product=sales_item.product,
            branch=invoice.branch_id,
            quantity=qty,
            unit_cost=unit_cost,
            sell_price=unit_price,
            batch_number=f"RET-{invoice.number}",
        )

        SalesReturnItem.objects.create(
            sales_return=sales_return,
            sales_item=sales_item,
            product=sales_item.product,
            quantity=qty,
            unit_price=unit_price,
            line_total=to_money(qty * unit_price),
            unit_cost=unit_cost,
            cost_amount=cost_amount,
        )

        record_movement(
            product=sales_item.product,
            branch=invoice.branch_id,
            movement_type=StockMovement.MovementType.RETURN,
            quantity=qty,
            unit_cost=unit_cost,
            reference_type="SALES_RETURN",
            reference_id=sales_return.id,
            user=user,
        )

    if refund > 0:
        apply_movement(
            branch=invoice.branch_id,
            account_type=refund_account,
            amount=refund,
            direction=OUT,
            purpose="sales refund",
        )

    net_total = effective_total(invoice)
    paid = max(to_money(invoice.paid_amount) - refund, ZERO)
    invoice.paid_amount = paid
    invoice.due_amount = max(net_total - paid, ZERO)
    invoice.status = invoice_status(net_total, paid)
    invoice.save(update_fields=["paid_amount", "due_amount", "status"])

    if invoice.customer_id:
        customer = Customer.objects.select_for_update().get(pk=invoice.customer_id)
        post_entry(
            customer=customer,
            branch=invoice.branch_id,
            entry_type=CREDIT,
            amount=return_total - refund,
            invoice=invoice,
            note=f"Return {sales_return.number}",
        )
        reverse_points(customer=customer, invoice=invoice, amount=return_total)

    logger.info(
        "Sales return processed",
        extra={
            "return_id": str(sales_return.id),
            "invoice_id": str(invoice.id),
            "total": str(return_total),
            "refund": str(refund),
            "due_amount": str(invoice.due_amount),
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="SalesReturn",
        entity_id=sales_return.id,
        payload={
            "number": sales_return.number,
            "invoice_id": invoice.id,
            "total": return_total,
            "refund": refund,
        },
    )

    return sales_return
