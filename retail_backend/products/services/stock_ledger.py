# products/services/stock_ledger.py

"""
STOCK LEDGER (FIFO BATCH ENGINE)

Purpose:
- Answer "how much of product P is at branch B" (sum of batch remainders)
- Receive stock as new batches (purchase, adjustment, return, transfer-in)
- Consume stock FIFO: earliest expiry first (no-expiry batches last), then oldest batch
- Append StockMovement audit rows

HARD RULES:
- Consumption checks the total first and raises InsufficientStockError before
  touching any batch; a partial consumption is never left behind.
- Batches are locked (select_for_update) for the whole consumption; callers
  run inside their own transaction.atomic so a later failure undoes it all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from core.dates import to_date
from core.documents import doc_number
from core.exceptions import DomainValidationError, InsufficientStockError
from core.money import ZERO, to_money, to_quantity, to_unit_cost
from products.models import StockBatch, StockMovement

QTY_ZERO = Decimal("0")


@dataclass(frozen=True)
class BatchAllocation:
    batch_id: object
    quantity: Decimal
    unit_cost: Decimal


@dataclass(frozen=True)
class FifoConsumption:
    cost_of_goods: Decimal
    allocations: list = field(default_factory=list)


def _id(obj):
    return getattr(obj, "id", obj)


def fifo_order():
    return (F("expiry_date").asc(nulls_last=True), "created_at", "id")


def current_stock(*, product, branch) -> Decimal:
    """Sum of quantity_remaining for (product, branch). Side-effect free."""
    total = StockBatch.objects.filter(
        product_id=_id(product),
        branch_id=_id(branch),
    ).aggregate(total=Coalesce(Sum("quantity_remaining"), QTY_ZERO))["total"]
    return to_quantity(total)


def receive_batch(
    *,
    product,
    branch,
    quantity,
    unit_cost,
    sell_price=None,
    batch_number=None,
    expiry_date=None,
) -> StockBatch:
    qty = to_quantity(quantity)
    cost = to_unit_cost(unit_cost, fallback=None)
    price = to_money(sell_price, fallback=None) if sell_price is not None else None

    if qty <= 0:
        raise DomainValidationError("Received quantity must be greater than zero")
    if cost is None or cost < 0:
        raise DomainValidationError("unit_cost must be a non-negative amount")
    if price is None:
        price = to_money(getattr(product, "sell_price", None))
    if price < 0:
        raise DomainValidationError("sell_price must be a non-negative amount")
    expiry = to_date(expiry_date, label="expiry_date")

    return StockBatch.objects.create(
        product_id=_id(product),
        branch_id=_id(branch),
        batch_number=(batch_number or "").strip() or doc_number("BAT"),
        expiry_date=expiry,
        quantity_received=qty,
        quantity_remaining=qty,
        unit_cost=cost,
        sell_price=price,
    )


@transaction.atomic
def consume_fifo(*, product, branch, quantity) -> FifoConsumption:
    qty = to_quantity(quantity)
    if qty <= 0:
        raise DomainValidationError("Quantity to consume must be greater than zero")

    batches = list(
        StockBatch.objects.select_for_update()
        .filter(
            product_id=_id(product),
            branch_id=_id(branch),
            quantity_remaining__gt=0,
        )
        .order_by(*fifo_order())
    )

    available = sum((b.quantity_remaining for b in batches), QTY_ZERO)
    if available < qty:
        raise InsufficientStockError(product=product, requested=qty, available=available)

    remaining = qty
    cost = Decimal("0")
    allocations = []

    for batch in batches:
        if remaining <= 0:
            break

        take = min(remaining, batch.quantity_remaining)
        batch.quantity_remaining = batch.quantity_remaining - take
        batch.save(update_fields=["quantity_remaining"])

        cost += take * batch.unit_cost
        remaining -= take
        allocations.append(
            BatchAllocation(batch_id=batch.id, quantity=take, unit_cost=batch.unit_cost)
        )

    return FifoConsumption(cost_of_goods=to_money(cost), allocations=allocations)


def record_movement(
    *,
    product,
    branch,
    movement_type,
    quantity,
    unit_cost=ZERO,
    reference_type="",
    reference_id="",
    user=None,
    note="",
) -> StockMovement:
    return StockMovement.objects.create(
        product_id=_id(product),
        branch_id=_id(branch),
        movement_type=movement_type,
        quantity=to_quantity(quantity),
        unit_cost=to_money(unit_cost),
        reference_type=reference_type or "",
        reference_id=str(reference_id or ""),
        note=(note or "")[:255],
        created_by_id=_id(user),
    )


def unit_cost_of(consumption: FifoConsumption, quantity) -> Decimal:
    """Average FIFO cost per unit at 4 places (0 for zero quantity)."""
    qty = to_quantity(quantity)
    if qty <= 0:
        return ZERO
    return to_unit_cost(consumption.cost_of_goods / qty)
