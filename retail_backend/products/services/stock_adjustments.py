# products/services/stock_adjustments.py

"""
STOCK ADJUSTMENTS SERVICE

Purpose:
- Correct a branch's stock of one product (stock-take, damage, found goods).

Rules:
- quantity is signed and non-zero
- positive: receive a new batch (ADJ-... batch number unless given)
- negative: consume FIFO (InsufficientStockError if not enough)
- always appends ONE ADJUSTMENT movement
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from audit.services import log_audit_on_commit
from core.documents import doc_number
from core.exceptions import DomainValidationError, NotFoundError
from core.ids import as_uuid
from core.money import to_money, to_quantity
from products.models import Product, StockMovement
from products.services.stock_ledger import (
    consume_fifo,
    current_stock,
    receive_batch,
    record_movement,
    unit_cost_of,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdjustmentResult:
    product: Product
    movement: StockMovement
    quantity: Decimal
    stock: Decimal


@transaction.atomic
def adjust_stock(
    *,
    product,
    branch,
    quantity,
    unit_cost=None,
    sell_price=None,
    batch_number=None,
    expiry_date=None,
    note="",
    user=None,
) -> AdjustmentResult:
    branch_id = as_uuid(branch)
    product = Product.objects.filter(pk=as_uuid(product), branch_id=branch_id).first()
    if product is None:
        raise NotFoundError("Product not found in this branch")

    qty = to_quantity(quantity)
    if qty == 0:
        raise DomainValidationError("Adjustment quantity cannot be zero")

    if qty > 0:
        cost = to_money(unit_cost)
        if cost < 0:
            raise DomainValidationError("unit_cost must be a non-negative amount")
        receive_batch(
            product=product,
            branch=branch_id,
            quantity=qty,
            unit_cost=cost,
            sell_price=sell_price,
            batch_number=batch_number or doc_number("ADJ"),
            expiry_date=expiry_date,
        )
    else:
        consumption = consume_fifo(product=product, branch=branch_id, quantity=-qty)
        cost = unit_cost_of(consumption, -qty)

    movement = record_movement(
        product=product,
        branch=branch_id,
        movement_type=StockMovement.MovementType.ADJUSTMENT,
        quantity=qty,
        unit_cost=cost,
        reference_type="STOCK_ADJUSTMENT",
        reference_id=product.id,
        user=user,
        note=note or "Stock adjustment",
    )

    stock = current_stock(product=product, branch=branch_id)

    logger.info(
        "Stock adjusted",
        extra={
            "product_id": str(product.id),
            "branch_id": str(branch_id),
            "quantity": str(qty),
            "stock": str(stock),
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="StockAdjustment",
        entity_id=movement.id,
        payload={"product_id": product.id, "quantity": qty, "stock": stock},
    )

    return AdjustmentResult(product=product, movement=movement, quantity=qty, stock=stock)
