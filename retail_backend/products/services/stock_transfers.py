# products/services/stock_transfers.py

"""
INTER-BRANCH STOCK TRANSFER

Flow (one atomic unit of work, all lines or nothing):
1) consume FIFO at the source branch            -> TRANSFER_OUT movement (negative)
2) receive a batch at the target branch         -> TRANSFER_IN movement (positive)
   at the consumed average unit cost, batch number TRF-<transfer number>

Products are branch-scoped: the target counterpart is matched by SKU and is
created (copying name/category/price) when the target branch has never stocked it.
"""

from __future__ import annotations

import logging

from django.db import transaction

from audit.services import log_audit_on_commit
from branches.models import Branch
from core.dates import to_date
from core.documents import doc_number
from core.exceptions import DomainValidationError, NotFoundError
from core.ids import as_uuid
from core.money import to_quantity
from products.models import Product, StockMovement, StockTransfer, StockTransferItem
from products.services.stock_ledger import (
    consume_fifo,
    receive_batch,
    record_movement,
    unit_cost_of,
)

logger = logging.getLogger(__name__)


def _target_product(*, source_product: Product, target_branch: Branch) -> Product:
    product, _ = Product.objects.get_or_create(
        branch=target_branch,
        sku=source_product.sku,
        defaults={
            "name": source_product.name,
            "category_id": source_product.category_id,
            "unit": source_product.unit,
            "sell_price": source_product.sell_price,
            "min_stock": source_product.min_stock,
        },
    )
    return product


def _normalize_items(items, *, source_branch):
    if not items:
        raise DomainValidationError("At least one transfer item is required")

    normalized = []
    for raw in items:
        qty = to_quantity(raw.get("quantity"))
        if qty <= 0:
            raise DomainValidationError("Transfer quantity must be greater than zero")

        product = Product.objects.filter(
            pk=as_uuid(raw.get("product_id")), branch=source_branch
        ).first()
        if product is None:
            raise NotFoundError("Product not found in the source branch")

        normalized.append((product, qty, raw.get("sell_price")))
    return normalized


@transaction.atomic
def transfer_stock(
    *,
    source_branch,
    target_branch,
    items,
    user=None,
    transfer_date=None,
    note="",
) -> StockTransfer:
    source = Branch.objects.filter(pk=as_uuid(source_branch)).first()
    target = Branch.objects.filter(pk=as_uuid(target_branch)).first()

    if source is None or target is None:
        raise NotFoundError("Source and target branch are required")
    if source.id == target.id:
        raise DomainValidationError("Source and target branch must differ")

    lines = _normalize_items(items, source_branch=source)
    day = to_date(transfer_date, label="transfer_date", default_today=True)

    transfer = StockTransfer.objects.create(
        number=doc_number("TRF"),
        from_branch=source,
        to_branch=target,
        transfer_date=day,
        note=note or "",
        created_by=user,
    )

    for product, qty, sell_price in lines:
        consumption = consume_fifo(product=product, branch=source, quantity=qty)
        unit_cost = unit_cost_of(consumption, qty)
        target_product = _target_product(source_product=product, target_branch=target)

        StockTransferItem.objects.create(
            transfer=transfer,
            product=product,
            target_product=target_product,
            quantity=qty,
            unit_cost=unit_cost,
        )

        record_movement(
            product=product,
            branch=source,
            movement_type=StockMovement.MovementType.TRANSFER_OUT,
            quantity=-qty,
            unit_cost=unit_cost,
            reference_type="STOCK_TRANSFER",
            reference_id=transfer.id,
            user=user,
        )

        receive_batch(
            product=target_product,
            branch=target,
            quantity=qty,
            unit_cost=unit_cost,
            sell_price=sell_price,
            batch_number=f"TRF-{transfer.number}",
            expiry_date=None,
        )

        record_movement(
            product=target_product,
            branch=target,
            movement_type=StockMovement.MovementType.TRANSFER_IN,
            quantity=qty,
            unit_cost=unit_cost,
            reference_type="STOCK_TRANSFER",
            reference_id=transfer.id,
            user=user,
        )

    logger.info(
        "Stock transferred",
        extra={
            "transfer_id": str(transfer.id),
            "from_branch": str(source.id),
            "to_branch": str(target.id),
            "lines": len(lines),
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="StockTransfer",
        entity_id=transfer.id,
        payload={"number": transfer.number, "lines": len(lines)},
    )

    return transfer
