# purchases/services/purchase_service.py

"""
PURCHASE INVOICE SERVICE

create_purchase_invoice() is ONE atomic unit of work:
1) validate supplier, products and every amount (before any write)
2) derive totals via the invoice totals engine
3) check funds for the initial payment (InsufficientFundsError -> nothing written)
4) create header + lines; each line receives ONE stock batch + PURCHASE movement
5) debit the paying account and record the SupplierPayment
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Q

from accounting.services.account_balances import (
    OUT,
    account_type_from_payment_method,
    apply_movement,
    ensure_funds,
)
from accounting.services.invoice_totals import compute_totals, purchase_status
from audit.services import log_audit_on_commit
from branches.models import Branch
from core.dates import to_date
from core.documents import doc_number
from core.exceptions import DomainValidationError
from core.ids import as_uuid
from core.money import to_money, to_quantity
from products.models import Product, StockMovement
from products.services.stock_ledger import receive_batch, record_movement
from purchases.models import PurchaseInvoice, PurchaseItem, Supplier, SupplierPayment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseLine:
    product: Product
    quantity: Decimal
    unit_cost: Decimal
    discount: Decimal
    line_total: Decimal
    sell_price: Decimal
    batch_number: str
    expiry_date: object


def _non_negative(value, label) -> Decimal:
    amount = to_money(value, fallback=None)
    if amount is None or amount < 0:
        raise DomainValidationError(f"{label} must be a non-negative amount")
    return amount


def _product_key(raw):
    return as_uuid(raw.get("product_id") or raw.get("product"))


def _resolve_supplier(*, supplier, branch) -> Supplier:
    found = (
        Supplier.objects.filter(pk=as_uuid(supplier), is_active=True)
        .filter(Q(branch=branch) | Q(branch__isnull=True))
        .first()
    )
    if found is None:
        raise DomainValidationError("Supplier not found for this branch")
    return found


def _normalize_lines(items, *, branch) -> list:
    if not items:
        raise DomainValidationError("At least one purchase item is required")

    product_ids = [_product_key(raw) for raw in items]
    products = {
        p.id: p
        for p in Product.objects.filter(pk__in=product_ids, branch=branch, is_active=True)
    }

    lines = []
    for raw in items:
        product = products.get(_product_key(raw))
        if product is None:
            raise DomainValidationError("One or more products are invalid for this branch")

        qty = to_quantity(raw.get("quantity"))
        if qty <= 0:
            raise DomainValidationError("Purchase quantity must be greater than zero")

        unit_cost = _non_negative(raw.get("unit_cost"), "unit_cost")
        discount = _non_negative(raw.get("discount", 0), "Line discount")
        gross = to_money(qty * unit_cost)
        if discount > gross:
            raise DomainValidationError("Line discount cannot exceed the line amount")

        sell_price = raw.get("sell_price")
        sell_price = (
            _non_negative(sell_price, "sell_price")
            if sell_price not in (None, "")
            else to_money(product.sell_price)
        )

        lines.append(
            PurchaseLine(
                product=product,
                quantity=qty,
                unit_cost=unit_cost,
                discount=discount,
                line_total=to_money(gross - discount),
                sell_price=sell_price,
                batch_number=(raw.get("batch_number") or "").strip(),
                expiry_date=to_date(raw.get("expiry_date"), label="expiry_date"),
            )
        )
    return lines


@transaction.atomic
def create_purchase_invoice(
    *,
    branch,
    supplier,
    items,
    discount=0,
    tax=0,
    paid_amount=0,
    payment_method="CASH",
    invoice_date=None,
    note="",
    user=None,
) -> PurchaseInvoice:
    branch_obj = Branch.objects.filter(pk=as_uuid(branch)).first()
    if branch_obj is None:
        raise DomainValidationError("Valid branch is required")

    supplier_obj = _resolve_supplier(supplier=supplier, branch=branch_obj)
    lines = _normalize_lines(items, branch=branch_obj)

    invoice_discount = _non_negative(discount, "Invoice discount")
    invoice_tax = _non_negative(tax, "Invoice tax")
    requested_paid = _non_negative(paid_amount, "paid_amount")
    day = to_date(invoice_date, label="invoice_date", default_today=True)

    subtotal = to_money(sum((line.line_total for line in lines), Decimal("0")))
    totals = compute_totals(
        subtotal=subtotal,
        discount=invoice_discount,
        tax=invoice_tax,
        paid_amount=requested_paid,
    )

    account_type = None
    if totals.paid > 0:
        account_type = account_type_from_payment_method(payment_method)
        if account_type is None:
            raise DomainValidationError("Purchase payments must use CASH, BANK or CARD")
        ensure_funds(
            branch=branch_obj,
            account_type=account_type,
            amount=totals.paid,
            purpose="purchase payment",
        )

    invoice = PurchaseInvoice.objects.create(
        number=doc_number("PUR"),
        branch=branch_obj,
        supplier=supplier_obj,
        invoice_date=day,
        subtotal=subtotal,
        discount=invoice_discount,
        tax=invoice_tax,
        total=totals.total,
        paid_amount=totals.paid,
        due_amount=totals.due,
        status=purchase_status(totals),
        note=(note or "").strip(),
        created_by=user,
    )

    for line in lines:
        batch = receive_batch(
            product=line.product,
            branch=branch_obj,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
            sell_price=line.sell_price,
            batch_number=line.batch_number or None,
            expiry_date=line.expiry_date,
        )

        PurchaseItem.objects.create(
            invoice=invoice,
            product=line.product,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
            discount=line.discount,
            line_total=line.line_total,
            sell_price=line.sell_price,
            batch_number=batch.batch_number,
            expiry_date=line.expiry_date,
            stock_batch=batch,
        )

        record_movement(
            product=line.product,
            branch=branch_obj,
            movement_type=StockMovement.MovementType.PURCHASE,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
            reference_type="PURCHASE_INVOICE",
            reference_id=invoice.id,
            user=user,
        )

    if totals.paid > 0:
        apply_movement(
            branch=branch_obj,
            account_type=account_type,
            amount=totals.paid,
            direction=OUT,
            purpose="purchase payment",
        )
        SupplierPayment.objects.create(
            supplier=supplier_obj,
            invoice=invoice,
            amount=totals.paid,
            payment_method=account_type,
            payment_date=invoice.invoice_date,
            note="Initial payment",
            created_by=user,
        )

    logger.info(
        "Purchase invoice created",
        extra={
            "invoice_id": str(invoice.id),
            "branch_id": str(branch_obj.id),
            "supplier_id": str(supplier_obj.id),
            "total": str(totals.total),
            "paid": str(totals.paid),
            "lines": len(lines),
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="PurchaseInvoice",
        entity_id=invoice.id,
        payload={"number": invoice.number, "total": totals.total, "paid": totals.paid},
    )

    return invoice
