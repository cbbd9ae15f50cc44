# sales/services/invoice_service.py

"""
SALES INVOICE SERVICE

create_sales_invoice() is ONE atomic unit of work:
1) validate branch, customer, products and every amount (before any write)
2) consume stock FIFO per line and capture its cost (COGS)
3) derive totals via the invoice totals engine
4) credit the receiving account for the paid part + SalesPayment
5) customer ledger DEBIT for anything left due, loyalty points for the total

Any failure (e.g. InsufficientStockError on line 3) rolls back the stock
already consumed for lines 1-2.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce

from accounting.services.account_balances import (
    IN,
    account_type_from_payment_method,
    apply_movement,
)
from accounting.services.invoice_totals import compute_totals
from audit.services import log_audit_on_commit
from branches.models import Branch
from core.dates import to_date
from core.documents import doc_number
from core.exceptions import DomainValidationError
from core.ids import as_uuid
from core.money import ZERO, to_money, to_quantity
from products.models import Product, StockMovement
from products.services.stock_ledger import consume_fifo, record_movement, unit_cost_of
from sales.models import Customer, SalesInvoice, SalesItem, SalesPayment
from sales.services.customer_ledger import DEBIT, post_entry
from sales.services.loyalty import award_points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleLine:
    product: Product
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal
    line_total: Decimal


def _non_negative(value, label) -> Decimal:
    amount = to_money(value, fallback=None)
    if amount is None or amount < 0:
        raise DomainValidationError(f"{label} must be a non-negative amount")
    return amount


def _product_key(raw):
    return as_uuid(raw.get("product_id") or raw.get("product"))


def resolve_customer(*, customer, branch):
    if customer in (None, ""):
        return None

    found = Customer.objects.filter(
        pk=as_uuid(customer),
        branch=branch,
        is_active=True,
    ).first()
    if found is None:
        raise DomainValidationError("Customer not found for this branch")
    return found


def _normalize_lines(items, *, branch) -> list:
    if not items:
        raise DomainValidationError("At least one sales item is required")

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
            raise DomainValidationError("Sales quantity must be greater than zero")

        unit_price = raw.get("unit_price")
        unit_price = (
            _non_negative(unit_price, "unit_price")
            if unit_price not in (None, "")
            else to_money(product.sell_price)
        )

        discount = _non_negative(raw.get("discount", 0), "Line discount")
        gross = to_money(qty * unit_price)
        if discount > gross:
            raise DomainValidationError("Line discount cannot exceed the line amount")

        lines.append(
            SaleLine(
                product=product,
                quantity=qty,
                unit_price=unit_price,
                discount=discount,
                line_total=to_money(gross - discount),
            )
        )
    return lines


def returned_total(invoice) -> Decimal:
    total = invoice.returns.aggregate(
        total=Coalesce(
            Sum("total"),
            ZERO,
            output_field=DecimalField(max_digits=14, decimal_places=2),
        )
    )["total"]
    return to_money(total)


def effective_total(invoice) -> Decimal:
    """Invoice total net of every return recorded against it."""
    return max(to_money(invoice.total) - returned_total(invoice), ZERO)


@transaction.atomic
def create_sales_invoice(
    *,
    branch,
    items,
    customer=None,
    discount=0,
    tax=0,
    paid_amount=0,
    payment_method="CASH",
    payment_reference="",
    invoice_date=None,
    note="",
    user=None,
) -> SalesInvoice:
    branch_obj = Branch.objects.filter(pk=as_uuid(branch)).first()
    if branch_obj is None:
        raise DomainValidationError("Valid branch is required")

    customer_obj = resolve_customer(customer=customer, branch=branch_obj)
    lines = _normalize_lines(items, branch=branch_obj)

    invoice_discount = _non_negative(discount, "Invoice discount")
    invoice_tax = _non_negative(tax, "Invoice tax")
    requested_paid = _non_negative(paid_amount, "paid_amount")
    day = to_date(invoice_date, label="invoice_date", default_today=True)

    account_type = None
    if requested_paid > 0:
        account_type = account_type_from_payment_method(payment_method)
        if account_type is None:
            raise DomainValidationError("Sales payments must use CASH, BANK or CARD")

    if customer_obj is not None:
        customer_obj = Customer.objects.select_for_update().get(pk=customer_obj.pk)

    invoice = SalesInvoice.objects.create(
        number=doc_number("INV"),
        branch=branch_obj,
        customer=customer_obj,
        invoice_date=day,
        payment_method=account_type or "",
        note=(note or "").strip(),
        created_by=user,
    )

    subtotal = Decimal("0")
    for line_no, line in enumerate(lines, start=1):
        consumption = consume_fifo(
            product=line.product,
            branch=branch_obj,
            quantity=line.quantity,
        )

        SalesItem.objects.create(
            invoice=invoice,
            product=line.product,
            quantity=line.quantity,
            unit_price=line.unit_price,
            discount=line.discount,
            line_total=line.line_total,
            cost_of_goods=consumption.cost_of_goods,
            line_no=line_no,
        )

        record_movement(
            product=line.product,
            branch=branch_obj,
            movement_type=StockMovement.MovementType.SALE,
            quantity=-line.quantity,
            unit_cost=unit_cost_of(consumption, line.quantity),
            reference_type="SALES_INVOICE",
            reference_id=invoice.id,
            user=user,
        )

        subtotal += line.line_total

    totals = compute_totals(
        subtotal=subtotal,
        discount=invoice_discount,
        tax=invoice_tax,
        paid_amount=requested_paid,
    )

    invoice.subtotal = to_money(subtotal)
    invoice.discount = invoice_discount
    invoice.tax = invoice_tax
    invoice.total = totals.total
    invoice.paid_amount = totals.paid
    invoice.due_amount = totals.due
    invoice.status = totals.status
    invoice.save(
        update_fields=[
            "subtotal",
            "discount",
            "tax",
            "total",
            "paid_amount",
            "due_amount",
            "status",
        ]
    )

    if totals.paid > 0:
        apply_movement(
            branch=branch_obj,
            account_type=account_type,
            amount=totals.paid,
            direction=IN,
            purpose="sales payment",
        )
        SalesPayment.objects.create(
            invoice=invoice,
            amount=totals.paid,
            payment_method=account_type,
            payment_date=invoice.invoice_date,
            reference=(payment_reference or "").strip(),
            note="Payment at sale",
            created_by=user,
        )

    points = 0
    if customer_obj is not None:
        post_entry(
            customer=customer_obj,
            branch=branch_obj,
            entry_type=DEBIT,
            amount=totals.due,
            invoice=invoice,
            note=f"Credit sale {invoice.number}",
        )
        points = award_points(customer=customer_obj, invoice=invoice, amount=totals.total)

    logger.info(
        "Sales invoice created",
        extra={
            "invoice_id": str(invoice.id),
            "branch_id": str(branch_obj.id),
            "total": str(totals.total),
            "paid": str(totals.paid),
            "status": totals.status,
            "lines": len(lines),
            "loyalty_points": points,
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="SalesInvoice",
        entity_id=invoice.id,
        payload={"number": invoice.number, "total": totals.total, "paid": totals.paid},
    )

    return invoice
