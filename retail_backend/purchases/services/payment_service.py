# purchases/services/payment_service.py

import logging

from django.db import transaction

from accounting.services.account_balances import (
    OUT,
    account_type_from_payment_method,
    apply_movement,
    ensure_funds,
)
from accounting.services.invoice_totals import compute_totals, purchase_status
from audit.services import log_audit_on_commit
from core.dates import to_date
from core.exceptions import DomainValidationError
from core.ids import get_for_update
from core.money import to_money
from purchases.models import PurchaseInvoice, SupplierPayment

logger = logging.getLogger(__name__)


@transaction.atomic
def pay_supplier_invoice(
    *,
    invoice_id,
    amount,
    payment_method="CASH",
    branch=None,
    payment_date=None,
    reference="",
    note="",
    user=None,
) -> SupplierPayment:
    """
    PAY A PURCHASE INVOICE (atomic)

    branch=None means an unscoped (admin) lookup.
    """

    logger.info(
        "Initiating supplier payment",
        extra={
            "invoice_id": str(invoice_id),
            "amount": str(amount),
            "payment_method": payment_method,
        },
    )

    invoice = get_for_update(
        PurchaseInvoice, pk=invoice_id, branch=branch, label="Purchase invoice"
    )

    amt = to_money(amount)
    if amt <= 0:
        raise DomainValidationError("Payment amount must be greater than zero")
    if invoice.due_amount <= 0:
        raise DomainValidationError("Invoice is already fully paid")
    if amt > invoice.due_amount:
        raise DomainValidationError(
            f"Payment {amt} exceeds the amount due ({invoice.due_amount})"
        )

    account_type = account_type_from_payment_method(payment_method)
    if account_type is None:
        raise DomainValidationError("Supplier payments must use CASH, BANK or CARD")
    day = to_date(payment_date, label="payment_date", default_today=True)

    ensure_funds(
        branch=invoice.branch_id,
        account_type=account_type,
        amount=amt,
        purpose="supplier payment",
    )
    apply_movement(
        branch=invoice.branch_id,
        account_type=account_type,
        amount=amt,
        direction=OUT,
        purpose="supplier payment",
    )

    payment = SupplierPayment.objects.create(
        supplier=invoice.supplier,
        invoice=invoice,
        amount=amt,
        payment_method=account_type,
        payment_date=day,
        reference=(reference or "").strip(),
        note=(note or "").strip(),
        created_by=user,
    )

    totals = compute_totals(
        subtotal=invoice.total,
        paid_amount=invoice.paid_amount + amt,
    )
    invoice.paid_amount = totals.paid
    invoice.due_amount = totals.due
    invoice.status = purchase_status(totals)
    invoice.save(update_fields=["paid_amount", "due_amount", "status"])

    logger.info(
        "Supplier payment completed successfully",
        extra={
            "payment_id": str(payment.id),
            "invoice_id": str(invoice.id),
            "due_amount": str(invoice.due_amount),
        },
    )

    log_audit_on_commit(
        user=user,
        action="UPDATE",
        entity_type="PurchaseInvoice",
        entity_id=invoice.id,
        payload={"payment_id": payment.id, "amount": amt, "due_amount": invoice.due_amount},
    )

    return payment
