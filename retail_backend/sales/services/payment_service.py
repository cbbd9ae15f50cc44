# sales/services/payment_service.py

import logging

from django.db import transaction

from accounting.services.account_balances import (
    IN,
    account_type_from_payment_method,
    apply_movement,
)
from accounting.services.invoice_totals import invoice_status
from audit.services import log_audit_on_commit
from core.dates import to_date
from core.exceptions import DomainValidationError
from core.ids import get_for_update
from core.money import ZERO, to_money
from sales.models import SalesInvoice, SalesPayment
from sales.services.customer_ledger import CREDIT, post_entry
from sales.services.invoice_service import effective_total

logger = logging.getLogger(__name__)


def get_invoice_for_update(*, invoice_id, branch=None) -> SalesInvoice:
    return get_for_update(SalesInvoice, pk=invoice_id, branch=branch, label="Sales invoice")


@transaction.atomic
def add_sales_payment(
    *,
    invoice_id,
    amount,
    payment_method="CASH",
    branch=None,
    payment_date=None,
    reference="",
    note="",
    user=None,
) -> SalesPayment:
    logger.info(
        "Initiating sales payment",
        extra={
            "invoice_id": str(invoice_id),
            "amount": str(amount),
            "payment_method": payment_method,
        },
    )

    invoice = get_invoice_for_update(invoice_id=invoice_id, branch=branch)

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
        raise DomainValidationError("Sales payments must use CASH, BANK or CARD")
    day = to_date(payment_date, label="payment_date", default_today=True)

    apply_movement(
        branch=invoice.branch_id,
        account_type=account_type,
        amount=amt,
        direction=IN,
        purpose="sales payment",
    )

    payment = SalesPayment.objects.create(
        invoice=invoice,
        amount=amt,
        payment_method=account_type,
        payment_date=day,
        reference=(reference or "").strip(),
        note=(note or "").strip(),
        created_by=user,
    )

    net_total = effective_total(invoice)
    paid = to_money(invoice.paid_amount + amt)
    invoice.paid_amount = paid
    invoice.due_amount = max(net_total - paid, ZERO)
    invoice.status = invoice_status(net_total, paid)
    invoice.save(update_fields=["paid_amount", "due_amount", "status"])

    if invoice.customer_id:
        post_entry(
            customer=invoice.customer,
            branch=invoice.branch_id,
            entry_type=CREDIT,
            amount=amt,
            invoice=invoice,
            note=f"Payment on {invoice.number}",
        )

    logger.info(
        "Sales payment completed successfully",
        extra={
            "payment_id": str(payment.id),
            "invoice_id": str(invoice.id),
            "due_amount": str(invoice.due_amount),
        },
    )

    log_audit_on_commit(
        user=user,
        action="UPDATE",
        entity_type="SalesInvoice",
        entity_id=invoice.id,
        payload={"payment_id": payment.id, "amount": amt, "due_amount": invoice.due_amount},
    )

    return payment
