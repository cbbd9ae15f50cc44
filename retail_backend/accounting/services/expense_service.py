# accounting/services/expense_service.py

"""
EXPENSE SERVICE

Records operating expenses. When paid from CASH/BANK/CARD the money leaves
that account in the same unit of work (funds are checked first); other
payment methods (e.g. CREDIT) record the expense only.
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.models import Expense, ExpenseCategory
from accounting.services.account_balances import (
    OUT,
    account_type_from_payment_method,
    apply_movement,
    ensure_funds,
)
from audit.services import log_audit_on_commit
from branches.models import Branch
from core.dates import to_date
from core.exceptions import DomainValidationError, NotFoundError
from core.ids import as_uuid
from core.money import to_money

logger = logging.getLogger(__name__)


@transaction.atomic
def create_expense(
    *,
    branch,
    amount,
    payment_method="CASH",
    category=None,
    expense_date=None,
    description="",
    user=None,
) -> Expense:
    branch_obj = Branch.objects.filter(pk=as_uuid(branch)).first()
    if branch_obj is None:
        raise DomainValidationError("Valid branch is required")

    amt = to_money(amount)
    if amt <= 0:
        raise DomainValidationError("Expense amount must be greater than zero")

    category_obj = None
    if category is not None:
        category_obj = ExpenseCategory.objects.filter(pk=as_uuid(category)).first()
        if category_obj is None:
            raise NotFoundError("Expense category not found")

    method = str(payment_method or "CASH").strip().upper()
    account_type = account_type_from_payment_method(method)
    day = to_date(expense_date, label="expense_date", default_today=True)

    if account_type:
        ensure_funds(
            branch=branch_obj,
            account_type=account_type,
            amount=amt,
            purpose="expense payment",
        )

    expense = Expense.objects.create(
        branch=branch_obj,
        category=category_obj,
        amount=amt,
        expense_date=day,
        payment_method=method,
        description=(description or "").strip(),
        created_by=user,
    )

    if account_type:
        apply_movement(
            branch=branch_obj,
            account_type=account_type,
            amount=amt,
            direction=OUT,
            purpose="expense payment",
        )

    logger.info(
        "Expense recorded",
        extra={
            "expense_id": str(expense.id),
            "branch_id": str(branch_obj.id),
            "amount": str(amt),
            "payment_method": method,
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="Expense",
        entity_id=expense.id,
        payload={"amount": amt, "payment_method": method},
    )

    return expense
