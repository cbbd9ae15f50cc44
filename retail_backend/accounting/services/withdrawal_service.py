# accounting/services/withdrawal_service.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from accounting.models import OwnerWithdrawal
from accounting.services.account_balances import (
    OUT,
    AccountMovement,
    account_type_from_payment_method,
    apply_movement,
    ensure_funds,
    get_balances,
)
from accounting.services.company_service import ensure_company
from audit.services import log_audit_on_commit
from branches.models import Branch
from core.dates import to_date
from core.exceptions import DomainValidationError
from core.ids import as_uuid
from core.money import to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WithdrawalResult:
    withdrawal: OwnerWithdrawal
    movement: AccountMovement
    balances: dict


@transaction.atomic
def record_owner_withdrawal(
    *,
    branch,
    amount,
    payment_method="CASH",
    withdrawal_date=None,
    note="",
    user=None,
) -> WithdrawalResult:
    """Owner takes money out of a branch account. Funds must cover it."""
    branch_obj = Branch.objects.filter(pk=as_uuid(branch)).first()
    if branch_obj is None:
        raise DomainValidationError("Valid branch is required")

    amt = to_money(amount)
    if amt <= 0:
        raise DomainValidationError("Withdrawal amount must be greater than zero")

    account_type = account_type_from_payment_method(payment_method)
    if account_type is None:
        raise DomainValidationError("Withdrawal must be paid from CASH, BANK or CARD")
    day = to_date(withdrawal_date, label="withdrawal_date", default_today=True)

    ensure_funds(branch=branch_obj, account_type=account_type, amount=amt, purpose="owner withdrawal")
    movement = apply_movement(
        branch=branch_obj,
        account_type=account_type,
        amount=amt,
        direction=OUT,
        purpose="owner withdrawal",
    )

    withdrawal = OwnerWithdrawal.objects.create(
        company=ensure_company(),
        branch=branch_obj,
        amount=amt,
        payment_method=account_type,
        withdrawal_date=day,
        note=(note or "").strip(),
        created_by=user,
    )

    logger.info(
        "Owner withdrawal recorded",
        extra={
            "withdrawal_id": str(withdrawal.id),
            "branch_id": str(branch_obj.id),
            "amount": str(amt),
            "account_type": account_type,
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="OwnerWithdrawal",
        entity_id=withdrawal.id,
        payload={"amount": amt, "account_type": account_type},
    )

    return WithdrawalResult(
        withdrawal=withdrawal,
        movement=movement,
        balances=get_balances(branch=branch_obj),
    )
