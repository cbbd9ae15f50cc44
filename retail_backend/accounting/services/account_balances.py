# accounting/services/account_balances.py

"""
ACCOUNT BALANCE STORE

Per-branch CASH / BANK / CARD balances.

Guarantees:
- A balance never goes negative: ensure_funds() rejects up front and
  apply_movement() re-checks under a row lock before writing.
- OUT movements are written with a conditional UPDATE (balance >= amount),
  so two concurrent debits cannot both pass the check on a weakly isolated
  database.
- Amounts <= 0 are no-ops (nothing to move).

Callers run these inside their own transaction.atomic; a later failure in
the same unit of work rolls the movement back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounting.models import AccountBalance
from core.exceptions import DomainValidationError, InsufficientFundsError
from core.ids import as_uuid
from core.money import ZERO, to_money

logger = logging.getLogger(__name__)

ACCOUNT_TYPES = tuple(AccountBalance.AccountType.values)

IN = "IN"
OUT = "OUT"


@dataclass(frozen=True)
class AccountMovement:
    account_type: str
    direction: str
    amount: Decimal
    before: Decimal
    after: Decimal


def normalize_account_type(value, fallback=AccountBalance.AccountType.CASH) -> str:
    v = str(value or "").strip().upper()
    return v if v in ACCOUNT_TYPES else fallback


def account_type_from_payment_method(value):
    """CASH/BANK/CARD map to themselves; anything else has no account (None)."""
    v = str(value or "").strip().upper()
    return v if v in ACCOUNT_TYPES else None


def _branch_id(branch):
    branch_id = as_uuid(branch)
    if branch_id is None:
        raise DomainValidationError("Valid branch is required")
    return branch_id


def _require_account_type(account_type) -> str:
    v = str(account_type or "").strip().upper()
    if v not in ACCOUNT_TYPES:
        raise DomainValidationError(f"Unknown account type: {account_type}")
    return v


def get_balances(*, branch) -> dict:
    rows = dict(
        AccountBalance.objects.filter(branch_id=_branch_id(branch)).values_list(
            "account_type", "balance"
        )
    )
    result = {t: to_money(rows.get(t)) for t in ACCOUNT_TYPES}
    result["total"] = to_money(sum(result.values(), ZERO))
    return result


@transaction.atomic
def set_balances(*, branch, balances: dict) -> dict:
    """
    Administrative overwrite. Every supplied value is validated before any
    row is written; unknown keys are ignored.
    """
    branch_id = _branch_id(branch)

    updates = {}
    for key, raw in (balances or {}).items():
        account_type = str(key or "").strip().upper()
        if account_type not in ACCOUNT_TYPES:
            continue
        amount = to_money(raw, fallback=None)
        if amount is None:
            raise DomainValidationError(f"{account_type} balance must be a number")
        if amount < 0:
            raise DomainValidationError(f"{account_type} balance cannot be negative")
        updates[account_type] = amount

    for account_type, amount in updates.items():
        AccountBalance.objects.update_or_create(
            branch_id=branch_id,
            account_type=account_type,
            defaults={"balance": amount},
        )

    logger.info(
        "Account balances set",
        extra={"branch_id": str(branch_id), "balances": {k: str(v) for k, v in updates.items()}},
    )
    return get_balances(branch=branch_id)


def ensure_funds(*, branch, account_type, amount, purpose="payment"):
    """Raise InsufficientFundsError if `amount` exceeds the balance. Read-only."""
    amt = to_money(amount)
    if amt <= 0:
        return None

    account_type = _require_account_type(account_type)
    available = get_balances(branch=branch)[account_type]

    if amt > available:
        logger.warning(
            "Insufficient funds",
            extra={
                "branch_id": str(_branch_id(branch)),
                "account_type": account_type,
                "available": str(available),
                "required": str(amt),
                "purpose": purpose,
            },
        )
        raise InsufficientFundsError(
            account_type=account_type,
            available=available,
            required=amt,
            purpose=purpose,
        )
    return available


def _locked_row(*, branch_id, account_type) -> AccountBalance:
    row, _ = AccountBalance.objects.get_or_create(
        branch_id=branch_id,
        account_type=account_type,
        defaults={"balance": ZERO},
    )
    return AccountBalance.objects.select_for_update().get(pk=row.pk)


@transaction.atomic
def apply_movement(*, branch, account_type, amount, direction, purpose="payment"):
    amt = to_money(amount)
    if amt <= 0:
        return None

    direction = str(direction or "").strip().upper()
    if direction not in (IN, OUT):
        raise DomainValidationError(f"Invalid movement direction: {direction}")

    branch_id = _branch_id(branch)
    account_type = _require_account_type(account_type)

    row = _locked_row(branch_id=branch_id, account_type=account_type)
    before = to_money(row.balance)
    after = before + amt if direction == IN else before - amt

    def _insufficient():
        return InsufficientFundsError(
            account_type=account_type,
            available=before,
            required=amt,
            purpose=purpose,
        )

    if after < 0:
        raise _insufficient()

    qs = AccountBalance.objects.filter(pk=row.pk)
    if direction == OUT:
        updated = qs.filter(balance__gte=amt).update(
            balance=F("balance") - amt,
            updated_at=timezone.now(),
        )
        if not updated:
            raise _insufficient()
    else:
        qs.update(balance=F("balance") + amt, updated_at=timezone.now())

    logger.info(
        "Account movement applied",
        extra={
            "branch_id": str(branch_id),
            "account_type": account_type,
            "direction": direction,
            "amount": str(amt),
            "balance_after": str(after),
            "purpose": purpose,
        },
    )

    return AccountMovement(
        account_type=account_type,
        direction=direction,
        amount=amt,
        before=before,
        after=after,
    )
