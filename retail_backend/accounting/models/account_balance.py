# accounting/models/account_balance.py

"""
ACCOUNT BALANCE

One row per (branch, account type): how much CASH / BANK / CARD money the
branch holds right now.

Hard rules:
- balance is never negative (DB check + service check)
- mutated ONLY through accounting.services.account_balances
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from branches.models import Branch


class AccountBalance(models.Model):
    class AccountType(models.TextChoices):
        CASH = "CASH", "Cash"
        BANK = "BANK", "Bank"
        CARD = "CARD", "Card"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="account_balances",
    )

    account_type = models.CharField(max_length=8, choices=AccountType.choices)

    balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["branch", "account_type"]
        constraints = [
            models.UniqueConstraint(
                fields=["branch", "account_type"],
                name="uniq_account_balance_branch_type",
            ),
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name="chk_account_balance_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.branch_id} {self.account_type}: {self.balance}"
