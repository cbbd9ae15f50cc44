# accounting/models/owner_withdrawal.py

from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from branches.models import Branch
from .account_balance import AccountBalance
from .company import Company


class OwnerWithdrawal(models.Model):
    """Money the owner takes out of a branch account (reduces equity)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="owner_withdrawals",
    )
    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="owner_withdrawals",
    )

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(
        max_length=8,
        choices=AccountBalance.AccountType.choices,
    )
    withdrawal_date = models.DateField(default=timezone.localdate)
    note = models.CharField(max_length=255, blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owner_withdrawals",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-withdrawal_date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_owner_withdrawal_amount_gt_zero",
            ),
        ]

    def __str__(self):
        return f"Withdrawal {self.amount} {self.payment_method} ({self.withdrawal_date})"
