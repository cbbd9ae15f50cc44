# accounting/models/fiscal_year_close.py

"""
FISCAL YEAR CLOSE

Immutable snapshot finalizing one branch's fiscal year.

Audit guarantees:
- One per (branch, fiscal_year) (DB unique constraint)
- Immutable once created
- Non-deletable
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import F, Q

from branches.models import Branch
from .company import Company


class FiscalYearClose(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    company = models.ForeignKey(
        Company,
        on_delete=models.PROTECT,
        related_name="fiscal_year_closes",
    )
    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="fiscal_year_closes",
    )

    fiscal_year = models.PositiveIntegerField()
    period_start = models.DateField()
    period_end = models.DateField()

    summary = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    note = models.CharField(max_length=255, blank=True, default="")

    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="fiscal_year_closes",
    )
    closed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-fiscal_year"]
        constraints = [
            models.UniqueConstraint(
                fields=["branch", "fiscal_year"],
                name="uniq_fiscal_close_branch_year",
            ),
            models.CheckConstraint(
                condition=Q(period_end__gte=F("period_start")),
                name="chk_fiscal_close_end_gte_start",
            ),
        ]

    def __str__(self):
        return f"FiscalYearClose {self.fiscal_year} ({self.period_start} → {self.period_end})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("FiscalYearClose records are immutable once created")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("FiscalYearClose records are immutable and cannot be deleted")
