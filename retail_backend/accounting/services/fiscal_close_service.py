# accounting/services/fiscal_close_service.py

"""
FISCAL YEAR CLOSE SERVICE

Writes ONE immutable FiscalYearClose per (branch, fiscal year), holding a
snapshot of the year-end owner report and the balance sheet.

Guarantees:
- Refused if the year is already closed for the branch (AlreadyClosedError)
- Refused while the period is still running (today <= period_end)
- Race-safe: the unique constraint decides between concurrent closers and
  the loser gets AlreadyClosedError
- Reads only; never mutates stock, balances or invoices
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models import FiscalYearClose
from accounting.services.company_service import ensure_company
from accounting.services.reports import build_balance_sheet, build_year_end_report
from audit.services import log_audit_on_commit
from branches.models import Branch
from core.exceptions import AlreadyClosedError, DomainValidationError, NotFoundError
from core.ids import as_uuid

logger = logging.getLogger(__name__)


def _already_closed(branch, fiscal_year) -> AlreadyClosedError:
    return AlreadyClosedError(
        f"Fiscal year {fiscal_year} is already closed for branch {branch}."
    )


@transaction.atomic
def close_fiscal_year(*, branch, user=None, fiscal_year=None, note="", today=None) -> FiscalYearClose:
    branch_obj = Branch.objects.filter(pk=as_uuid(branch)).first()
    if branch_obj is None:
        raise NotFoundError("Branch not found")

    today = today or timezone.localdate()
    company = ensure_company()

    report = build_year_end_report(
        branch=branch_obj,
        fiscal_year=fiscal_year,
        company=company,
        today=today,
    )
    year = report["fiscal_year"]
    period_start = report["period"]["start"]
    period_end = report["period"]["end"]

    if FiscalYearClose.objects.filter(branch=branch_obj, fiscal_year=year).exists():
        raise _already_closed(branch_obj, year)

    if today <= period_end:
        raise DomainValidationError(
            f"Fiscal year {year} cannot be closed before it ends ({period_end.isoformat()})."
        )

    balance_sheet = build_balance_sheet(branch=branch_obj, company=company)

    # Race-safe create
    try:
        with transaction.atomic():
            record = FiscalYearClose.objects.create(
                company=company,
                branch=branch_obj,
                fiscal_year=year,
                period_start=period_start,
                period_end=period_end,
                summary={"year_end_owner": report, "balance_sheet": balance_sheet},
                note=(note or "").strip(),
                closed_by=user,
            )
    except IntegrityError as exc:
        raise _already_closed(branch_obj, year) from exc

    logger.info(
        "Fiscal year closed",
        extra={
            "branch_id": str(branch_obj.id),
            "fiscal_year": year,
            "net_profit": str(report["profit"]["net_profit"]),
        },
    )

    log_audit_on_commit(
        user=user,
        action="CREATE",
        entity_type="FiscalYearClose",
        entity_id=record.id,
        payload={
            "branch_id": branch_obj.id,
            "fiscal_year": year,
            "period_start": period_start,
            "period_end": period_end,
        },
    )

    return record
