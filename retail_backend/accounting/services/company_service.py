# accounting/services/company_service.py

from __future__ import annotations

from django.db import transaction

from accounting.models import Company
from core.dates import to_date
from core.exceptions import DomainValidationError
from core.money import to_money


def ensure_company() -> Company:
    """Return the single company row, creating the default on first use."""
    company = Company.objects.order_by("created_at").first()
    if company is None:
        company = Company.objects.create()
    return company


@transaction.atomic
def update_company(
    *,
    name=None,
    owner_name=None,
    currency=None,
    start_date=None,
    fiscal_year_start_month=None,
    opening_capital=None,
) -> Company:
    company = ensure_company()

    if fiscal_year_start_month is not None:
        try:
            month = int(fiscal_year_start_month)
        except (TypeError, ValueError) as exc:
            raise DomainValidationError("fiscal_year_start_month must be 1-12") from exc
        if month < 1 or month > 12:
            raise DomainValidationError("fiscal_year_start_month must be 1-12")
        company.fiscal_year_start_month = month

    if opening_capital is not None:
        capital = to_money(opening_capital, fallback=None)
        if capital is None or capital < 0:
            raise DomainValidationError("opening_capital must be a non-negative amount")
        company.opening_capital = capital

    if name is not None:
        company.name = str(name).strip() or company.name
    if owner_name is not None:
        company.owner_name = str(owner_name).strip()
    if currency is not None:
        company.currency = str(currency).strip().upper() or company.currency
    if start_date is not None:
        company.start_date = to_date(start_date, label="start_date")

    company.save()
    return company
