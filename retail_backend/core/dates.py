# core/dates.py

from __future__ import annotations

from datetime import date as date_cls
from datetime import datetime

from django.utils import timezone
from django.utils.dateparse import parse_date

from core.exceptions import DomainValidationError


def to_date(value, *, label="date", default_today=False) -> date_cls | None:
    """
    date / datetime / "YYYY-MM-DD" -> date

    Empty input yields None (or today with default_today=True).
    Anything else raises DomainValidationError before the caller writes.
    """
    if value in (None, ""):
        return timezone.localdate() if default_today else None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_cls):
        return value

    try:
        parsed = parse_date(str(value).strip())
    except ValueError as exc:
        raise DomainValidationError(f"Invalid {label} (YYYY-MM-DD)") from exc

    if parsed is None:
        raise DomainValidationError(f"Invalid {label} (YYYY-MM-DD)")
    return parsed
