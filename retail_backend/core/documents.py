# core/documents.py

import uuid

from django.utils import timezone


def doc_number(prefix: str) -> str:
    """
    Human-facing document number: PREFIX-YYYYMMDD-XXXXXXXX.
    Date part is local time; suffix is random hex (collision-safe enough per day).
    """
    stamp = timezone.localtime().strftime("%Y%m%d")
    return f"{prefix}-{stamp}-{uuid.uuid4().hex[:8].upper()}"
