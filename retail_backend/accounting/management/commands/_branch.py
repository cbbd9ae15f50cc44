from django.core.management.base import CommandError

from branches.models import Branch
from core.ids import as_uuid


def branch_from_option(value) -> Branch:
    """Resolve --branch by code (case-insensitive) or id."""
    value = (value or "").strip()
    if not value:
        raise CommandError("--branch is required")

    branch = Branch.objects.filter(code__iexact=value).first()
    if branch is None and as_uuid(value) is not None:
        branch = Branch.objects.filter(pk=as_uuid(value)).first()
    if branch is None:
        raise CommandError(f"Branch not found: {value}")
    return branch
