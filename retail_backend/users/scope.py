# users/scope.py

"""
BRANCH SCOPE RESOLUTION

Callers (HTTP layer, CLI) decide which branch an operation runs against
before calling any service. Services trust the branch they receive.

- admin: the requested branch, else their own home branch
- everyone else: pinned to their own branch (requests for another are ignored)
"""

from __future__ import annotations

from core.exceptions import DomainValidationError


def resolve_branch_id(user, requested_branch_id=None):
    if user is None:
        raise DomainValidationError("An authenticated user is required")

    requested = getattr(requested_branch_id, "id", requested_branch_id)
    if requested in ("",):
        requested = None

    if getattr(user, "is_admin", False):
        branch_id = requested or user.branch_id
    else:
        branch_id = user.branch_id

    if branch_id is None:
        raise DomainValidationError("Valid branch is required")
    return branch_id
