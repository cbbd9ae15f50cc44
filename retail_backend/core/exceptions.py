# core/exceptions.py

"""
RETAIL CORE ERRORS

Centralized domain errors raised by services.

Every error carries a stable `code` so callers (HTTP layer, CLI) can branch
on the kind of failure without parsing messages.
"""

from __future__ import annotations


class RetailCoreError(Exception):
    """Base exception for all business-rule failures."""

    code = "RETAIL_ERROR"


class DomainValidationError(RetailCoreError):
    """Raised when input violates a business rule (scope, sign, bounds)."""

    code = "VALIDATION_ERROR"


class NotFoundError(RetailCoreError):
    """Raised when a referenced record is missing or outside branch scope."""

    code = "NOT_FOUND"


class AlreadyClosedError(RetailCoreError):
    """Raised when a fiscal year has already been closed for a branch."""

    code = "ALREADY_CLOSED"


class InsufficientStockError(RetailCoreError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, product, requested, available):
        self.product = product
        self.requested = requested
        self.available = available
        self.missing = requested - available
        name = getattr(product, "name", None) or str(product)
        super().__init__(
            f"Insufficient stock for product {name}. Missing {self.missing} units."
        )


class InsufficientFundsError(RetailCoreError):
    code = "INSUFFICIENT_FUNDS"

    def __init__(self, *, account_type, available, required, purpose):
        self.account_type = account_type
        self.available = available
        self.required = required
        self.purpose = purpose
        super().__init__(
            f"Insufficient {account_type} balance for {purpose}. "
            f"Available {available}, required {required}."
        )
