"""Validation package."""

from happyshare.validation.validator import LedgerValidator, ValidationFailedError

__all__ = ["LedgerValidator", "ValidationFailedError"]
