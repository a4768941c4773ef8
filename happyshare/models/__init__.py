"""
Data Models Package

This package contains all Pydantic models used in HappyShare.
All records handed to the ledger engine must conform to these schemas.
"""

from happyshare.models.ledger import (
    Balance,
    Expense,
    ExpenseDraft,
    ExpenseShare,
    Group,
    GroupSnapshot,
    Member,
    Settlement,
    SettlementDraft,
    ShareDraft,
    SplitType,
    SuggestedSettlement,
)
from happyshare.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from happyshare.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Balance",
    "Expense",
    "ExpenseDraft",
    "ExpenseShare",
    "Group",
    "GroupSnapshot",
    "Member",
    "Settlement",
    "SettlementDraft",
    "ShareDraft",
    "SplitType",
    "SuggestedSettlement",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
