"""
Audit Models for HappyShare

Every change to a group's ledger is logged for audit purposes.
This provides:
1. Traceability of who recorded which expense or payment
2. Debugging information when balances look wrong
3. Ability to reconstruct how a balance came to be

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Groups and members
    GROUP_CREATED = "group_created"
    GROUP_UPDATED = "group_updated"
    GROUP_DELETED = "group_deleted"
    MEMBER_ADDED = "member_added"
    MEMBER_UPDATED = "member_updated"
    MEMBER_REMOVED = "member_removed"
    MEMBER_REMOVAL_BLOCKED = "member_removal_blocked"

    # Ledger records
    EXPENSE_RECORDED = "expense_recorded"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    SETTLEMENT_RECORDED = "settlement_recorded"
    SETTLEMENT_DELETED = "settlement_deleted"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Ledger computations
    BALANCES_COMPUTED = "balances_computed"
    SETTLEMENTS_SUGGESTED = "settlements_suggested"
    LEDGER_ERROR = "ledger_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'group', 'member', 'expense')"
    )
    entity_id: Optional[str] = None
    group_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one settle-up action)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "group_id": self.group_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_recorded(group_id, expense.id, ...)
        event = AuditEventBuilder.balances_computed(group_id, 3, 1, correlation_id)
    """

    @staticmethod
    def group_created(
        group_id: str,
        name: str,
        member_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_CREATED,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Group created: {name}",
            details={"name": name, "member_count": member_count},
        )

    @staticmethod
    def group_updated(
        group_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_UPDATED,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Group renamed: {name}",
            details={"name": name},
        )

    @staticmethod
    def group_deleted(
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_DELETED,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description="Group deleted with all members, expenses and settlements",
        )

    @staticmethod
    def member_added(
        group_id: str,
        member_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_ADDED,
            entity_type="member",
            entity_id=member_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Member added: {name}",
            details={"name": name},
        )

    @staticmethod
    def member_updated(
        group_id: str,
        member_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_UPDATED,
            entity_type="member",
            entity_id=member_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Member renamed: {name}",
            details={"name": name},
        )

    @staticmethod
    def member_removed(
        group_id: str,
        member_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_REMOVED,
            entity_type="member",
            entity_id=member_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description="Member removed",
        )

    @staticmethod
    def member_removal_blocked(
        group_id: str,
        member_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MEMBER_REMOVAL_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="member",
            entity_id=member_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description="Member removal refused: member is still referenced",
            error_message=reason,
        )

    @staticmethod
    def expense_recorded(
        group_id: str,
        expense_id: str,
        description: str,
        amount: str,
        split_type: str,
        correlation_id: Optional[UUID] = None,
        updated: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.EXPENSE_UPDATED
                if updated
                else AuditEventType.EXPENSE_RECORDED
            ),
            entity_type="expense",
            entity_id=expense_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Expense {'updated' if updated else 'recorded'}: {description} - {amount}",
            details={
                "amount": amount,
                "split_type": split_type,
            },
        )

    @staticmethod
    def record_deleted(
        group_id: str,
        entity_type: str,
        entity_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.EXPENSE_DELETED
            if entity_type == "expense"
            else AuditEventType.SETTLEMENT_DELETED
        )
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} deleted",
        )

    @staticmethod
    def settlement_recorded(
        group_id: str,
        settlement_id: str,
        from_id: str,
        to_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            entity_type="settlement",
            entity_id=settlement_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Settlement recorded: {amount}",
            details={
                "from_id": from_id,
                "to_id": to_id,
                "amount": amount,
            },
        )

    @staticmethod
    def validation_failed(
        group_id: str,
        record_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=record_type,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"{record_type.capitalize()} validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def balances_computed(
        group_id: str,
        member_count: int,
        unsettled_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Balances computed for {member_count} members",
            details={
                "member_count": member_count,
                "unsettled_count": unsettled_count,
            },
        )

    @staticmethod
    def settlements_suggested(
        group_id: str,
        suggestion_count: int,
        total_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENTS_SUGGESTED,
            severity=AuditSeverity.DEBUG,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"{suggestion_count} settlements suggested",
            details={
                "suggestion_count": suggestion_count,
                "total_amount": total_amount,
            },
        )

    @staticmethod
    def ledger_error(
        group_id: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="group",
            entity_id=group_id,
            group_id=group_id,
            correlation_id=correlation_id,
            description=f"Ledger computation failed: {type(error).__name__}",
            error_code=type(error).__name__,
            error_message=str(error),
        )
