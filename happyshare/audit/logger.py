"""
Audit Logger

DESIGN DECISION: Every change to a group's ledger is logged.
This provides:
1. Traceability of who changed what
2. Debugging capability when a balance looks wrong
3. A history the group can look back on

The audit logger:
- Is async so it sits naturally inside the flows
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from happyshare.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from happyshare.services.storage import AuditStorageInterface


def _configure_structlog(renderer) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
_configure_structlog(structlog.processors.JSONRenderer())


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Route structlog output through the stdlib root logger at `level`.

    In debug mode events are rendered for a human reading the console
    instead of as JSON lines. Loggers already used keep their renderer.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if debug
        else structlog.processors.JSONRenderer()
    )
    _configure_structlog(renderer)
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for history), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("happyshare.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_group_created(
        self,
        group_id: str,
        name: str,
        member_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.group_created(
            group_id=group_id,
            name=name,
            member_count=member_count,
            correlation_id=correlation_id,
        ))

    async def log_group_updated(
        self,
        group_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.group_updated(
            group_id=group_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_group_deleted(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.group_deleted(
            group_id=group_id,
            correlation_id=correlation_id,
        ))

    async def log_member_added(
        self,
        group_id: str,
        member_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.member_added(
            group_id=group_id,
            member_id=member_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_member_updated(
        self,
        group_id: str,
        member_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.member_updated(
            group_id=group_id,
            member_id=member_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_member_removed(
        self,
        group_id: str,
        member_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.member_removed(
            group_id=group_id,
            member_id=member_id,
            correlation_id=correlation_id,
        ))

    async def log_member_removal_blocked(
        self,
        group_id: str,
        member_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.member_removal_blocked(
            group_id=group_id,
            member_id=member_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_expense_recorded(
        self,
        group_id: str,
        expense_id: str,
        description: str,
        amount: str,
        split_type: str,
        correlation_id: Optional[UUID] = None,
        updated: bool = False,
    ) -> None:
        """Log a new or edited expense."""
        await self.log(AuditEventBuilder.expense_recorded(
            group_id=group_id,
            expense_id=expense_id,
            description=description,
            amount=amount,
            split_type=split_type,
            correlation_id=correlation_id,
            updated=updated,
        ))

    async def log_record_deleted(
        self,
        group_id: str,
        entity_type: str,
        entity_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_deleted(
            group_id=group_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_settlement_recorded(
        self,
        group_id: str,
        settlement_id: str,
        from_id: str,
        to_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_recorded(
            group_id=group_id,
            settlement_id=settlement_id,
            from_id=from_id,
            to_id=to_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        group_id: str,
        record_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            group_id=group_id,
            record_type=record_type,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_balances_computed(
        self,
        group_id: str,
        member_count: int,
        unsettled_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.balances_computed(
            group_id=group_id,
            member_count=member_count,
            unsettled_count=unsettled_count,
            correlation_id=correlation_id,
        ))

    async def log_settlements_suggested(
        self,
        group_id: str,
        suggestion_count: int,
        total_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settlements_suggested(
            group_id=group_id,
            suggestion_count=suggestion_count,
            total_amount=total_amount,
            correlation_id=correlation_id,
        ))

    async def log_ledger_error(
        self,
        group_id: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed ledger computation."""
        await self.log(AuditEventBuilder.ledger_error(
            group_id=group_id,
            error=error,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., settle up).
    Pass it through all subsequent operations.
    """
    return uuid4()
