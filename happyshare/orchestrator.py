"""
Main Orchestrator for HappyShare

This module ties together all the components and defines the
end-to-end flows for:
1. Groups and members (create, rename, remove)
2. Recording expenses and settlements (draft → validate → store)
3. Settling up (snapshot → balances → suggested payments)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is stored without passing validation
- The ledger engine only ever sees one consistent snapshot
- Every change is audited

This is the "glue" between the storage collaborator, the pure ledger
engine, and whatever UI or API sits on top.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping, Optional
from uuid import UUID, uuid4

from happyshare.audit import AuditLogger, configure_logging, create_correlation_id
from happyshare.config import get_settings
from happyshare.ledger import (
    LedgerError,
    SelfSettlement,
    ShareSumMismatch,
    compute_balances,
    is_zero,
    resolve_shares,
    suggest_settlements,
    to_decimal,
)
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
    SplitType,
    SuggestedSettlement,
)
from happyshare.models.validation import ValidationResult
from happyshare.services.storage import (
    GroupStorageInterface,
    InMemoryAuditStorage,
    InMemoryGroupStorage,
    NotFoundError,
    ReferentialIntegrityError,
)
from happyshare.validation import LedgerValidator, ValidationFailedError


class GroupFlow:
    """
    Orchestrates group and member management.

    Member removal is refused while the member is referenced by any
    expense, share or settlement. The storage layer enforces it; this
    flow records the refusal in the audit log.
    """

    def __init__(
        self,
        storage: GroupStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def create_group(
        self,
        name: str,
        description: Optional[str] = None,
        member_names: Optional[list[str]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Group, list[Member]]:
        """
        Create a group, optionally with its first members.

        Returns:
            (group, members)
        """
        correlation_id = correlation_id or create_correlation_id()

        group = Group(name=name, description=description)
        members = [
            Member(name=member_name, group_id=group.id)
            for member_name in (member_names or [])
            if member_name and member_name.strip()
        ]
        await self._storage.create_group(group, members)

        if self._audit_logger:
            await self._audit_logger.log_group_created(
                group_id=group.id,
                name=group.name,
                member_count=len(members),
                correlation_id=correlation_id,
            )

        return group, await self._storage.list_members(group.id)

    async def list_groups(self) -> list[Group]:
        return await self._storage.list_groups()

    async def rename_group(
        self,
        group_id: str,
        name: str,
        description: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Group:
        """
        Rename a group.

        The description is only replaced when one is passed. Pass ""
        to clear it.
        """
        group = await self._storage.get_group(group_id)
        changes = {"name": name, "updated_at": datetime.now(timezone.utc)}
        if description is not None:
            changes["description"] = description
        updated = Group.model_validate({**group.model_dump(), **changes})
        await self._storage.update_group(updated)

        if self._audit_logger:
            await self._audit_logger.log_group_updated(
                group_id=group_id,
                name=updated.name,
                correlation_id=correlation_id,
            )

        return updated

    async def delete_group(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a group with all its members, expenses and settlements."""
        await self._storage.delete_group(group_id)

        if self._audit_logger:
            await self._audit_logger.log_group_deleted(
                group_id=group_id,
                correlation_id=correlation_id,
            )

    async def add_member(
        self,
        group_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Member:
        member = await self._storage.add_member(Member(name=name, group_id=group_id))

        if self._audit_logger:
            await self._audit_logger.log_member_added(
                group_id=group_id,
                member_id=member.id,
                name=member.name,
                correlation_id=correlation_id,
            )

        return member

    async def list_members(self, group_id: str) -> list[Member]:
        return await self._storage.list_members(group_id)

    async def rename_member(
        self,
        group_id: str,
        member_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> Member:
        members = await self._storage.list_members(group_id)
        member = next((m for m in members if m.id == member_id), None)
        if member is None:
            raise NotFoundError(f"Member not found: {member_id}")

        renamed = Member.model_validate({**member.model_dump(), "name": name})
        await self._storage.update_member(renamed)

        if self._audit_logger:
            await self._audit_logger.log_member_updated(
                group_id=group_id,
                member_id=member_id,
                name=renamed.name,
                correlation_id=correlation_id,
            )

        return renamed

    async def remove_member(
        self,
        group_id: str,
        member_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Remove a member.

        Raises:
            ReferentialIntegrityError: the member still has expenses,
                                       shares or settlements
        """
        try:
            await self._storage.delete_member(group_id, member_id)
        except ReferentialIntegrityError as e:
            if self._audit_logger:
                await self._audit_logger.log_member_removal_blocked(
                    group_id=group_id,
                    member_id=member_id,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_member_removed(
                group_id=group_id,
                member_id=member_id,
                correlation_id=correlation_id,
            )


class ExpenseFlow:
    """
    Orchestrates recording expenses and settlements.

    Flow:
    1. Draft → two-stage validation against the group's members
    2. Build shares (equal split or custom)
    3. Store
    4. Audit
    """

    def __init__(
        self,
        storage: GroupStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._audit_logger = audit_logger

    async def _reject(
        self,
        group_id: str,
        result: ValidationResult,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                group_id=group_id,
                record_type=result.record_type,
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            )

    async def _build_expense(
        self,
        group_id: str,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID],
        expense_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Expense:
        members = await self._storage.list_members(group_id)

        result = self._validator.validate_expense(draft, members)
        if result.has_errors:
            await self._reject(group_id, result, correlation_id)

            mismatches = [
                issue for issue in result.issues_of_type("share_mismatch")
                if issue.severity == "error"
            ]
            if mismatches and len(mismatches) == result.error_count:
                raise ShareSumMismatch(
                    to_decimal(draft.amount),
                    sum((to_decimal(s.amount) for s in draft.custom_shares), Decimal("0")),
                )
            raise ValidationFailedError(result)

        expense_id = expense_id or uuid4().hex
        amount = to_decimal(draft.amount)
        custom_shares = []
        if draft.split_type == SplitType.CUSTOM:
            custom_shares = [
                ExpenseShare(member_id=share.member_id, amount=to_decimal(share.amount))
                for share in draft.custom_shares
            ]
        shares = resolve_shares(
            expense_id,
            amount,
            draft.split_type,
            members,
            participant_ids=draft.participant_ids,
            custom_shares=custom_shares,
        )

        fields = dict(
            id=expense_id,
            description=draft.description,
            amount=amount,
            paid_by_id=draft.paid_by_id,
            group_id=group_id,
            split_type=draft.split_type,
            shares=shares,
        )
        if created_at is not None:
            fields["created_at"] = created_at
        return Expense(**fields)

    async def get_snapshot(self, group_id: str) -> GroupSnapshot:
        """The group's members, expenses and settlements, for display."""
        return await self._storage.get_snapshot(group_id)

    async def record_expense(
        self,
        group_id: str,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and store a new expense.

        Raises:
            ValidationFailedError: the draft has errors
            ShareSumMismatch: strict mode and the custom shares don't add up
            NotFoundError: the group doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        expense = await self._build_expense(group_id, draft, correlation_id)
        await self._storage.add_expense(expense)

        if self._audit_logger:
            await self._audit_logger.log_expense_recorded(
                group_id=group_id,
                expense_id=expense.id,
                description=expense.description,
                amount=str(expense.amount),
                split_type=expense.split_type.value,
                correlation_id=correlation_id,
            )

        return expense

    async def update_expense(
        self,
        group_id: str,
        expense_id: str,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Replace an expense and all of its shares. Keeps id and creation time."""
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._storage.get_expense(group_id, expense_id)
        expense = await self._build_expense(
            group_id,
            draft,
            correlation_id,
            expense_id=existing.id,
            created_at=existing.created_at,
        )
        await self._storage.update_expense(expense)

        if self._audit_logger:
            await self._audit_logger.log_expense_recorded(
                group_id=group_id,
                expense_id=expense.id,
                description=expense.description,
                amount=str(expense.amount),
                split_type=expense.split_type.value,
                correlation_id=correlation_id,
                updated=True,
            )

        return expense

    async def delete_expense(
        self,
        group_id: str,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._storage.delete_expense(group_id, expense_id)

        if self._audit_logger:
            await self._audit_logger.log_record_deleted(
                group_id=group_id,
                entity_type="expense",
                entity_id=expense_id,
                correlation_id=correlation_id,
            )

    async def record_settlement(
        self,
        group_id: str,
        draft: SettlementDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Settlement:
        """
        Validate and store a payment between two members.

        Raises:
            SelfSettlement: payer and receiver are the same member
            ValidationFailedError: any other problem with the draft
        """
        correlation_id = correlation_id or create_correlation_id()
        members = await self._storage.list_members(group_id)

        result = self._validator.validate_settlement(draft, members)
        if result.has_errors:
            await self._reject(group_id, result, correlation_id)
            if result.issues_of_type("self_settlement"):
                raise SelfSettlement(draft.from_id)
            raise ValidationFailedError(result)

        settlement = Settlement(
            from_id=draft.from_id,
            to_id=draft.to_id,
            amount=to_decimal(draft.amount),
            group_id=group_id,
        )
        await self._storage.add_settlement(settlement)

        if self._audit_logger:
            await self._audit_logger.log_settlement_recorded(
                group_id=group_id,
                settlement_id=settlement.id,
                from_id=settlement.from_id,
                to_id=settlement.to_id,
                amount=str(settlement.amount),
                correlation_id=correlation_id,
            )

        return settlement

    async def list_settlements(self, group_id: str) -> list[Settlement]:
        """Recorded payments, newest first."""
        snapshot = await self._storage.get_snapshot(group_id)
        # ties on created_at stay in reverse insertion order
        return list(reversed(sorted(snapshot.settlements, key=lambda s: s.created_at)))

    async def delete_settlement(
        self,
        group_id: str,
        settlement_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._storage.delete_settlement(group_id, settlement_id)

        if self._audit_logger:
            await self._audit_logger.log_record_deleted(
                group_id=group_id,
                entity_type="settlement",
                entity_id=settlement_id,
                correlation_id=correlation_id,
            )


class SettleUpFlow:
    """
    Orchestrates balance computation and settlement suggestions.

    CRITICAL BOUNDARIES:
    1. One snapshot per request, read before computing anything
    2. The engine is pure; this flow does the logging around it
    3. Suggestions are advice. settle_up() only RECORDS payments the
       group says were made; HappyShare never moves money.
    """

    def __init__(
        self,
        storage: GroupStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def _compute(
        self,
        snapshot: GroupSnapshot,
        correlation_id: Optional[UUID],
    ) -> Mapping[str, Balance]:
        group_id = snapshot.group.id
        try:
            balances = compute_balances(
                snapshot.members,
                snapshot.expenses,
                snapshot.settlements,
            )
        except LedgerError as e:
            if self._audit_logger:
                await self._audit_logger.log_ledger_error(
                    group_id=group_id,
                    error=e,
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_balances_computed(
                group_id=group_id,
                member_count=len(balances),
                unsettled_count=sum(
                    1 for entry in balances.values() if not is_zero(entry.balance)
                ),
                correlation_id=correlation_id,
            )
        return balances

    async def _suggest(
        self,
        group_id: str,
        balances: Mapping[str, Balance],
        correlation_id: Optional[UUID],
    ) -> list[SuggestedSettlement]:
        suggestions = suggest_settlements(balances)

        if self._audit_logger:
            total = sum((s.amount for s in suggestions), Decimal("0"))
            await self._audit_logger.log_settlements_suggested(
                group_id=group_id,
                suggestion_count=len(suggestions),
                total_amount=str(total),
                correlation_id=correlation_id,
            )
        return suggestions

    async def get_balances(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Mapping[str, Balance]:
        """Every member's balance, rounded to cents, in member order."""
        snapshot = await self._storage.get_snapshot(group_id)
        return await self._compute(snapshot, correlation_id)

    async def get_suggested_settlements(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[SuggestedSettlement]:
        """Who should pay whom to settle the group."""
        snapshot = await self._storage.get_snapshot(group_id)
        balances = await self._compute(snapshot, correlation_id)
        return await self._suggest(group_id, balances, correlation_id)

    async def summarize(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[GroupSnapshot, Mapping[str, Balance], list[SuggestedSettlement]]:
        """
        Snapshot, balances and suggestions from a single read.

        Use this when showing balances and suggestions side by side so
        they can't disagree.
        """
        snapshot = await self._storage.get_snapshot(group_id)
        balances = await self._compute(snapshot, correlation_id)
        suggestions = await self._suggest(group_id, balances, correlation_id)
        return snapshot, balances, suggestions

    async def settle_up(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[Settlement]:
        """
        Record every suggested payment as a settlement.

        Call this only once the group confirms the payments happened.
        """
        correlation_id = correlation_id or create_correlation_id()
        suggestions = await self.get_suggested_settlements(group_id, correlation_id)

        recorded = []
        for suggestion in suggestions:
            settlement = await self._storage.add_settlement(Settlement(
                from_id=suggestion.from_id,
                to_id=suggestion.to_id,
                amount=suggestion.amount,
                group_id=group_id,
            ))
            recorded.append(settlement)

            if self._audit_logger:
                await self._audit_logger.log_settlement_recorded(
                    group_id=group_id,
                    settlement_id=settlement.id,
                    from_id=settlement.from_id,
                    to_id=settlement.to_id,
                    amount=str(settlement.amount),
                    correlation_id=correlation_id,
                )

        return recorded


def create_app_components(
    storage: Optional[GroupStorageInterface] = None,
) -> tuple[GroupFlow, ExpenseFlow, SettleUpFlow, GroupStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        storage: Group storage to use. Defaults to a fresh in-memory store.

    Returns:
        (group_flow, expense_flow, settle_up_flow, storage)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level, debug=settings.app.debug_mode)

    storage = storage or InMemoryGroupStorage()

    audit_logger = None
    if settings.ledger.audit_enabled:
        audit_logger = AuditLogger(InMemoryAuditStorage())

    group_flow = GroupFlow(storage, audit_logger=audit_logger)
    expense_flow = ExpenseFlow(
        storage,
        validator=LedgerValidator(),
        audit_logger=audit_logger,
    )
    settle_up_flow = SettleUpFlow(storage, audit_logger=audit_logger)

    return group_flow, expense_flow, settle_up_flow, storage
