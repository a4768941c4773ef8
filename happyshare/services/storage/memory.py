"""
In-Memory Storage Implementation

Used by the Streamlit app (one store per browser session) and by tests.

TRADEOFFS:
- Nothing survives a restart (durable persistence is out of scope)
- One event loop only; no locking

Records are frozen pydantic models, so handing out the stored objects is
safe. Lists are always copied so a snapshot cannot grow while the ledger
is reading it.
"""

from typing import Optional
from uuid import UUID

from happyshare.models.audit import AuditEvent
from happyshare.models.ledger import (
    Expense,
    Group,
    GroupSnapshot,
    Member,
    Settlement,
)
from happyshare.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
    ReferentialIntegrityError,
)


class InMemoryGroupStorage(GroupStorageInterface):
    """Dictionary-backed group storage."""

    def __init__(self):
        self._groups: dict[str, Group] = {}
        # group_id -> {record_id: record}; dicts keep insertion order
        self._members: dict[str, dict[str, Member]] = {}
        self._expenses: dict[str, dict[str, Expense]] = {}
        self._settlements: dict[str, dict[str, Settlement]] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_group(self, group_id: Optional[str]) -> Group:
        group = self._groups.get(group_id) if group_id else None
        if group is None:
            raise NotFoundError(f"Group not found: {group_id}")
        return group

    def _require_members(self, group_id: str, member_ids: list[str], record: str) -> None:
        members = self._members[group_id]
        missing = [member_id for member_id in member_ids if member_id not in members]
        if missing:
            raise ReferentialIntegrityError(
                f"{record} references members outside the group: {', '.join(missing)}"
            )

    def _expense_member_ids(self, expense: Expense) -> list[str]:
        return [expense.paid_by_id] + [share.member_id for share in expense.shares]

    def _member_references(self, group_id: str, member_id: str) -> list[str]:
        """Describe every record that still points at a member."""
        references = []
        for expense in self._expenses[group_id].values():
            if expense.paid_by_id == member_id:
                references.append(f"paid for expense {expense.id}")
            elif any(share.member_id == member_id for share in expense.shares):
                references.append(f"shares in expense {expense.id}")
        for settlement in self._settlements[group_id].values():
            if member_id in (settlement.from_id, settlement.to_id):
                references.append(f"settlement {settlement.id}")
        return references

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def create_group(self, group: Group, members: list[Member]) -> Group:
        if group.id in self._groups:
            raise DuplicateError(f"Group already exists: {group.id}")

        self._groups[group.id] = group
        self._members[group.id] = {}
        self._expenses[group.id] = {}
        self._settlements[group.id] = {}

        for member in members:
            owned = member.model_copy(update={"group_id": group.id})
            self._members[group.id][owned.id] = owned
        return group

    async def get_group(self, group_id: str) -> Group:
        return self._require_group(group_id)

    async def list_groups(self) -> list[Group]:
        return sorted(self._groups.values(), key=lambda g: g.created_at, reverse=True)

    async def update_group(self, group: Group) -> Group:
        self._require_group(group.id)
        self._groups[group.id] = group
        return group

    async def delete_group(self, group_id: str) -> bool:
        self._require_group(group_id)
        del self._groups[group_id]
        del self._members[group_id]
        del self._expenses[group_id]
        del self._settlements[group_id]
        return True

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    async def add_member(self, member: Member) -> Member:
        self._require_group(member.group_id)
        if member.id in self._members[member.group_id]:
            raise DuplicateError(f"Member already exists: {member.id}")
        self._members[member.group_id][member.id] = member
        return member

    async def update_member(self, member: Member) -> Member:
        self._require_group(member.group_id)
        if member.id not in self._members[member.group_id]:
            raise NotFoundError(f"Member not found: {member.id}")
        self._members[member.group_id][member.id] = member
        return member

    async def delete_member(self, group_id: str, member_id: str) -> bool:
        self._require_group(group_id)
        if member_id not in self._members[group_id]:
            raise NotFoundError(f"Member not found: {member_id}")

        references = self._member_references(group_id, member_id)
        if references:
            raise ReferentialIntegrityError(
                "Cannot delete member with existing expenses or settlements. "
                f"Delete these first: {'; '.join(references)}"
            )

        del self._members[group_id][member_id]
        return True

    async def list_members(self, group_id: str) -> list[Member]:
        self._require_group(group_id)
        return list(self._members[group_id].values())

    # ------------------------------------------------------------------
    # Expenses and settlements
    # ------------------------------------------------------------------

    async def add_expense(self, expense: Expense) -> Expense:
        self._require_group(expense.group_id)
        if expense.id in self._expenses[expense.group_id]:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._require_members(expense.group_id, self._expense_member_ids(expense), "Expense")
        self._expenses[expense.group_id][expense.id] = expense
        return expense

    async def update_expense(self, expense: Expense) -> Expense:
        self._require_group(expense.group_id)
        if expense.id not in self._expenses[expense.group_id]:
            raise NotFoundError(f"Expense not found: {expense.id}")
        self._require_members(expense.group_id, self._expense_member_ids(expense), "Expense")
        self._expenses[expense.group_id][expense.id] = expense
        return expense

    async def get_expense(self, group_id: str, expense_id: str) -> Expense:
        self._require_group(group_id)
        expense = self._expenses[group_id].get(expense_id)
        if expense is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return expense

    async def delete_expense(self, group_id: str, expense_id: str) -> bool:
        await self.get_expense(group_id, expense_id)
        del self._expenses[group_id][expense_id]
        return True

    async def add_settlement(self, settlement: Settlement) -> Settlement:
        self._require_group(settlement.group_id)
        if settlement.id in self._settlements[settlement.group_id]:
            raise DuplicateError(f"Settlement already exists: {settlement.id}")
        self._require_members(
            settlement.group_id,
            [settlement.from_id, settlement.to_id],
            "Settlement",
        )
        self._settlements[settlement.group_id][settlement.id] = settlement
        return settlement

    async def delete_settlement(self, group_id: str, settlement_id: str) -> bool:
        self._require_group(group_id)
        if settlement_id not in self._settlements[group_id]:
            raise NotFoundError(f"Settlement not found: {settlement_id}")
        del self._settlements[group_id][settlement_id]
        return True

    # ------------------------------------------------------------------
    # Ledger input
    # ------------------------------------------------------------------

    async def get_snapshot(self, group_id: str) -> GroupSnapshot:
        group = self._require_group(group_id)
        return GroupSnapshot(
            group=group,
            members=list(self._members[group_id].values()),
            expenses=list(self._expenses[group_id].values()),
            settlements=list(self._settlements[group_id].values()),
        )


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_group(
        self,
        group_id: str,
        limit: Optional[int] = None,
    ) -> list[AuditEvent]:
        events = [e for e in reversed(self._events) if e.group_id == group_id]
        return events[:limit] if limit is not None else events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
