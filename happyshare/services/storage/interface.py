"""
Abstract Storage Interface

DESIGN DECISION: The ledger engine never talks to storage. Storage hands
the flows a GroupSnapshot and the flows hand that to the engine.
This allows us to:
1. Swap the in-memory store for a real database later
2. Keep the engine a pure function that is trivial to test
3. Put referential-integrity rules in one place

The interface is intentionally simple - we're not building a full ORM.
"""

from abc import ABC, abstractmethod
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


class GroupStorageInterface(ABC):
    """
    Abstract interface for group ledger storage.

    A group exclusively owns its members, expenses and settlements.
    Implementations must:
    - refuse to remove a member who is still referenced
    - delete everything a group owns when the group is deleted
    - return snapshots that are consistent at one point in time
    """

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_group(self, group: Group, members: list[Member]) -> Group:
        """Create a group together with its initial members."""
        pass

    @abstractmethod
    async def get_group(self, group_id: str) -> Group:
        """
        Retrieve a group.

        Raises:
            NotFoundError: If the group doesn't exist
        """
        pass

    @abstractmethod
    async def list_groups(self) -> list[Group]:
        """All groups, newest first."""
        pass

    @abstractmethod
    async def update_group(self, group: Group) -> Group:
        pass

    @abstractmethod
    async def delete_group(self, group_id: str) -> bool:
        """Delete a group and everything it owns."""
        pass

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_member(self, member: Member) -> Member:
        pass

    @abstractmethod
    async def update_member(self, member: Member) -> Member:
        pass

    @abstractmethod
    async def delete_member(self, group_id: str, member_id: str) -> bool:
        """
        Remove a member from a group.

        Raises:
            NotFoundError: If the member doesn't exist in the group
            ReferentialIntegrityError: If any expense, share or settlement
                                       still references the member
        """
        pass

    @abstractmethod
    async def list_members(self, group_id: str) -> list[Member]:
        """Members in the order they joined."""
        pass

    # ------------------------------------------------------------------
    # Expenses and settlements
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_expense(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> Expense:
        """Replace an expense (and all of its shares)."""
        pass

    @abstractmethod
    async def get_expense(self, group_id: str, expense_id: str) -> Expense:
        pass

    @abstractmethod
    async def delete_expense(self, group_id: str, expense_id: str) -> bool:
        pass

    @abstractmethod
    async def add_settlement(self, settlement: Settlement) -> Settlement:
        pass

    @abstractmethod
    async def delete_settlement(self, group_id: str, settlement_id: str) -> bool:
        pass

    # ------------------------------------------------------------------
    # Ledger input
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_snapshot(self, group_id: str) -> GroupSnapshot:
        """
        Read a group's members, expenses and settlements in one go.

        This is the only input the ledger engine gets.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events for one user action, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_group(
        self,
        group_id: str,
        limit: Optional[int] = None,
    ) -> list[AuditEvent]:
        """Events for one group, newest first."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert an entity whose id already exists."""
    pass


class ReferentialIntegrityError(StorageError):
    """A change would leave a record pointing at a missing member."""
    pass
