"""
Core Data Models for HappyShare

These models define the schemas for all records flowing into and out of
the ledger engine. They are designed to:
1. Enforce type safety at runtime
2. Reject impossible amounts at the boundary
3. Be serializable for storage, logging and the API layer

DESIGN DECISION: Stored records (Group, Member, Expense, ExpenseShare,
Settlement) are frozen. Edits produce a new record via model_copy, so a
snapshot handed to the engine can never change underneath it.

Balance and SuggestedSettlement are DERIVED. They are never persisted.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

MAX_DESCRIPTION_LENGTH = 200


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class SplitType(str, Enum):
    """
    How an expense is divided between members.

    EQUAL: amount / N for each chosen participant.
    CUSTOM: caller supplies each share directly.
    """
    EQUAL = "equal"
    CUSTOM = "custom"


# =============================================================================
# STORED RECORDS
# =============================================================================

class Group(BaseModel):
    """A group of people sharing expenses. Owns members, expenses, settlements."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Group name"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Member(BaseModel):
    """
    A person in a group.

    The id is opaque to the ledger. Only identity matters for balances;
    the name is for display.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    group_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class ExpenseShare(BaseModel):
    """
    The portion of one expense owed by one member.

    Equal-split shares are stored unrounded (e.g. 100/3). Rounding
    happens once, when balances are computed.
    """
    model_config = ConfigDict(frozen=True)

    expense_id: Optional[str] = None
    member_id: str = Field(..., min_length=1)
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount owed by this member"
    )


class Expense(BaseModel):
    """
    Money paid by one member on behalf of some members of the group.

    The payer does not have to be among the shares: paying for a
    gift you are not part of is a valid expense.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(default_factory=_new_id)
    description: str = Field(
        ...,
        min_length=1,
        max_length=MAX_DESCRIPTION_LENGTH,
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Total amount paid"
    )
    paid_by_id: str = Field(..., min_length=1)
    group_id: Optional[str] = None
    split_type: SplitType = SplitType.EQUAL
    created_at: datetime = Field(default_factory=_utcnow)
    shares: list[ExpenseShare] = Field(default_factory=list)

    @property
    def share_total(self) -> Decimal:
        """Sum of all shares (unrounded)."""
        return sum((share.amount for share in self.shares), Decimal("0"))


class Settlement(BaseModel):
    """
    A real-world payment from one member to another, recorded in the ledger.

    HappyShare never moves money itself. This only records that it happened.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    from_id: str = Field(..., min_length=1)
    to_id: str = Field(..., min_length=1)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount paid"
    )
    group_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode='after')
    def validate_parties(self) -> 'Settlement':
        """A member cannot pay themselves."""
        if self.from_id == self.to_id:
            raise ValueError("Cannot settle with yourself")
        return self


class GroupSnapshot(BaseModel):
    """
    Everything the ledger needs for one group, read at one point in time.

    CRITICAL: The storage layer must build this in one read. The engine
    does not protect against records changing mid-computation.
    """
    model_config = ConfigDict(frozen=True)

    group: Group
    members: list[Member] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)

    @property
    def member_ids(self) -> set[str]:
        return {member.id for member in self.members}

    @property
    def member_names(self) -> dict[str, str]:
        return {member.id: member.name for member in self.members}


# =============================================================================
# DERIVED VALUES
# =============================================================================

class Balance(BaseModel):
    """
    A member's net position in the group.

    Positive: the group owes this member.
    Negative: this member owes the group.
    """
    model_config = ConfigDict(frozen=True)

    member: Member
    balance: Decimal

    @property
    def member_id(self) -> str:
        return self.member.id

    def to_api_dict(self) -> dict:
        """Shape consumed by the API/UI layer: {member, balance}."""
        return {
            "member": self.member.model_dump(mode="json"),
            "balance": str(self.balance),
        }


class SuggestedSettlement(BaseModel):
    """Advice that from_id should pay to_id this amount to reduce net debt."""
    model_config = ConfigDict(frozen=True)

    from_id: str
    to_id: str
    amount: Decimal = Field(..., gt=0)

    def to_api_dict(self) -> dict:
        """Shape consumed by the API/UI layer: {from, to, amount}."""
        return {
            "from": self.from_id,
            "to": self.to_id,
            "amount": str(self.amount),
        }

    def describe(self, names: Mapping[str, str], currency: str = "") -> str:
        """Human-readable form, e.g. 'Carol pays Alice $30.00'."""
        payer = names.get(self.from_id, self.from_id)
        payee = names.get(self.to_id, self.to_id)
        return f"{payer} pays {payee} {currency}{self.amount:.2f}"


# =============================================================================
# DRAFTS - raw input before validation
# =============================================================================

class ShareDraft(BaseModel):
    """One line of a custom split, as typed by the user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    member_id: Optional[str] = None
    amount: Any = None


class ExpenseDraft(BaseModel):
    """
    An expense as entered, NOT yet verified.

    Amounts are kept as given (string, float, Decimal) so the validator
    can report a bad value instead of pydantic rejecting the whole form.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: Optional[str] = None
    amount: Any = None
    paid_by_id: Optional[str] = None
    split_type: SplitType = SplitType.EQUAL
    participant_ids: list[str] = Field(default_factory=list)
    custom_shares: list[ShareDraft] = Field(default_factory=list)


class SettlementDraft(BaseModel):
    """A payment between two members as entered, NOT yet verified."""
    model_config = ConfigDict(str_strip_whitespace=True)

    from_id: Optional[str] = None
    to_id: Optional[str] = None
    amount: Any = None
