"""
Expense Split Builder

Builds the ExpenseShare list for a new or edited expense.

EQUAL: amount / N for each participant. Shares are NOT rounded here;
       100 / 3 stays 33.333... and the balance is rounded once later.
CUSTOM: the caller's shares are used as-is. The sum is not checked
        here; see share_total_mismatch() and LedgerValidator.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from happyshare.ledger.errors import NoParticipantsError
from happyshare.ledger.rounding import ZERO, Number, to_decimal
from happyshare.models.ledger import ExpenseShare, Member, SplitType


def equal_shares(
    expense_id: Optional[str],
    amount: Number,
    participant_ids: Iterable[str],
) -> list[ExpenseShare]:
    """
    Split an amount evenly between participants.

    Duplicate participant ids count once.

    Raises:
        NoParticipantsError: if there is nobody to split between.
    """
    participants = list(dict.fromkeys(participant_ids))
    if not participants:
        raise NoParticipantsError("At least one participant is required")

    share_amount = to_decimal(amount) / len(participants)
    return [
        ExpenseShare(expense_id=expense_id, member_id=member_id, amount=share_amount)
        for member_id in participants
    ]


def resolve_shares(
    expense_id: Optional[str],
    amount: Number,
    split_type: SplitType,
    members: Sequence[Member],
    participant_ids: Optional[Iterable[str]] = None,
    custom_shares: Optional[Iterable[ExpenseShare]] = None,
) -> list[ExpenseShare]:
    """
    Work out the shares for an expense.

    A custom split with shares uses them directly (re-tagged with the
    expense id). Anything else is an equal split: over `participant_ids`
    when given, otherwise over every member of the group. A participant
    id that is not a group member is dropped, the same way the
    participant picker only offers group members.
    """
    if split_type == SplitType.CUSTOM and custom_shares:
        return [
            share.model_copy(update={"expense_id": expense_id})
            for share in custom_shares
        ]

    member_ids = [member.id for member in members]
    wanted = list(participant_ids or [])
    if wanted:
        chosen = set(wanted)
        participants = [member_id for member_id in member_ids if member_id in chosen]
    else:
        participants = member_ids

    return equal_shares(expense_id, amount, participants)


def share_total_mismatch(amount: Number, shares: Iterable[ExpenseShare]) -> Decimal:
    """Expense amount minus the sum of its shares (0 when they agree)."""
    total = sum((to_decimal(share.amount) for share in shares), ZERO)
    return to_decimal(amount) - total
