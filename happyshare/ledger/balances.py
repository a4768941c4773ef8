"""
Ledger Builder

Turns a group's expenses, shares and settlements into one net balance
per member.

    payer of an expense         +amount
    each member in the shares   -share
    settlement payer            +amount
    settlement receiver         -amount

DESIGN DECISION: The whole input is checked before anything is added up.
A bad record fails the computation with no partial balances. Rounding
happens exactly once per member, after accumulation, so per-share
rounding error cannot compound.
"""

from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping

from happyshare.ledger.errors import InvalidAmount, UnknownMemberReference
from happyshare.ledger.rounding import ZERO, round2, to_decimal
from happyshare.models.ledger import Balance, Expense, Member, Settlement


def _check_member(member_id: str, known: Mapping[str, Member], record_type: str, record_id) -> None:
    if member_id not in known:
        raise UnknownMemberReference(member_id, record_type, record_id)


def _non_negative(value, what: str) -> Decimal:
    amount = to_decimal(value)
    if amount < ZERO:
        raise InvalidAmount(value, f"{what} cannot be negative")
    return amount


def _positive(value, what: str) -> Decimal:
    amount = to_decimal(value)
    if amount <= ZERO:
        raise InvalidAmount(value, f"{what} must be greater than zero")
    return amount


def _collect_entries(
    known: Mapping[str, Member],
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
) -> list[tuple[str, Decimal]]:
    """
    Validate every record and flatten it into (member_id, delta) pairs.

    Raises before returning anything, so the caller never sees a
    half-applied ledger.
    """
    entries: list[tuple[str, Decimal]] = []

    for expense in expenses:
        _check_member(expense.paid_by_id, known, "expense", expense.id)
        entries.append((expense.paid_by_id, _non_negative(expense.amount, "expense amount")))

        for share in expense.shares:
            _check_member(share.member_id, known, "expense share", expense.id)
            entries.append((share.member_id, -_non_negative(share.amount, "share amount")))

    for settlement in settlements:
        _check_member(settlement.from_id, known, "settlement", settlement.id)
        _check_member(settlement.to_id, known, "settlement", settlement.id)
        amount = _positive(settlement.amount, "settlement amount")
        entries.append((settlement.from_id, amount))
        entries.append((settlement.to_id, -amount))

    return entries


def compute_balances(
    members: Iterable[Member],
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
) -> Mapping[str, Balance]:
    """
    Compute every member's net balance.

    Args:
        members: All members of the group. Members with no activity
                 still appear, with a balance of 0.00.
        expenses: Expenses with their shares.
        settlements: Recorded payments between members.

    Returns:
        Read-only mapping of member id -> Balance, in member order.
        Every balance is rounded to cents.

    Raises:
        UnknownMemberReference: a record points at a member not in `members`.
        InvalidAmount: NaN/infinite amount, negative expense or share,
                       or a settlement that is not strictly positive.
    """
    known: dict[str, Member] = {member.id: member for member in members}

    entries = _collect_entries(known, expenses, settlements)

    totals: dict[str, Decimal] = {member_id: ZERO for member_id in known}
    for member_id, delta in entries:
        totals[member_id] += delta

    return MappingProxyType({
        member_id: Balance(member=known[member_id], balance=round2(total))
        for member_id, total in totals.items()
    })


def total_of(balances: Mapping[str, Balance]) -> Decimal:
    """Sum of all balances. Zero up to rounding for any consistent ledger."""
    return sum((entry.balance for entry in balances.values()), ZERO)
