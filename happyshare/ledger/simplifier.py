"""
Debt Simplifier

Reduces a group's balances to a short list of direct payments.

ALGORITHM (greedy, largest first):
1. Split members into creditors (> +0.01) and debtors (< -0.01).
   Anyone inside the epsilon band is already settled.
2. Sort both sides by amount, largest first. Ties keep input order.
3. Pair the current largest debtor with the current largest creditor,
   transfer the smaller of the two amounts, and move past whichever
   side is now cleared (both, when they match exactly).

DESIGN DECISION: Finding the true minimum number of payments is NP-hard.
This heuristic needs at most |debtors| + |creditors| - 1 payments and
is predictable enough to explain to users. Keep it.
"""

from decimal import Decimal
from typing import Mapping, Union

from happyshare.ledger.rounding import EPSILON, Number, round2, to_decimal
from happyshare.models.ledger import Balance, SuggestedSettlement


def _amount_of(value: Union[Balance, Number]) -> Decimal:
    if isinstance(value, Balance):
        return value.balance
    return to_decimal(value)


def _partition(
    balances: Mapping[str, Union[Balance, Number]],
) -> tuple[list[dict], list[dict]]:
    """Return (creditors, debtors), each sorted by remaining amount, largest first."""
    creditors = []
    debtors = []

    for member_id, value in balances.items():
        amount = _amount_of(value)
        if amount > EPSILON:
            creditors.append({"member_id": member_id, "remaining": amount})
        elif amount < -EPSILON:
            debtors.append({"member_id": member_id, "remaining": -amount})

    # sorted() is stable, so equal amounts stay in input order
    creditors.sort(key=lambda entry: entry["remaining"], reverse=True)
    debtors.sort(key=lambda entry: entry["remaining"], reverse=True)
    return creditors, debtors


def suggest_settlements(
    balances: Mapping[str, Union[Balance, Number]],
) -> list[SuggestedSettlement]:
    """
    Suggest payments that bring every balance to (approximately) zero.

    Args:
        balances: member id -> Balance, or member id -> signed amount.
                  Iteration order is the tie-break order.

    Returns:
        Suggested payments in the order they were matched. Every amount
        is positive and rounded to cents. Empty when everyone is settled.
    """
    creditors, debtors = _partition(balances)

    suggestions: list[SuggestedSettlement] = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        transfer = min(debtor["remaining"], creditor["remaining"])

        if transfer > EPSILON:
            suggestions.append(SuggestedSettlement(
                from_id=debtor["member_id"],
                to_id=creditor["member_id"],
                amount=round2(transfer),
            ))

        debtor["remaining"] -= transfer
        creditor["remaining"] -= transfer

        if debtor["remaining"] < EPSILON:
            i += 1
        if creditor["remaining"] < EPSILON:
            j += 1

    return suggestions
