"""
Ledger Engine

Pure functions, no I/O, no state:
- compute_balances: records -> member balances
- suggest_settlements: balances -> suggested payments
"""

from happyshare.ledger.balances import compute_balances, total_of
from happyshare.ledger.errors import (
    InvalidAmount,
    LedgerError,
    NoParticipantsError,
    SelfSettlement,
    ShareSumMismatch,
    UnknownMemberReference,
)
from happyshare.ledger.rounding import EPSILON, is_zero, round2, to_decimal
from happyshare.ledger.simplifier import suggest_settlements
from happyshare.ledger.splits import equal_shares, resolve_shares, share_total_mismatch

__all__ = [
    # Engine
    "compute_balances",
    "suggest_settlements",
    "total_of",
    # Splits
    "equal_shares",
    "resolve_shares",
    "share_total_mismatch",
    # Rounding policy
    "EPSILON",
    "is_zero",
    "round2",
    "to_decimal",
    # Errors
    "InvalidAmount",
    "LedgerError",
    "NoParticipantsError",
    "SelfSettlement",
    "ShareSumMismatch",
    "UnknownMemberReference",
]
