"""
Ledger Error Taxonomy

DESIGN DECISION: The ledger engine never returns partial results.
Any structural problem in the input raises one of these errors and
no balance map is produced. Retrying without new input is meaningless,
so callers should surface the error rather than retry.
"""

from decimal import Decimal
from typing import Any, Optional


class LedgerError(Exception):
    """Base exception for ledger computations."""
    pass


class UnknownMemberReference(LedgerError):
    """
    A record references a member that is not part of the supplied member set.

    This is a data-integrity fault in the snapshot handed to the engine.
    """

    def __init__(
        self,
        member_id: str,
        record_type: str,
        record_id: Optional[str] = None,
    ):
        self.member_id = member_id
        self.record_type = record_type
        self.record_id = record_id
        where = f"{record_type} {record_id}" if record_id else record_type
        super().__init__(f"{where} references unknown member {member_id!r}")


class InvalidAmount(LedgerError):
    """An amount is non-numeric, NaN, infinite, or out of range."""

    def __init__(self, amount: Any, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class ShareSumMismatch(InvalidAmount):
    """Custom shares do not add up to the expense amount (strict mode only)."""

    def __init__(self, amount: Decimal, share_total: Decimal):
        self.share_total = share_total
        super().__init__(
            amount,
            f"shares add up to {share_total}, expected {amount}",
        )


class SelfSettlement(LedgerError):
    """A settlement where the payer and the receiver are the same member."""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member {member_id!r} cannot settle with themselves")


class NoParticipantsError(LedgerError):
    """An equal split was requested with nobody to split between."""
    pass
