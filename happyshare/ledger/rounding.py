"""
Rounding and Tolerance Policy

Shared numeric rules for the ledger builder and the debt simplifier.

DESIGN DECISION: Both components import EPSILON and round2 from here.
If they each carried their own constant, suggested settlements could stop
reconciling with the balances shown to the user.

Rounding rule: round-half-away-from-zero (ROUND_HALF_UP in the decimal
module) at cent granularity. 0.005 -> 0.01 and -0.005 -> -0.01.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from happyshare.ledger.errors import InvalidAmount

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
EPSILON = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than
    its binary expansion. NaN, infinities, booleans and non-numeric
    values raise InvalidAmount.
    """
    if isinstance(value, bool):
        raise InvalidAmount(value, "booleans are not amounts")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidAmount(value, "not a number") from None
    else:
        raise InvalidAmount(value, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidAmount(value, "amount must be finite")
    return result


def round2(value: Number) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    rounded = to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    # Normalise -0.00 to 0.00
    return rounded if rounded != ZERO else ZERO.quantize(CENT)


def is_zero(value: Number) -> bool:
    """True when |value| is inside the settled band (< 0.01)."""
    return abs(to_decimal(value)) < EPSILON
