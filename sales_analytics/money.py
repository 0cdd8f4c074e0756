import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Optional

TWO_DP = Decimal("0.01")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Return value as a Decimal, or None when it is not a finite number.

    Floats go through their string form so 0.1 stays 0.1. Booleans are not
    treated as numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else None
    return None


def is_negative_infinity(value: Any) -> bool:
    if isinstance(value, float):
        return value == -math.inf
    if isinstance(value, Decimal):
        return value.is_infinite() and value.is_signed()
    if isinstance(value, str):
        return value.strip().lower() in ("-inf", "-infinity")
    return False


def round2(amount: Decimal) -> Decimal:
    """Round to 2 dp, halves away from zero."""
    with localcontext() as ctx:
        # integer digits plus two places must fit in the working precision
        ctx.prec = max(ctx.prec, amount.adjusted() + 4)
        return amount.quantize(TWO_DP, rounding=ROUND_HALF_UP)
