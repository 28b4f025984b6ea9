from decimal import Decimal, localcontext
from typing import Any

from leaderboard_streaming.constants import GT_DECIMALS

# Large enough for any uint256 at any scale
_PRECISION = 999

ZERO = Decimal(0)


def to_token_amount(raw: Any, decimals: int = GT_DECIMALS) -> Decimal:
    """
    Convert a fixed-point integer (e.g. wei) into token units without rounding.
    Raises ValueError for anything that isn't a non-negative integer.
    """
    # bool is an int subclass, but never a valid amount
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"Amount must be an integer, got {raw!r}")
    if raw < 0:
        raise ValueError(f"Amount must be non-negative, got {raw}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw) / (Decimal(10) ** decimals)


def add_amounts(a: Decimal, b: Decimal) -> Decimal:
    """Exact decimal addition, independent of the ambient context precision."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return a + b


def amount_to_str(value: Decimal) -> str:
    """Plain (non-exponent) rendering: 1E-18 -> '0.000000000000000001'."""
    return format(value, 'f')
