"""Fixed-precision arithmetic helpers for amounts, prices and fiat values.

Every persisted monetary or volume field is a ``decimal.Decimal``. Batch
processing runs inside ``localcontext(DECIMAL_CONTEXT)`` so that cumulative
counters are reproducible and never drift the way binary floats do.
"""

from decimal import ROUND_HALF_EVEN, Context, Decimal

# 80 significant digits hold any uint256 (78 digits) exactly.
DECIMAL_CONTEXT = Context(prec=80, rounding=ROUND_HALF_EVEN)

ZERO = Decimal(0)
ONE = Decimal(1)
TWO = Decimal(2)


def to_scaled(raw_amount: int, decimals: int) -> Decimal:
    """Convert an integer token amount into its scaled decimal value.

    ``to_scaled(a, 0) == a`` exactly; otherwise the result is ``a / 10**decimals``
    with no rounding for any uint256 amount.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    if decimals == 0:
        return Decimal(raw_amount)
    return Decimal(raw_amount).scaleb(-decimals, context=DECIMAL_CONTEXT)


def safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning zero instead of raising when the denominator is zero."""
    if denominator == ZERO:
        return ZERO
    return DECIMAL_CONTEXT.divide(numerator, denominator)
