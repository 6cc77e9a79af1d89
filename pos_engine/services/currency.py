"""USD/SDG conversion with fixed-point rounding.

Both currencies are kept at two fractional digits, rounded half-up. Amounts
are converted from the unrounded source so a figure is rounded exactly once.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pos_engine.core.exceptions import InvalidRateError

USD_QUANT = Decimal("0.01")
SDG_QUANT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_usd(amount: Any) -> Decimal:
    return to_decimal(amount).quantize(USD_QUANT, rounding=ROUND_HALF_UP)


def round_sdg(amount: Any) -> Decimal:
    return to_decimal(amount).quantize(SDG_QUANT, rounding=ROUND_HALF_UP)


def validate_rate(rate: Any) -> Decimal:
    """Return the rate as a Decimal, rejecting zero, negative and non-finite values."""
    try:
        value = to_decimal(rate)
    except (ArithmeticError, ValueError):
        raise InvalidRateError(rate) from None
    if not value.is_finite() or value <= 0:
        raise InvalidRateError(rate)
    return value


def to_sdg(amount_usd: Any, rate: Any) -> Decimal:
    """Convert a USD amount to SDG at ``rate`` SDG per USD."""
    return round_sdg(to_decimal(amount_usd) * validate_rate(rate))


def to_usd(amount_sdg: Any, rate: Any) -> Decimal:
    """Convert an SDG amount to USD at ``rate`` SDG per USD."""
    return round_usd(to_decimal(amount_sdg) / validate_rate(rate))
