from __future__ import annotations

from decimal import ROUND_DOWN, Context, Decimal
from fractions import Fraction

from .constants import BPS_DENOMINATOR
from .errors import ValidationError

# Enough digits for 10^8 whole tokens at 30 decimals with room to spare
DECIMAL_CONTEXT = Context(prec=60)


def _check_amount(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


def _check_decimals(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")


def parse_amount(value: str | int) -> int:
    """Parse a smallest-unit amount from its decimal digit string form.

    Raises:
        ValidationError: If the value is not a plain non-negative integer.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        _check_amount("amount", value)
        return value
    if not isinstance(value, str) or not (value.isascii() and value.isdigit()):
        raise ValidationError(f"Amount must be a decimal digit string, got {value!r}")
    return int(value)


def to_smallest_units(amount: Decimal | int, decimals: int) -> int:
    """Convert a whole-token amount to smallest units, truncating toward zero."""
    _check_decimals("decimals", decimals)
    scaled = DECIMAL_CONTEXT.multiply(Decimal(amount), Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_smallest_units(amount: int, decimals: int) -> Decimal:
    """Convert a smallest-unit amount to whole tokens."""
    _check_amount("amount", amount)
    _check_decimals("decimals", decimals)
    return Decimal(amount).scaleb(-decimals, DECIMAL_CONTEXT)


def normalize_rate(
    amount_in: int, source_decimals: int, amount_out: int, dest_decimals: int
) -> Decimal:
    """Effective rate of a quote once both sides are decimal-adjusted.

    rate = (amount_out / 10**dest_decimals) / (amount_in / 10**source_decimals)

    The ratio is reduced as an exact fraction before conversion, so scaling
    both amounts by the same factor yields an identical Decimal.

    Raises:
        ZeroDivisionError: If ``amount_in`` is zero.
        ValidationError: If an amount or decimal count is negative.
    """
    _check_amount("amount_in", amount_in)
    _check_amount("amount_out", amount_out)
    _check_decimals("source_decimals", source_decimals)
    _check_decimals("dest_decimals", dest_decimals)
    if amount_in == 0:
        raise ZeroDivisionError("amount_in must be positive to derive an effective rate")

    ratio = Fraction(
        amount_out * 10**source_decimals, amount_in * 10**dest_decimals
    )
    return DECIMAL_CONTEXT.divide(Decimal(ratio.numerator), Decimal(ratio.denominator))


def derive_fee_usd(
    amount_in: int, source_decimals: int, effective_rate: Decimal
) -> Decimal:
    """Implicit fee against a 1:1 reference rate, floored at zero.

    Used whenever the upstream quote does not carry a fee of its own.
    """
    normalized_in = from_smallest_units(amount_in, source_decimals)
    shortfall = DECIMAL_CONTEXT.subtract(Decimal(1), effective_rate)
    if shortfall <= 0:
        return Decimal(0)
    return DECIMAL_CONTEXT.multiply(normalized_in, shortfall)


def expected_output(amount_in: int, source_decimals: int, dest_decimals: int) -> Decimal:
    """No-slippage output in destination smallest units (1:1 in whole tokens)."""
    _check_amount("amount_in", amount_in)
    _check_decimals("source_decimals", source_decimals)
    _check_decimals("dest_decimals", dest_decimals)
    return Decimal(amount_in).scaleb(dest_decimals - source_decimals, DECIMAL_CONTEXT)


def slippage_bps(expected_out: Decimal, actual_out: int) -> Decimal:
    """|expected - actual| / expected in basis points."""
    if expected_out <= 0:
        raise ZeroDivisionError("expected output must be positive to measure slippage")
    deviation = abs(DECIMAL_CONTEXT.subtract(expected_out, Decimal(actual_out)))
    return DECIMAL_CONTEXT.multiply(
        DECIMAL_CONTEXT.divide(deviation, expected_out), Decimal(BPS_DENOMINATOR)
    )


def apply_fee_bps(amount: Decimal, fee_bps: int) -> int:
    """Deduct ``fee_bps`` from a smallest-unit amount, truncating."""
    kept = DECIMAL_CONTEXT.multiply(
        amount, Decimal(BPS_DENOMINATOR - fee_bps) / Decimal(BPS_DENOMINATOR)
    )
    return int(kept.to_integral_value(rounding=ROUND_DOWN))
