from __future__ import annotations

from decimal import Decimal

import pytest

from bridge_metrics.errors import ValidationError
from bridge_metrics.units import (
    apply_fee_bps,
    derive_fee_usd,
    expected_output,
    from_smallest_units,
    normalize_rate,
    parse_amount,
    slippage_bps,
    to_smallest_units,
)


def test_normalize_rate_usdc_with_fee():
    rate = normalize_rate(1_000_000, 6, 995_000, 6)

    assert rate == Decimal("0.995")
    assert derive_fee_usd(1_000_000, 6, rate) == Decimal("0.005")


def test_normalize_rate_is_scale_invariant():
    six = normalize_rate(1_000_000, 6, 995_000, 6)
    eighteen = normalize_rate(10**18, 18, 995 * 10**15, 18)

    assert six == eighteen


def test_normalize_rate_across_decimals():
    # 1 USDC (6 decimals) -> 0.999 DAI (18 decimals)
    rate = normalize_rate(1_000_000, 6, 999 * 10**15, 18)

    assert rate == Decimal("0.999")


def test_normalize_rate_handles_amounts_beyond_float_precision():
    amount_in = 123_456_789_012_345_678_901_234_567
    rate = normalize_rate(amount_in, 18, amount_in * 2, 18)

    assert rate == Decimal(2)


def test_normalize_rate_zero_amount_in_raises():
    with pytest.raises(ZeroDivisionError):
        normalize_rate(0, 6, 995_000, 6)


@pytest.mark.parametrize(
    "args",
    [
        (-1, 6, 995_000, 6),
        (1_000_000, -6, 995_000, 6),
        (1_000_000, 6, -1, 6),
        (1_000_000, 6, 995_000, -1),
    ],
)
def test_normalize_rate_rejects_negative_inputs(args):
    with pytest.raises(ValidationError):
        normalize_rate(*args)


def test_derive_fee_is_zero_when_rate_exceeds_parity():
    assert derive_fee_usd(1_000_000, 6, Decimal("1.01")) == Decimal(0)


def test_parse_amount_accepts_digit_strings_and_ints():
    assert parse_amount("1000000") == 1_000_000
    assert parse_amount(42) == 42


@pytest.mark.parametrize(
    "value", ["-1", "1.5", "", "1e6", True, None, 3.0, "²", "١٠٠", "１０"]
)
def test_parse_amount_rejects_non_integer_forms(value):
    with pytest.raises(ValidationError):
        parse_amount(value)


def test_smallest_unit_conversions():
    assert to_smallest_units(Decimal("1.5"), 6) == 1_500_000
    assert to_smallest_units(Decimal("0.0000019"), 6) == 1  # truncates
    assert from_smallest_units(1_500_000, 6) == Decimal("1.5")


def test_expected_output_shifts_decimals():
    assert expected_output(1_000_000, 6, 18) == Decimal(10**18)
    assert expected_output(10**18, 18, 6) == Decimal(1_000_000)


def test_slippage_bps():
    assert slippage_bps(Decimal(1_000_000), 995_000) == Decimal(50)
    assert slippage_bps(Decimal(1_000_000), 1_000_000) == Decimal(0)


def test_apply_fee_bps_truncates():
    assert apply_fee_bps(Decimal(1_000_000), 5) == 999_500
    assert apply_fee_bps(Decimal(3), 5) == 2
