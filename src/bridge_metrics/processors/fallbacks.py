"""Conservative stand-ins used when a snapshot item cannot be fetched live.

Every value built here carries ``Provenance.ESTIMATED``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from ..adapters.base import QuoteResult
from ..constants import DEFAULT_FEE_BPS
from ..domain import (
    ListedAssets,
    LiquidityDepth,
    LiquidityThreshold,
    Provenance,
    RateQuote,
    Route,
    VolumeWindow,
)
from ..units import apply_fee_bps, expected_output
from .rate_quote import build_rate_quote


def estimated_volume(window: str, now: datetime) -> VolumeWindow:
    return VolumeWindow(
        window=window,
        volume_usd=Decimal(0),
        measured_at=now,
        provenance=Provenance.ESTIMATED,
    )


def estimated_rate(route: Route, amount_in: int, now: datetime) -> RateQuote:
    """Quote at a 1:1 rate less ``DEFAULT_FEE_BPS``."""
    no_slippage = expected_output(
        amount_in, route.source.decimals, route.destination.decimals
    )
    quote = QuoteResult(
        amount_in=amount_in,
        amount_out=apply_fee_bps(no_slippage, DEFAULT_FEE_BPS),
    )
    return build_rate_quote(route, quote, now, provenance=Provenance.ESTIMATED)


def estimated_liquidity(
    route: Route, thresholds_bps: Sequence[int], now: datetime
) -> LiquidityDepth:
    return LiquidityDepth(
        route=route,
        thresholds=tuple(
            LiquidityThreshold(max_amount_in=0, slippage_bps=bps)
            for bps in thresholds_bps
        ),
        measured_at=now,
        provenance=Provenance.ESTIMATED,
    )


def estimated_listed_assets(routes: Sequence[Route], now: datetime) -> ListedAssets:
    """The assets the caller named in its routes."""
    return ListedAssets.collect(
        (asset for route in routes for asset in (route.source, route.destination)),
        measured_at=now,
        provenance=Provenance.ESTIMATED,
    )
