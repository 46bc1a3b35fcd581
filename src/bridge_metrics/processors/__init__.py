from __future__ import annotations

from .fallbacks import (
    estimated_liquidity,
    estimated_listed_assets,
    estimated_rate,
    estimated_volume,
)
from .liquidity_probe import LiquidityProbe, QuoteSession
from .rate_quote import build_rate_quote
from .volume_aggregator import aggregate_operations_volume

__all__ = [
    "LiquidityProbe",
    "QuoteSession",
    "aggregate_operations_volume",
    "build_rate_quote",
    "estimated_liquidity",
    "estimated_listed_assets",
    "estimated_rate",
    "estimated_volume",
]
