"""Liquidity depth, one probe session per route."""

from __future__ import annotations

import asyncio

from ..domain import LiquidityDepth, Route, utc_now
from ..processors import LiquidityProbe
from .context import SnapshotContext


async def probe_liquidity(ctx: SnapshotContext) -> None:
    """Probe each route's depth at every configured slippage threshold.

    Routes run concurrently; the binary search inside one route is
    sequential.
    """
    s = ctx.state.settings
    routes = ctx.request.routes
    thresholds = list(s.slippage_thresholds_bps)
    ctx.liquidity = [None] * len(routes)

    probe = LiquidityProbe(
        ctx.state.adapter,
        min_amount=s.liquidity_min_amount,
        max_amount=s.liquidity_max_amount,
        iterations=s.liquidity_iterations,
    )

    async def _probe(slot: int, route: Route) -> None:
        depth = await probe.probe(route, thresholds)
        ctx.liquidity[slot] = LiquidityDepth(
            route=route, thresholds=depth, measured_at=utc_now()
        )

    results = await asyncio.gather(
        *(_probe(slot, route) for slot, route in enumerate(routes)),
        return_exceptions=True,
    )
    ctx.record_failures("liquidity", [route.label for route in routes], results)
