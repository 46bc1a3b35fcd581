"""Rate quotes for every (route, notional) pair."""

from __future__ import annotations

import asyncio

from ..domain import Route, utc_now
from ..processors import build_rate_quote
from .context import SnapshotContext


async def quote_rates(ctx: SnapshotContext) -> None:
    """Quote the full route x notional product concurrently.

    Slots follow route-major order: all notionals of the first route, then
    the next route.
    """
    adapter = ctx.state.adapter
    items = ctx.rate_items
    ctx.rates = [None] * len(items)

    async def _quote(slot: int, route: Route, notional: int) -> None:
        quote = await adapter.fetch_quote(route, notional)
        ctx.rates[slot] = build_rate_quote(route, quote, utc_now())

    results = await asyncio.gather(
        *(_quote(slot, route, notional) for slot, route, notional in items),
        return_exceptions=True,
    )
    ctx.record_failures(
        "rates",
        [f"{route.label} {notional}" for _, route, notional in items],
        results,
    )
