"""Listed assets collection."""

from __future__ import annotations

from ..domain import ListedAssets, utc_now
from .context import SnapshotContext


async def collect_listed_assets(ctx: SnapshotContext) -> None:
    """Fetch the bridge's supported assets, collapsing duplicates."""
    log = ctx.state.logger
    try:
        assets = await ctx.state.adapter.fetch_listed_assets()
    except Exception as exc:
        ctx.record_failures("listed_assets", ["all"], [exc])
        return

    ctx.listed_assets = ListedAssets.collect(assets, measured_at=utc_now())
    log.debug(
        "Listed %d unique assets (%d reported)",
        len(ctx.listed_assets.assets),
        len(assets),
    )
