"""Volume collection, one upstream fetch per requested window."""

from __future__ import annotations

import asyncio

from ..domain import VolumeWindow, utc_now
from .context import SnapshotContext


async def collect_volumes(ctx: SnapshotContext) -> None:
    """Fetch every requested volume window concurrently.

    Fills ``ctx.volumes`` slot by slot; failed windows stay ``None`` and
    are recorded in ``ctx.failures``.
    """
    adapter = ctx.state.adapter
    windows = ctx.request.windows
    ctx.volumes = [None] * len(windows)

    async def _fetch(slot: int, window: str) -> None:
        volume_usd = await adapter.fetch_volume(window)
        ctx.volumes[slot] = VolumeWindow(
            window=window, volume_usd=volume_usd, measured_at=utc_now()
        )
        ctx.state.logger.debug("Volume %s: $%s", window, volume_usd)

    results = await asyncio.gather(
        *(_fetch(slot, window) for slot, window in enumerate(windows)),
        return_exceptions=True,
    )
    ctx.record_failures("volumes", list(windows), results)
