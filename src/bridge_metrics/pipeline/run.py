"""High-level snapshot orchestration."""

from __future__ import annotations

import asyncio
from typing import Sequence, TypeVar

from ..domain import Snapshot, SnapshotRequest, utc_now
from ..errors import ConfigurationError, SnapshotError
from ..processors import (
    estimated_liquidity,
    estimated_listed_assets,
    estimated_rate,
    estimated_volume,
)
from ..state import AppState
from .assets import collect_listed_assets
from .context import SnapshotContext
from .liquidity import probe_liquidity
from .rates import quote_rates
from .volumes import collect_volumes

T = TypeVar("T")

BRANCHES = ("volumes", "rates", "liquidity", "listed_assets")


def _slots(values: Sequence[T | None], size: int) -> list[T | None]:
    """Branches cancelled before they started leave their slot list empty."""
    return list(values) if len(values) == size else [None] * size


def _raise_configuration_error(ctx: SnapshotContext) -> None:
    for failure in ctx.failures:
        if isinstance(failure.error, ConfigurationError):
            raise failure.error


def _assemble(ctx: SnapshotContext, deadline_expired: bool) -> Snapshot:
    """Build the snapshot, filling gaps per the resilience policy.

    Raises:
        SnapshotError: In strict mode, if any item is missing.
    """
    s = ctx.state.settings
    log = ctx.state.logger
    request = ctx.request
    now = utc_now()
    missing: list[str] = []

    volumes = []
    for window, volume in zip(
        request.windows, _slots(ctx.volumes, len(request.windows))
    ):
        if volume is None:
            missing.append(f"volumes/{window}")
            volume = estimated_volume(window, now)
        volumes.append(volume)

    items = ctx.rate_items
    rates = []
    for (_, route, notional), rate in zip(items, _slots(ctx.rates, len(items))):
        if rate is None:
            missing.append(f"rates/{route.label} {notional}")
            rate = estimated_rate(route, notional, now)
        rates.append(rate)

    liquidity = []
    for route, depth in zip(
        request.routes, _slots(ctx.liquidity, len(request.routes))
    ):
        if depth is None:
            missing.append(f"liquidity/{route.label}")
            depth = estimated_liquidity(route, s.slippage_thresholds_bps, now)
        liquidity.append(depth)

    listed_assets = ctx.listed_assets
    if listed_assets is None:
        missing.append("listed_assets/all")
        listed_assets = estimated_listed_assets(request.routes, now)

    if missing and s.is_strict:
        failures: list[tuple[str, BaseException]] = [
            (f"{f.branch}/{f.label}", f.error) for f in ctx.failures
        ]
        if deadline_expired:
            failures.append(
                ("deadline", TimeoutError(f"{s.snapshot_deadline_seconds}s elapsed"))
            )
        raise SnapshotError(
            f"Snapshot failed: {len(missing)} item(s) unavailable: {', '.join(missing)}",
            failures,
        )

    for label in missing:
        log.warning("Using estimated value for %s", label)

    return Snapshot(
        volumes=tuple(volumes),
        rates=tuple(rates),
        liquidity=tuple(liquidity),
        listed_assets=listed_assets,
        fallbacks=tuple(missing),
    )


async def run_snapshot(state: AppState, request: SnapshotRequest) -> Snapshot:
    """Produce a full snapshot for the requested routes, notionals and windows.

    The volumes, rates, liquidity and listed-assets branches run
    concurrently and are all allowed to settle; one branch failing never
    cancels another. An overall deadline cancels whatever is still
    outstanding and keeps what already completed.

    Args:
        state: Application state containing settings, logger and adapter
        request: Routes, notionals and volume windows to cover

    Returns:
        The assembled snapshot; check ``status`` for live vs degraded.

    Raises:
        ConfigurationError: If upstream rejected our credentials.
        SnapshotError: In strict mode, if any item could not be fetched.
    """
    s = state.settings
    log = state.logger

    log.info(
        "Starting snapshot for %d routes, %d notionals, windows %s",
        len(request.routes),
        len(request.notionals),
        ",".join(request.windows),
    )

    ctx = SnapshotContext(state=state, request=request)
    timeout_s = s.snapshot_deadline_seconds

    async def _run_branches() -> None:
        results = await asyncio.gather(
            collect_volumes(ctx),
            quote_rates(ctx),
            probe_liquidity(ctx),
            collect_listed_assets(ctx),
            return_exceptions=True,
        )
        ctx.record_failures("snapshot", list(BRANCHES), results)

    deadline_expired = False
    try:
        if timeout_s is None or timeout_s <= 0:
            await _run_branches()
        else:
            async with asyncio.timeout(timeout_s):
                await _run_branches()
    except TimeoutError:
        deadline_expired = True
        log.error(
            "Snapshot exceeded deadline of %ss; keeping completed items",
            timeout_s,
        )

    _raise_configuration_error(ctx)
    snapshot = _assemble(ctx, deadline_expired)

    log.info(
        "Snapshot completed (%s): %d volumes, %d rates, %d liquidity, %d assets",
        snapshot.status.value,
        len(snapshot.volumes),
        len(snapshot.rates),
        len(snapshot.liquidity),
        len(snapshot.listed_assets.assets),
    )
    return snapshot
