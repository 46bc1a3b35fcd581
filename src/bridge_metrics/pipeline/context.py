from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..domain import (
    ListedAssets,
    LiquidityDepth,
    RateQuote,
    Route,
    SnapshotRequest,
    VolumeWindow,
)
from ..state import AppState


@dataclass(frozen=True)
class ItemFailure:
    """One snapshot item that could not be fetched live."""

    branch: str
    label: str
    error: BaseException


@dataclass
class SnapshotContext:
    """Per-request working area shared by the snapshot branches.

    Each branch pre-sizes its slot list and fills slots as items complete,
    so whatever finished before a deadline is still available.
    """

    state: AppState
    request: SnapshotRequest
    volumes: list[VolumeWindow | None] = field(default_factory=list)
    rates: list[RateQuote | None] = field(default_factory=list)
    liquidity: list[LiquidityDepth | None] = field(default_factory=list)
    listed_assets: ListedAssets | None = None
    failures: list[ItemFailure] = field(default_factory=list)

    @property
    def rate_items(self) -> list[tuple[int, Route, int]]:
        """(slot, route, notional) for the route-major cartesian product."""
        items = []
        for route in self.request.routes:
            for notional in self.request.notionals:
                items.append((len(items), route, notional))
        return items

    def record_failures(
        self,
        branch: str,
        labels: Sequence[str],
        results: Sequence[BaseException | None],
    ) -> None:
        """Log and keep the failures out of ``asyncio.gather`` results.

        Args:
            branch: Branch name (volumes, rates, liquidity, listed_assets)
            labels: One label per gathered item, in gather order
            results: Results from asyncio.gather(..., return_exceptions=True)

        Raises:
            BaseException: Re-raised as-is when it is not an ``Exception``
                (cancellation and interpreter exits are never absorbed).
        """
        log = self.state.logger
        for label, result in zip(labels, results):
            if result is None:
                continue
            if not isinstance(result, Exception):
                raise result
            log.error("Snapshot item %s/%s failed: %s", branch, label, result)
            self.failures.append(ItemFailure(branch=branch, label=label, error=result))
