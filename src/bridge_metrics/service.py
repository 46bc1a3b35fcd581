"""Public entry point for embedding the snapshot engine in other programs."""

from __future__ import annotations

import logging
from typing import Sequence

from .adapters import BaseBridgeAdapter, HttpBridgeAdapter
from .clients import BridgeAPIClient, RateLimiter, RetryExecutor
from .domain import Route, Snapshot, SnapshotRequest
from .errors import ConfigurationError
from .pipeline import ping, run_snapshot
from .settings import BridgeSettings
from .state import AppState


class BridgeDataService:
    """Aggregates bridge volumes, rates, liquidity and listed assets.

    One instance owns one upstream adapter and one rate limiter; every
    request it issues shares that limiter.
    """

    def __init__(self, state: AppState):
        self.state = state

    @classmethod
    def from_settings(
        cls,
        settings: BridgeSettings,
        *,
        rate_limiter: RateLimiter | None = None,
        logger: logging.Logger | None = None,
    ) -> BridgeDataService:
        """Wire the HTTP adapter, retry executor and rate limiter from settings.

        Raises:
            ConfigurationError: If no base URL is configured.
        """
        try:
            base_url = settings.base_url_required
        except ValueError as e:
            raise ConfigurationError(
                f"{e} (BRIDGE_METRICS_BASE_URL or --base-url)"
            ) from e

        log = logger or logging.getLogger("bridge_metrics")
        limiter = rate_limiter or RateLimiter(settings.requests_per_second)
        executor = RetryExecutor(
            limiter,
            max_retries=settings.max_retries,
            timeout_seconds=settings.timeout_seconds,
            initial_delay=settings.retry_initial_delay_ms / 1000,
            multiplier=settings.retry_multiplier,
            max_delay=settings.retry_max_delay_ms / 1000,
            log=log,
        )
        client = BridgeAPIClient(
            base_url,
            api_key=settings.api_key.get_secret_value() if settings.api_key else None,
        )
        adapter = HttpBridgeAdapter(settings, client, executor, limiter)
        return cls(AppState(settings=settings, logger=log, adapter=adapter))

    @property
    def adapter(self) -> BaseBridgeAdapter:
        return self.state.adapter

    async def initialize(self) -> None:
        """Warm up by probing upstream once; never fails."""
        await self.ping()
        self.state.logger.info("Bridge data service initialized")

    async def get_snapshot(
        self,
        routes: Sequence[Route],
        notionals: Sequence[int],
        windows: Sequence[str] | None = None,
    ) -> Snapshot:
        """Fetch a full snapshot.

        Raises:
            ValidationError: If the request itself is invalid.
            ConfigurationError: If upstream rejected our credentials.
            SnapshotError: In strict mode, if any item could not be fetched.
        """
        request = SnapshotRequest.build(routes, notionals, windows)
        return await run_snapshot(self.state, request)

    async def ping(self) -> dict[str, str]:
        return await ping(self.state)

    def close(self) -> None:
        self.state.adapter.close()
