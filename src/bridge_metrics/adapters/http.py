from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from ..clients.bridge_api import ApiResponse, BridgeAPIClient
from ..clients.rate_limiter import RateLimiter
from ..clients.retry import RetryExecutor
from ..domain import Asset, Route, utc_now
from ..errors import ValidationError
from ..processors.volume_aggregator import aggregate_operations_volume
from ..settings import BridgeSettings
from ..units import parse_amount
from .base import BaseBridgeAdapter, QuoteResult


def _require_mapping(response: ApiResponse, what: str) -> dict[str, Any]:
    if not isinstance(response.body, dict):
        raise ValidationError(
            f"Invalid {what} response structure: {response.body!r}"
        )
    return response.body


def _non_negative_decimal(value: Any, what: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid {what} value: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{what} must be a non-negative number, got {value!r}")
    return amount


def parse_volume(response: ApiResponse, window: str) -> Decimal:
    """Read ``volumeUsd`` directly, or aggregate a list of ``operations``."""
    body = _require_mapping(response, "volume")
    if "volumeUsd" in body:
        return _non_negative_decimal(body["volumeUsd"], "volumeUsd")
    operations = body.get("operations")
    if isinstance(operations, list):
        return aggregate_operations_volume(operations, window, utc_now())
    raise ValidationError(f"Volume response carries neither volumeUsd nor operations: {body!r}")


def parse_quote(response: ApiResponse, amount_in: int) -> QuoteResult:
    body = _require_mapping(response, "quote")
    if "amountOut" not in body:
        raise ValidationError(f"Quote response missing amountOut: {body!r}")
    amount_out = parse_amount(body["amountOut"])
    if amount_out == 0:
        raise ValidationError(f"Quote response has zero amountOut: {body!r}")
    fee = body.get("feeUsd")
    fee_usd = _non_negative_decimal(fee, "feeUsd") if fee is not None else None
    return QuoteResult(amount_in=amount_in, amount_out=amount_out, fee_usd=fee_usd)


def parse_assets(response: ApiResponse) -> list[Asset]:
    body = response.body
    if isinstance(body, dict):
        body = body.get("assets")
    if not isinstance(body, list):
        raise ValidationError(f"Invalid assets response structure: {response.body!r}")
    return [Asset.from_dict(item) for item in body]


class HttpBridgeAdapter(BaseBridgeAdapter):
    """Adapter for the bridge metrics HTTP API.

    Every data call goes through the shared ``RetryExecutor``; the health
    probe bypasses retries but still takes a rate limiter slot.
    """

    def __init__(
        self,
        config: BridgeSettings,
        client: BridgeAPIClient,
        executor: RetryExecutor,
        rate_limiter: RateLimiter,
    ):
        super().__init__(config)
        self.client = client
        self.executor = executor
        self.rate_limiter = rate_limiter
        self._timeout = config.timeout_seconds

    @property
    def adapter_name(self) -> str:
        return "http"

    async def fetch_volume(self, window: str) -> Decimal:
        return await self.executor.execute(
            lambda: self.client.request(
                "GET",
                self.config.volume_path,
                params={"window": window},
                timeout=self._timeout,
            ),
            lambda response: parse_volume(response, window),
            description=f"volume {window}",
        )

    async def fetch_quote(self, route: Route, amount_in: int) -> QuoteResult:
        body = {
            "sourceChainId": route.source.chain_id,
            "sourceAssetId": route.source.asset_id,
            "destinationChainId": route.destination.chain_id,
            "destinationAssetId": route.destination.asset_id,
            "amountIn": str(amount_in),
        }
        return await self.executor.execute(
            lambda: self.client.request(
                "POST", self.config.quote_path, body, timeout=self._timeout
            ),
            lambda response: parse_quote(response, amount_in),
            description=f"quote {route.label} {amount_in}",
        )

    async def fetch_listed_assets(self) -> list[Asset]:
        return await self.executor.execute(
            lambda: self.client.request(
                "GET", self.config.assets_path, timeout=self._timeout
            ),
            parse_assets,
            description="listed assets",
        )

    async def check_health(self, timeout: float) -> None:
        await self.rate_limiter.acquire_slot()
        response = await self.client.request(
            "GET", self.config.health_path, timeout=timeout
        )
        response.raise_for_status()

    def close(self) -> None:
        self.client.close()
