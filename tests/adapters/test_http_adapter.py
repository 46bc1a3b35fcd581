from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from bridge_metrics.adapters.http import (
    HttpBridgeAdapter,
    parse_assets,
    parse_quote,
    parse_volume,
)
from bridge_metrics.clients.bridge_api import ApiResponse
from bridge_metrics.clients.retry import RetryExecutor
from bridge_metrics.domain import Asset, Route
from bridge_metrics.errors import ConfigurationError, ValidationError
from bridge_metrics.settings import BridgeSettings

USDC_ETH = Asset(chain_id="1", asset_id="0xA0b8", symbol="USDC", decimals=6)
USDC_POLYGON = Asset(chain_id="137", asset_id="0x3c49", symbol="USDC", decimals=6)
ROUTE = Route(source=USDC_ETH, destination=USDC_POLYGON)


class FakeLimiter:
    def __init__(self):
        self.acquired = 0

    async def acquire_slot(self) -> None:
        self.acquired += 1


def _adapter(*responses: ApiResponse) -> tuple[HttpBridgeAdapter, MagicMock, FakeLimiter]:
    client = MagicMock()
    client.request = AsyncMock(side_effect=list(responses))
    limiter = FakeLimiter()
    executor = RetryExecutor(limiter, max_retries=0)
    settings = BridgeSettings(base_url="https://bridge.example")
    return HttpBridgeAdapter(settings, client, executor, limiter), client, limiter


def test_parse_volume_reads_volume_usd():
    response = ApiResponse(status=200, body={"volumeUsd": "12345.67"})

    assert parse_volume(response, "24h") == Decimal("12345.67")


def test_parse_volume_aggregates_operations():
    recent = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    response = ApiResponse(
        status=200,
        body={
            "operations": [
                {"usdAmount": "10.5", "timestamp": recent},
                {"data": {"usdAmount": 4.5}, "sourceChain": {"timestamp": recent}},
            ]
        },
    )

    assert parse_volume(response, "7d") == Decimal("15.0")


@pytest.mark.parametrize(
    "body",
    [[], {"volumeUsd": "-1"}, {"volumeUsd": "abc"}, {"unexpected": 1}],
)
def test_parse_volume_rejects_malformed_payloads(body):
    with pytest.raises(ValidationError):
        parse_volume(ApiResponse(status=200, body=body), "24h")


def test_parse_quote_with_and_without_fee():
    with_fee = parse_quote(
        ApiResponse(status=200, body={"amountOut": "995000", "feeUsd": "0.25"}),
        1_000_000,
    )
    without_fee = parse_quote(
        ApiResponse(status=200, body={"amountOut": "995000"}), 1_000_000
    )

    assert with_fee.amount_out == 995_000
    assert with_fee.fee_usd == Decimal("0.25")
    assert without_fee.fee_usd is None


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"amountOut": "-5"},
        {"amountOut": "9.5"},
        {"amountOut": "0"},
        {"amountOut": "١٠٠"},
        "not json",
    ],
)
def test_parse_quote_rejects_malformed_payloads(body):
    with pytest.raises(ValidationError):
        parse_quote(ApiResponse(status=200, body=body), 1_000_000)


def test_parse_assets_accepts_wrapped_or_bare_lists():
    items = [USDC_ETH.to_dict(), USDC_POLYGON.to_dict()]

    assert parse_assets(ApiResponse(status=200, body={"assets": items})) == [
        USDC_ETH,
        USDC_POLYGON,
    ]
    assert parse_assets(ApiResponse(status=200, body=items)) == [USDC_ETH, USDC_POLYGON]


def test_parse_assets_rejects_non_list():
    with pytest.raises(ValidationError):
        parse_assets(ApiResponse(status=200, body={"assets": "USDC"}))


@pytest.mark.asyncio
async def test_fetch_volume_sends_window():
    adapter, client, _ = _adapter(ApiResponse(status=200, body={"volumeUsd": 100}))

    volume = await adapter.fetch_volume("7d")

    assert volume == Decimal(100)
    client.request.assert_awaited_once_with(
        "GET", "/volume", params={"window": "7d"}, timeout=10.0
    )


@pytest.mark.asyncio
async def test_fetch_quote_posts_route_and_amount():
    adapter, client, _ = _adapter(
        ApiResponse(status=200, body={"amountOut": "995000"})
    )

    quote = await adapter.fetch_quote(ROUTE, 1_000_000)

    assert quote.amount_in == 1_000_000
    assert quote.amount_out == 995_000
    method, path, body = client.request.await_args.args
    assert (method, path) == ("POST", "/quote")
    assert body == {
        "sourceChainId": "1",
        "sourceAssetId": "0xA0b8",
        "destinationChainId": "137",
        "destinationAssetId": "0x3c49",
        "amountIn": "1000000",
    }


@pytest.mark.asyncio
async def test_fetch_listed_assets():
    adapter, _, limiter = _adapter(
        ApiResponse(status=200, body={"assets": [USDC_ETH.to_dict()]})
    )

    assert await adapter.fetch_listed_assets() == [USDC_ETH]
    assert limiter.acquired == 1


@pytest.mark.asyncio
async def test_check_health_takes_a_slot_and_raises_on_failure():
    adapter, client, limiter = _adapter(ApiResponse(status=401))

    with pytest.raises(ConfigurationError):
        await adapter.check_health(1.0)

    assert limiter.acquired == 1
    client.request.assert_awaited_once_with("GET", "/health", timeout=1.0)


def test_close_closes_client():
    adapter, client, _ = _adapter()

    adapter.close()

    client.close.assert_called_once()
