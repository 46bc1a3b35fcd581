import asyncio
import logging
from decimal import Decimal

import pytest

from bridge_metrics.adapters.base import BaseBridgeAdapter, QuoteResult
from bridge_metrics.domain import Asset, Route
from bridge_metrics.settings import BridgeSettings
from bridge_metrics.state import AppState

USDC_ETH = Asset(chain_id="1", asset_id="0xA0b8", symbol="USDC", decimals=6)
USDC_POLYGON = Asset(chain_id="137", asset_id="0x3c49", symbol="USDC", decimals=6)
USDC_ARB = Asset(chain_id="42161", asset_id="0xaf88", symbol="USDC", decimals=6)


class FakeBridge(BaseBridgeAdapter):
    """In-memory bridge quoting a flat 50 bps below parity.

    ``failures`` maps a capability name to the exception it raises;
    ``hangs`` names capabilities that never answer.
    """

    def __init__(self, config: BridgeSettings):
        super().__init__(config)
        self.failures: dict[str, Exception] = {}
        self.hangs: set[str] = set()
        self.assets = [USDC_ETH, USDC_POLYGON, USDC_ETH, USDC_ARB]
        self.calls: list[str] = []

    @property
    def adapter_name(self) -> str:
        return "fake"

    async def _answer(self, capability: str) -> None:
        self.calls.append(capability)
        if capability in self.hangs:
            await asyncio.sleep(3600)
        if capability in self.failures:
            raise self.failures[capability]

    async def fetch_volume(self, window: str) -> Decimal:
        await self._answer(f"volume:{window}")
        return {"24h": Decimal("1000"), "7d": Decimal("7000"), "30d": Decimal("30000")}[window]

    async def fetch_quote(self, route: Route, amount_in: int) -> QuoteResult:
        await self._answer("quote")
        return QuoteResult(amount_in=amount_in, amount_out=amount_in * 995 // 1000)

    async def fetch_listed_assets(self) -> list[Asset]:
        await self._answer("assets")
        return list(self.assets)

    async def check_health(self, timeout: float) -> None:
        await self._answer("health")


@pytest.fixture
def routes() -> list[Route]:
    return [
        Route(source=USDC_ETH, destination=USDC_POLYGON),
        Route(source=USDC_ETH, destination=USDC_ARB),
    ]


@pytest.fixture
def make_state():
    def _make(**settings_kwargs) -> AppState:
        settings = BridgeSettings(base_url="https://bridge.example", **settings_kwargs)
        return AppState(
            settings=settings,
            logger=logging.getLogger("test"),
            adapter=FakeBridge(settings),
        )

    return _make
