from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ..domain import Asset, Route
from ..settings import BridgeSettings


@dataclass(frozen=True)
class QuoteResult:
    """Upstream answer to "how much comes out for this much in"."""

    amount_in: int
    amount_out: int
    fee_usd: Decimal | None = None


class BaseBridgeAdapter(ABC):
    """Abstract base class for bridge metrics sources."""

    def __init__(self, config: BridgeSettings):
        """Initialize the adapter with configuration."""
        self.config = config

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    async def fetch_volume(self, window: str) -> Decimal:
        """Transfer volume in USD over ``window``."""
        ...

    @abstractmethod
    async def fetch_quote(self, route: Route, amount_in: int) -> QuoteResult:
        """Quote ``amount_in`` smallest units of the route's source asset."""
        ...

    @abstractmethod
    async def fetch_listed_assets(self) -> list[Asset]:
        """Every asset the bridge supports, possibly with repeats."""
        ...

    @abstractmethod
    async def check_health(self, timeout: float) -> None:
        """Issue one cheap request; raise on any failure."""
        ...

    def close(self) -> None:
        """Release transport resources, if any."""
        return None
