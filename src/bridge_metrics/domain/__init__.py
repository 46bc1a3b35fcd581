"""Domain models for bridge snapshots.

Every model is immutable. ``to_dict`` emits the contract's wire field names
(camelCase); amounts travel as decimal digit strings in smallest units.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from ..constants import DEFAULT_WINDOWS, SUPPORTED_WINDOWS
from ..errors import ValidationError
from ..units import parse_amount


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_z(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class Provenance(str, Enum):
    LIVE = "live"
    ESTIMATED = "estimated"


class SnapshotStatus(str, Enum):
    LIVE = "live"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class Asset:
    """A token on a given chain."""

    chain_id: str
    asset_id: str
    symbol: str
    decimals: int

    def __post_init__(self) -> None:
        if (
            isinstance(self.decimals, bool)
            or not isinstance(self.decimals, int)
            or self.decimals < 0
        ):
            raise ValidationError(
                f"Asset decimals must be a non-negative integer, got {self.decimals!r}"
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.chain_id, self.asset_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "assetId": self.asset_id,
            "symbol": self.symbol,
            "decimals": self.decimals,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Asset:
        try:
            decimals = data["decimals"]
            if isinstance(decimals, bool) or not isinstance(decimals, (int, str)):
                raise TypeError(f"decimals has type {type(decimals).__name__}")
            return cls(
                chain_id=str(data["chainId"]),
                asset_id=str(data["assetId"]),
                symbol=str(data["symbol"]),
                decimals=int(decimals),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid asset payload {data!r}: {e}") from e


@dataclass(frozen=True)
class Route:
    source: Asset
    destination: Asset

    @property
    def label(self) -> str:
        return (
            f"{self.source.symbol}@{self.source.chain_id}"
            f"->{self.destination.symbol}@{self.destination.chain_id}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.to_dict(),
            "destination": self.destination.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Route:
        try:
            return cls(
                source=Asset.from_dict(data["source"]),
                destination=Asset.from_dict(data["destination"]),
            )
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Invalid route payload {data!r}: {e}") from e


@dataclass(frozen=True)
class RateQuote:
    source: Asset
    destination: Asset
    amount_in: int
    amount_out: int
    effective_rate: Decimal
    total_fees_usd: Decimal
    quoted_at: datetime
    provenance: Provenance = Provenance.LIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.to_dict(),
            "destination": self.destination.to_dict(),
            "amountIn": str(self.amount_in),
            "amountOut": str(self.amount_out),
            "effectiveRate": float(self.effective_rate),
            "totalFeesUsd": float(self.total_fees_usd),
            "quotedAt": isoformat_z(self.quoted_at),
        }


@dataclass(frozen=True)
class LiquidityThreshold:
    max_amount_in: int
    slippage_bps: int

    def __post_init__(self) -> None:
        if self.slippage_bps <= 0:
            raise ValidationError(
                f"slippage_bps must be positive, got {self.slippage_bps}"
            )
        if self.max_amount_in < 0:
            raise ValidationError(
                f"max_amount_in must be non-negative, got {self.max_amount_in}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "maxAmountIn": str(self.max_amount_in),
            "slippageBps": self.slippage_bps,
        }


@dataclass(frozen=True)
class LiquidityDepth:
    route: Route
    thresholds: tuple[LiquidityThreshold, ...]
    measured_at: datetime
    provenance: Provenance = Provenance.LIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "route": self.route.to_dict(),
            "thresholds": [t.to_dict() for t in self.thresholds],
            "measuredAt": isoformat_z(self.measured_at),
        }


@dataclass(frozen=True)
class VolumeWindow:
    window: str
    volume_usd: Decimal
    measured_at: datetime
    provenance: Provenance = Provenance.LIVE

    def __post_init__(self) -> None:
        if self.window not in SUPPORTED_WINDOWS:
            raise ValidationError(
                f"Unsupported volume window {self.window!r}; "
                f"expected one of {', '.join(SUPPORTED_WINDOWS)}"
            )
        if self.volume_usd < 0:
            raise ValidationError(
                f"volume_usd must be non-negative, got {self.volume_usd}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "window": self.window,
            "volumeUsd": float(self.volume_usd),
            "measuredAt": isoformat_z(self.measured_at),
        }


@dataclass(frozen=True)
class ListedAssets:
    assets: tuple[Asset, ...]
    measured_at: datetime
    provenance: Provenance = Provenance.LIVE

    @classmethod
    def collect(
        cls,
        assets: Iterable[Asset],
        measured_at: datetime,
        provenance: Provenance = Provenance.LIVE,
    ) -> ListedAssets:
        """Build from possibly repeated assets; the first occurrence of a
        (chainId, assetId) pair wins."""
        unique: dict[tuple[str, str], Asset] = {}
        for asset in assets:
            unique.setdefault(asset.key, asset)
        return cls(
            assets=tuple(unique.values()),
            measured_at=measured_at,
            provenance=provenance,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "assets": [a.to_dict() for a in self.assets],
            "measuredAt": isoformat_z(self.measured_at),
        }


@dataclass(frozen=True)
class SnapshotRequest:
    routes: tuple[Route, ...]
    notionals: tuple[int, ...]
    windows: tuple[str, ...] = DEFAULT_WINDOWS

    def __post_init__(self) -> None:
        for notional in self.notionals:
            if notional <= 0:
                raise ValidationError(f"Notionals must be positive, got {notional}")
        unsupported = [w for w in self.windows if w not in SUPPORTED_WINDOWS]
        if unsupported:
            raise ValidationError(f"Unsupported volume windows: {unsupported}")

    @classmethod
    def build(
        cls,
        routes: Sequence[Route],
        notionals: Sequence[str | int],
        windows: Sequence[str] | None = None,
    ) -> SnapshotRequest:
        return cls(
            routes=tuple(routes),
            notionals=tuple(parse_amount(n) for n in notionals),
            windows=tuple(windows) if windows is not None else DEFAULT_WINDOWS,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SnapshotRequest:
        """Parse the contract input shape ``{routes, notionals, includeWindows}``."""
        try:
            routes = [Route.from_dict(r) for r in data["routes"]]
            notionals = list(data["notionals"])
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Invalid snapshot request: {e}") from e
        return cls.build(routes, notionals, data.get("includeWindows"))


@dataclass(frozen=True)
class Snapshot:
    volumes: tuple[VolumeWindow, ...]
    rates: tuple[RateQuote, ...]
    liquidity: tuple[LiquidityDepth, ...]
    listed_assets: ListedAssets
    fallbacks: tuple[str, ...] = field(default_factory=tuple)

    @property
    def status(self) -> SnapshotStatus:
        """``live`` when every value came from upstream, else ``degraded``."""
        provenances = [
            *(v.provenance for v in self.volumes),
            *(r.provenance for r in self.rates),
            *(d.provenance for d in self.liquidity),
            self.listed_assets.provenance,
        ]
        if any(p is Provenance.ESTIMATED for p in provenances):
            return SnapshotStatus.DEGRADED
        return SnapshotStatus.LIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "volumes": [v.to_dict() for v in self.volumes],
            "rates": [r.to_dict() for r in self.rates],
            "liquidity": [d.to_dict() for d in self.liquidity],
            "listedAssets": self.listed_assets.to_dict(),
        }
