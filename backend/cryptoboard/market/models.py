"""Data models for market data."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class AssetRecord:
    """Immutable snapshot of one tracked asset and its market metrics.

    Numeric fields are always present. Nullable upstream values are coerced
    to 0 (or an empty sparkline) before a record is built.
    """

    id: str
    symbol: str
    name: str
    image_url: str = ""
    current_price: float = 0.0
    price_change_24h: float = 0.0  # Percent
    market_cap: float = 0.0
    volume_24h: float = 0.0
    circulating_supply: float = 0.0
    sparkline: tuple[float, ...] = field(default_factory=tuple)  # Chronological, ~hourly

    @property
    def trend(self) -> str:
        """'up', 'down', or 'flat' across the sparkline window."""
        if not self.sparkline:
            return "flat"
        if self.sparkline[-1] >= self.sparkline[0]:
            return "up"
        return "down"

    def to_dict(self) -> dict:
        """Serialize to the camelCase wire shape served by /api/cryptos."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "image": self.image_url,
            "currentPrice": self.current_price,
            "priceChange24h": self.price_change_24h,
            "marketCap": self.market_cap,
            "volume24h": self.volume_24h,
            "circulatingSupply": self.circulating_supply,
            "sparkline": list(self.sparkline),
        }


class SortKey(str, Enum):
    """Sortable asset fields. Values are the record attribute names."""

    NAME = "name"
    SYMBOL = "symbol"
    CURRENT_PRICE = "current_price"
    PRICE_CHANGE_24H = "price_change_24h"
    MARKET_CAP = "market_cap"
    VOLUME_24H = "volume_24h"
    CIRCULATING_SUPPLY = "circulating_supply"

    @property
    def is_numeric(self) -> bool:
        return self not in (SortKey.NAME, SortKey.SYMBOL)

    @property
    def wire_name(self) -> str:
        return _WIRE_NAMES[self]

    @classmethod
    def parse(cls, value: str) -> SortKey:
        """Accept either the attribute name or the camelCase column name."""
        value = value.strip()
        for key in cls:
            if value in (key.value, key.wire_name):
                return key
        raise ValueError(f"Unknown sort key: {value!r}")


_WIRE_NAMES: dict[SortKey, str] = {
    SortKey.NAME: "name",
    SortKey.SYMBOL: "symbol",
    SortKey.CURRENT_PRICE: "currentPrice",
    SortKey.PRICE_CHANGE_24H: "priceChange24h",
    SortKey.MARKET_CAP: "marketCap",
    SortKey.VOLUME_24H: "volume24h",
    SortKey.CIRCULATING_SUPPLY: "circulatingSupply",
}


class SortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"

    def toggled(self) -> SortDirection:
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING


@dataclass(frozen=True, slots=True)
class SortConfig:
    """Active sort column and direction. key=None means input order."""

    key: SortKey | None = SortKey.MARKET_CAP
    direction: SortDirection = SortDirection.DESCENDING

    def to_dict(self) -> dict:
        return {
            "key": self.key.wire_name if self.key else None,
            "direction": self.direction.value,
        }


class ControllerState(str, Enum):
    """Lifecycle of the refresh-and-reconcile controller."""

    INITIAL = "initial"
    LOADING = "loading"
    READY = "ready"
    REFRESH_FAILED = "refresh_failed"
    EMPTY = "empty"
