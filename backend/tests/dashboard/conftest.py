"""Fixtures for dashboard tests."""

from collections.abc import Callable

import pytest

from cryptoboard.dashboard.favorites import Favorites
from cryptoboard.dashboard.store import LocalStore
from cryptoboard.market.models import AssetRecord


def _asset(asset_id: str, **fields) -> AssetRecord:
    fields.setdefault("symbol", asset_id[:3])
    fields.setdefault("name", asset_id.title())
    return AssetRecord(id=asset_id, **fields)


@pytest.fixture
def make_asset() -> Callable[..., AssetRecord]:
    """Build an AssetRecord with a derived symbol and name."""
    return _asset


@pytest.fixture
def top_assets() -> list[AssetRecord]:
    """A small market, ordered by market cap like the upstream."""
    return [
        _asset("bitcoin", symbol="btc", name="Bitcoin", current_price=67000.0, market_cap=1.3e12, volume_24h=3.1e10),
        _asset("ethereum", symbol="eth", name="Ethereum", current_price=3500.0, market_cap=4.2e11, volume_24h=1.5e10),
        _asset("tether", symbol="usdt", name="Tether", current_price=1.0, market_cap=1.1e11, volume_24h=5.0e10),
        _asset("solana", symbol="sol", name="Solana", current_price=150.0, market_cap=7.0e10, volume_24h=3.0e9),
        _asset("dogecoin", symbol="doge", name="Dogecoin", current_price=0.15, market_cap=2.2e10, volume_24h=1.2e9),
    ]


@pytest.fixture
def store() -> LocalStore:
    return LocalStore()


@pytest.fixture
def favorites(store: LocalStore) -> Favorites:
    return Favorites(store)


class FakeFeed:
    """Scripted async fetcher for the controller.

    Each call consumes the next scripted result; the last one repeats.
    A result may be a list of records, an exception to raise, or an
    asyncio.Event paired with records as (event, records) to hold the
    call open until the event is set.
    """

    def __init__(self, *results) -> None:
        self._results = list(results)
        self.calls = 0

    def push(self, result) -> None:
        self._results.append(result)

    async def __call__(self) -> list[AssetRecord]:
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, tuple):
            gate, result = result
            await gate.wait()
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def feed_factory() -> Callable[..., FakeFeed]:
    return FakeFeed

