"""Fixtures for market data tests."""

import pytest


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def raw_bitcoin() -> dict:
    """A /coins/markets item as CoinGecko returns it."""
    return {
        "id": "bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "image": "https://example.com/btc.png",
        "current_price": 67000.5,
        "market_cap": 1_320_000_000_000,
        "total_volume": 31_000_000_000,
        "price_change_percentage_24h": -1.25,
        "circulating_supply": 19_700_000,
        "sparkline_in_7d": {"price": [66000.0, 66500.0, 67000.5]},
    }
