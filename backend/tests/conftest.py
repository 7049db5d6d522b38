"""Pytest configuration and fixtures."""

import pytest

_ENV_VARS = ("MARKET_DATA_SOURCE", "COINGECKO_API_KEY", "CRYPTOBOARD_STORE_PATH")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's shell configuration out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
