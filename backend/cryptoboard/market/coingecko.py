"""CoinGecko API client for real market data."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable, Iterable
from typing import Any

import requests

from .cache import ResponseCache
from .constants import (
    CACHE_TTL,
    COINGECKO_MARKETS_URL,
    COINGECKO_QUERY,
    REQUEST_TIMEOUT,
    SPARKLINE_MAX_SAMPLES,
)
from .interface import MarketDataError, MarketDataGateway
from .models import AssetRecord

logger = logging.getLogger(__name__)

# The query never varies, so neither does the cache key
_CACHE_KEY = tuple(sorted(COINGECKO_QUERY.items()))


def _number(value: Any) -> float:
    """Coerce a nullable upstream number to a finite float, defaulting to 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return float(value)


def _sparkline(raw: Any) -> tuple[float, ...]:
    if not isinstance(raw, dict):
        return ()
    prices = raw.get("price")
    if not isinstance(prices, list):
        return ()
    samples = tuple(
        float(p)
        for p in prices
        if isinstance(p, (int, float)) and not isinstance(p, bool) and math.isfinite(p)
    )
    return samples[-SPARKLINE_MAX_SAMPLES:]


def normalize_asset(raw: Any) -> AssetRecord | None:
    """Map one raw /coins/markets item to an AssetRecord.

    Returns None when the item lacks an id, symbol or name.
    """
    if not isinstance(raw, dict):
        return None

    asset_id = raw.get("id")
    symbol = raw.get("symbol")
    name = raw.get("name")
    if not all(isinstance(v, str) and v for v in (asset_id, symbol, name)):
        return None

    image = raw.get("image")
    return AssetRecord(
        id=asset_id,
        symbol=symbol,
        name=name,
        image_url=image if isinstance(image, str) else "",
        current_price=_number(raw.get("current_price")),
        price_change_24h=_number(raw.get("price_change_percentage_24h")),
        market_cap=_number(raw.get("market_cap")),
        volume_24h=_number(raw.get("total_volume")),
        circulating_supply=_number(raw.get("circulating_supply")),
        sparkline=_sparkline(raw.get("sparkline_in_7d")),
    )


def normalize_assets(items: Iterable[Any]) -> list[AssetRecord]:
    """Normalize a raw payload, dropping items without identity fields."""
    records: list[AssetRecord] = []
    dropped = 0
    for item in items:
        record = normalize_asset(item)
        if record is None:
            dropped += 1
            continue
        records.append(record)
    if dropped:
        logger.warning("Dropped %d malformed market items", dropped)
    return records


class CoinGeckoGateway(MarketDataGateway):
    """MarketDataGateway backed by the CoinGecko /coins/markets endpoint.

    Fetches the top 100 coins by market cap in a single request. Results are
    cached for `cache_ttl` seconds, and concurrent callers inside the window
    share one upstream request. Failures are not cached.

    Rate limits:
      - Public API: roughly 5-15 req/min, so the 60s window keeps well under it
      - Demo key (COINGECKO_API_KEY): ~30 req/min
    """

    def __init__(
        self,
        api_key: str | None = None,
        cache_ttl: float = CACHE_TTL,
        timeout: float = REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api_key = api_key or None
        self._timeout = timeout
        self._cache: ResponseCache[list[AssetRecord]] = ResponseCache(ttl=cache_ttl, clock=clock)
        self._session: requests.Session | None = None

    async def load_assets(self) -> list[AssetRecord]:
        records = await self._cache.get_or_load(_CACHE_KEY, self._fetch_fresh)
        # Hand out a copy so callers can't mutate the cached list
        return list(records)

    async def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        self._cache.invalidate()
        logger.info("CoinGecko gateway closed")

    # --- Internal ---

    async def _fetch_fresh(self) -> list[AssetRecord]:
        """Execute one upstream request and normalize the payload."""
        logger.info("Fetching fresh data from CoinGecko")
        try:
            # requests is synchronous; run it in a thread to keep the loop free
            payload = await asyncio.to_thread(self._fetch_raw)
        except (requests.RequestException, ValueError) as e:
            # Network errors, timeouts and JSON decode errors all land here
            logger.error("CoinGecko request failed: %s", e)
            raise MarketDataError(f"CoinGecko request failed: {e}") from e

        if not isinstance(payload, list):
            logger.error("CoinGecko returned a %s, expected a list", type(payload).__name__)
            raise MarketDataError("CoinGecko returned a malformed payload")

        records = normalize_assets(payload)
        logger.debug("CoinGecko fetch: %d/%d items usable", len(records), len(payload))
        return records

    def _fetch_raw(self) -> Any:
        """Synchronous GET against the markets endpoint. Runs in a thread.

        Returns the decoded JSON body. Raises MarketDataError for a
        non-success status.
        """
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-demo-api-key"] = self._api_key

        response = self._get_session().get(
            COINGECKO_MARKETS_URL,
            params=COINGECKO_QUERY,
            headers=headers,
            timeout=self._timeout,
        )
        if not response.ok:
            logger.error(
                "CoinGecko API error %d: %s. Body: %s",
                response.status_code,
                response.reason,
                response.text[:500],
            )
            raise MarketDataError(f"CoinGecko API error {response.status_code}")
        return response.json()

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session
