"""Abstract interface for market data gateways."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .models import AssetRecord

logger = logging.getLogger(__name__)


class MarketDataError(Exception):
    """The upstream could not produce an asset list (network, status or payload)."""


class MarketDataGateway(ABC):
    """Contract for market data providers.

    A gateway turns one upstream request into a list of normalized
    AssetRecords. `load_assets()` raises MarketDataError when the upstream
    fails, so pollers can tell a failure apart from a genuinely empty list.
    `fetch_assets()` is the forgiving variant that degrades every failure
    to an empty list.

    Lifecycle:
        gateway = create_market_data_gateway()
        records = await gateway.load_assets()
        # ... app runs, load_assets() called on every refresh ...
        await gateway.close()
    """

    @abstractmethod
    async def load_assets(self) -> list[AssetRecord]:
        """Return the current asset list, ordered as the upstream ranks it.

        Raises MarketDataError on network errors, non-success status codes,
        or malformed payloads.
        """

    async def fetch_assets(self) -> list[AssetRecord]:
        """Like load_assets(), but never raises. Failures give []."""
        try:
            return await self.load_assets()
        except MarketDataError as e:
            logger.warning("Market data unavailable: %s", e)
        except Exception:
            logger.exception("Market data fetch failed unexpectedly")
        return []

    @abstractmethod
    async def close(self) -> None:
        """Release any held resources. Safe to call multiple times."""
