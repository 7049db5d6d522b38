"""Factory for creating market data gateways."""

from __future__ import annotations

import logging
import os

from .interface import MarketDataGateway

logger = logging.getLogger(__name__)


def create_market_data_gateway() -> MarketDataGateway:
    """Create the appropriate market data gateway based on environment variables.

    - MARKET_DATA_SOURCE=simulator → SimulatorGateway (GBM simulation, offline)
    - Otherwise → CoinGeckoGateway (real market data), sending
      COINGECKO_API_KEY as a demo key when set and non-empty
    """
    source = os.environ.get("MARKET_DATA_SOURCE", "").strip().lower()

    if source == "simulator":
        from .simulator import SimulatorGateway

        logger.info("Market data source: GBM Simulator")
        return SimulatorGateway()

    from .coingecko import CoinGeckoGateway

    api_key = os.environ.get("COINGECKO_API_KEY", "").strip()
    logger.info("Market data source: CoinGecko API%s", " (demo key)" if api_key else "")
    return CoinGeckoGateway(api_key=api_key or None)
