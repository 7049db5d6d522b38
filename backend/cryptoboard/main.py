"""FastAPI application wiring for CryptoBoard."""

from __future__ import annotations

import locale
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from .dashboard import Favorites, LocalStore, RefreshController, create_dashboard_router, create_stream_router
from .market import MarketDataGateway, create_cryptos_router, create_market_data_gateway
from .market.constants import REFRESH_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path("data") / "cryptoboard.json"


def _configure_collation() -> None:
    """Sort names by the environment's collation rules instead of the C locale."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("Unsupported locale, names sort by code point: %s", e)


def create_app(
    gateway: MarketDataGateway | None = None,
    store: LocalStore | None = None,
    refresh_interval: float = REFRESH_INTERVAL,
) -> FastAPI:
    """Build the app. Anything not injected is created from the environment.

    - CRYPTOBOARD_STORE_PATH: favorites file (default data/cryptoboard.json)
    - MARKET_DATA_SOURCE / COINGECKO_API_KEY: see create_market_data_gateway
    - LC_ALL / LC_COLLATE / LANG: collation used when sorting by name
    """
    _configure_collation()
    if gateway is None:
        gateway = create_market_data_gateway()
    if store is None:
        store_path = os.environ.get("CRYPTOBOARD_STORE_PATH", "").strip() or DEFAULT_STORE_PATH
        store = LocalStore(store_path)
        logger.info("Favorites store: %s", store_path)

    favorites = Favorites(store)
    controller = RefreshController(
        gateway.load_assets,
        favorites,
        refresh_interval=refresh_interval,
        store=store,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await controller.start()
        try:
            yield
        finally:
            await controller.stop()
            favorites.close()
            await gateway.close()

    app = FastAPI(title="CryptoBoard", lifespan=lifespan)
    app.state.controller = controller
    app.state.gateway = gateway
    app.include_router(create_cryptos_router(gateway))
    app.include_router(create_dashboard_router(controller))
    app.include_router(create_stream_router(controller))
    return app
