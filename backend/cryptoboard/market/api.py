"""HTTP endpoint serving normalized market data."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .constants import FETCH_FAILED_MESSAGE
from .interface import MarketDataGateway

logger = logging.getLogger(__name__)


def create_cryptos_router(gateway: MarketDataGateway) -> APIRouter:
    """Create the /api/cryptos router backed by the given gateway."""
    router = APIRouter(prefix="/api", tags=["market"])

    @router.get("/cryptos")
    async def get_cryptos() -> JSONResponse:
        """Top assets by market cap as normalized records.

        The gateway caches upstream responses for 60s, so hitting this on
        every dashboard refresh is cheap.
        """
        try:
            records = await gateway.fetch_assets()
        except Exception:
            logger.exception("/api/cryptos failed")
            return JSONResponse({"message": FETCH_FAILED_MESSAGE}, status_code=500)

        if not records:
            logger.warning("/api/cryptos received empty data from the gateway")
        return JSONResponse([record.to_dict() for record in records])

    return router
