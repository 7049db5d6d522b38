"""SSE streaming endpoint for live dashboard updates."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .controller import RefreshController

logger = logging.getLogger(__name__)


def create_stream_router(controller: RefreshController) -> APIRouter:
    """Create the SSE streaming router bound to one dashboard controller."""
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/dashboard")
    async def stream_dashboard(request: Request) -> StreamingResponse:
        """Push the dashboard snapshot every time it is recomputed.

        A refresh, sort, search or favorite toggle each produce one event:

            data: {"state": "ready", "sortConfig": {...}, "assets": [...], ...}

        The leading retry directive makes EventSource reconnect after 1s.
        """
        return StreamingResponse(
            _generate_events(controller, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    controller: RefreshController,
    request: Request,
    interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Yield SSE-formatted snapshots as the controller changes.

    Wakes on controller notifications, and at least every `interval`
    seconds to notice a disconnected client.
    """
    yield "retry: 1000\n\n"

    changed = asyncio.Event()
    unsubscribe = controller.subscribe(changed.set)
    sent_version = -1
    peer = request.client.host if request.client else "unknown"
    logger.info("Dashboard stream opened: %s", peer)

    try:
        while not await request.is_disconnected():
            if controller.version != sent_version:
                sent_version = controller.version
                yield f"data: {json.dumps(controller.snapshot())}\n\n"

            changed.clear()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(changed.wait(), timeout=interval)
        logger.info("Dashboard stream closed by client: %s", peer)
    except asyncio.CancelledError:
        logger.info("Dashboard stream cancelled: %s", peer)
    finally:
        unsubscribe()
