"""HTTP endpoints driving the dashboard session."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .controller import RefreshController
from .table import render_table


class SortRequest(BaseModel):
    key: str


class SearchRequest(BaseModel):
    term: str = ""


def create_dashboard_router(controller: RefreshController) -> APIRouter:
    """Create the dashboard router with a reference to the controller."""
    router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

    def _snapshot() -> dict:
        snapshot = controller.snapshot()
        snapshot["rows"] = render_table(controller.view, controller.favorites.ids)
        return snapshot

    @router.get("")
    async def get_dashboard() -> dict:
        return _snapshot()

    @router.post("/sort")
    async def sort_dashboard(payload: SortRequest) -> dict:
        try:
            config = controller.request_sort(payload.key)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        return config.to_dict()

    @router.put("/search")
    async def search_dashboard(payload: SearchRequest) -> dict:
        controller.set_search_term(payload.term)
        return {"searchTerm": controller.search_term, "matches": len(controller.view)}

    @router.post("/favorites/{asset_id}")
    async def toggle_favorite(asset_id: str) -> dict:
        is_favorite = controller.toggle_favorite(asset_id)
        return {"id": asset_id, "favorite": is_favorite, "favorites": controller.favorites.to_list()}

    @router.post("/refresh")
    async def refresh_dashboard() -> dict:
        await controller.refresh()
        return _snapshot()

    return router
