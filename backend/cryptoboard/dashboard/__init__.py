"""Dashboard session for CryptoBoard.

Public API:
    LocalStore          - JSON file-backed key-value store with notifications
    Favorites           - Persisted set of favorited asset ids
    RefreshController   - Polling, reconciliation and derived table view
    derive_view         - Pure sort / favorites-first / search pipeline
    create_dashboard_router - FastAPI router factory for the dashboard API
    create_stream_router - FastAPI router factory for the SSE endpoint
"""

from .api import create_dashboard_router
from .controller import RefreshController
from .favorites import Favorites
from .store import LocalStore
from .stream import create_stream_router
from .view import derive_view

__all__ = [
    "LocalStore",
    "Favorites",
    "RefreshController",
    "derive_view",
    "create_dashboard_router",
    "create_stream_router",
]
