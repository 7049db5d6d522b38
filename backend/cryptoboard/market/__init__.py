"""Market data subsystem for CryptoBoard.

Public API:
    AssetRecord         - Immutable normalized asset snapshot dataclass
    SortConfig          - Active sort column and direction
    MarketDataGateway   - Abstract interface for data providers
    MarketDataError     - Raised by load_assets() when the upstream fails
    ResponseCache       - Time-windowed, single-flight response cache
    create_market_data_gateway - Factory that selects CoinGecko or the simulator
    create_cryptos_router - FastAPI router factory for GET /api/cryptos
"""

from .api import create_cryptos_router
from .cache import ResponseCache
from .factory import create_market_data_gateway
from .interface import MarketDataError, MarketDataGateway
from .models import AssetRecord, ControllerState, SortConfig, SortDirection, SortKey

__all__ = [
    "AssetRecord",
    "ControllerState",
    "SortConfig",
    "SortDirection",
    "SortKey",
    "MarketDataError",
    "MarketDataGateway",
    "ResponseCache",
    "create_market_data_gateway",
    "create_cryptos_router",
]
