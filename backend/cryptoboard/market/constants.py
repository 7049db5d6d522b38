"""Fixed constants for the market data subsystem."""

# Dashboard refresh cadence (seconds)
REFRESH_INTERVAL = 30.0

# Server-side cache window for upstream responses (seconds)
CACHE_TTL = 60.0

COINGECKO_MARKETS_URL = "https://api.coingecko.com/api/v3/coins/markets"

# Top 100 by market cap, priced in USD, with 24h change and 7-day sparkline
COINGECKO_QUERY: dict[str, str] = {
    "vs_currency": "usd",
    "order": "market_cap_desc",
    "per_page": "100",
    "page": "1",
    "sparkline": "true",
    "price_change_percentage": "24h",
}

REQUEST_TIMEOUT = 10.0

# ~hourly samples over 7 days
SPARKLINE_MAX_SAMPLES = 168

FAVORITES_KEY = "cryptoboard.favorites"

NO_DATA_MESSAGE = "No cryptocurrency data available at the moment."
FETCH_FAILED_MESSAGE = "Failed to fetch cryptocurrency data."
