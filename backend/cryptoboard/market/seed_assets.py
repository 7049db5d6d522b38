"""Seed assets and per-asset parameters for the market simulator."""

from typing import Any

# Starting metrics for the simulated top coins (rough levels as of project creation)
SEED_ASSETS: dict[str, dict[str, Any]] = {
    "bitcoin": {"symbol": "btc", "name": "Bitcoin", "price": 67_000.00, "supply": 19_700_000},
    "ethereum": {"symbol": "eth", "name": "Ethereum", "price": 3_500.00, "supply": 120_100_000},
    "tether": {"symbol": "usdt", "name": "Tether", "price": 1.00, "supply": 112_000_000_000},
    "binancecoin": {"symbol": "bnb", "name": "BNB", "price": 590.00, "supply": 147_000_000},
    "solana": {"symbol": "sol", "name": "Solana", "price": 150.00, "supply": 462_000_000},
    "usd-coin": {"symbol": "usdc", "name": "USDC", "price": 1.00, "supply": 33_000_000_000},
    "ripple": {"symbol": "xrp", "name": "XRP", "price": 0.52, "supply": 55_600_000_000},
    "dogecoin": {"symbol": "doge", "name": "Dogecoin", "price": 0.15, "supply": 145_000_000_000},
    "cardano": {"symbol": "ada", "name": "Cardano", "price": 0.45, "supply": 35_500_000_000},
    "tron": {"symbol": "trx", "name": "TRON", "price": 0.12, "supply": 87_000_000_000},
}

# Per-asset GBM parameters
# sigma: annualized volatility (crypto trades 24/7, so years are 365 days)
# mu: annualized drift
# volume_ratio: typical 24h volume as a fraction of market cap
ASSET_PARAMS: dict[str, dict[str, float]] = {
    "bitcoin": {"sigma": 0.55, "mu": 0.10, "volume_ratio": 0.025},
    "ethereum": {"sigma": 0.70, "mu": 0.10, "volume_ratio": 0.04},
    "tether": {"sigma": 0.005, "mu": 0.0, "volume_ratio": 0.45},  # Pegged
    "binancecoin": {"sigma": 0.60, "mu": 0.08, "volume_ratio": 0.02},
    "solana": {"sigma": 0.95, "mu": 0.12, "volume_ratio": 0.05},
    "usd-coin": {"sigma": 0.005, "mu": 0.0, "volume_ratio": 0.20},  # Pegged
    "ripple": {"sigma": 0.85, "mu": 0.05, "volume_ratio": 0.04},
    "dogecoin": {"sigma": 1.10, "mu": 0.05, "volume_ratio": 0.06},
    "cardano": {"sigma": 0.90, "mu": 0.05, "volume_ratio": 0.03},
    "tron": {"sigma": 0.60, "mu": 0.05, "volume_ratio": 0.03},
}

# Default parameters for assets not in the list above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.90, "mu": 0.05, "volume_ratio": 0.03}

# Correlation groups for the simulator's Cholesky decomposition
CORRELATION_GROUPS: dict[str, set[str]] = {
    "majors": {"bitcoin", "ethereum"},
    "stablecoins": {"tether", "usd-coin"},
}

# Correlation coefficients
INTRA_MAJORS_CORR = 0.8  # BTC and ETH move together
MAJOR_ALT_CORR = 0.65  # Alts follow the majors
ALT_ALT_CORR = 0.55  # Alts among themselves
STABLE_CORR = 0.0  # Pegged coins ignore the market
