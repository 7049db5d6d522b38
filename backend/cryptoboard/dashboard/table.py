"""Stateless rendering of the derived view into display-ready rows."""

from __future__ import annotations

import math
from collections.abc import Container, Sequence

from ..market.models import AssetRecord


def format_currency(value: float | None) -> str:
    """USD price with cents; sub-cent prices keep 2-4 significant digits."""
    if value is None:
        return "N/A"
    if 0 < value < 0.01:
        return f"${_significant(value, 2, 4)}"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _significant(value: float, min_digits: int, max_digits: int) -> str:
    # Fixed-point text of a positive value below 1 with min..max significant digits
    rounded = float(f"{value:.{max_digits - 1}e}")
    exponent = math.floor(math.log10(rounded))
    whole, frac = f"{rounded:.{max_digits - 1 - exponent}f}".split(".")
    frac = frac.rstrip("0").ljust(min_digits - 1 - exponent, "0")
    return f"{whole}.{frac}"


def format_large_number(value: float | None) -> str:
    """Compact USD amount: $1.23T, $4.56B, $7.89M, else whole dollars."""
    if value is None:
        return "N/A"
    if value >= 1e12:
        return f"${value / 1e12:.2f}T"
    if value >= 1e9:
        return f"${value / 1e9:.2f}B"
    if value >= 1e6:
        return f"${value / 1e6:.2f}M"
    return f"${value:,.0f}"


def format_percentage(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2f}%"


def render_row(record: AssetRecord, is_favorite: bool) -> dict:
    return {
        "id": record.id,
        "favorite": is_favorite,
        "name": record.name,
        "symbol": record.symbol.upper(),
        "image": record.image_url,
        "price": format_currency(record.current_price),
        "change24h": format_percentage(record.price_change_24h),
        "changeDirection": "up" if record.price_change_24h >= 0 else "down",
        "marketCap": format_large_number(record.market_cap),
        "volume24h": format_large_number(record.volume_24h),
        "circulatingSupply": f"{record.circulating_supply:,.0f} {record.symbol.upper()}",
        "sparkline": list(record.sparkline),
        "trend": record.trend,
    }


def render_table(view: Sequence[AssetRecord], favorites: Container[str]) -> list[dict]:
    """Rows in view order, ready for the table markup."""
    return [render_row(record, record.id in favorites) for record in view]
