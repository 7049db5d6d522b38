"""Pure view derivation: sort, favorites-first partition, search filter."""

from __future__ import annotations

import locale
from collections.abc import Container, Sequence

from ..market.models import AssetRecord, SortConfig, SortDirection, SortKey

# Columns where bigger is the interesting end
_DESCENDING_FIRST = frozenset({SortKey.MARKET_CAP, SortKey.VOLUME_24H})


def _string_key(value: str) -> str:
    # Case-folded so "bnb" and "BNB" sort together. Collation follows
    # LC_COLLATE (set by create_app); under the C locale this is code-point order.
    return locale.strxfrm(value.casefold())


def sort_assets(records: Sequence[AssetRecord], config: SortConfig) -> list[AssetRecord]:
    """Stable sort by the configured key. key=None keeps the input order.

    Python's sort is stable in both directions, so ties keep their input
    order even when descending.
    """
    if config.key is None:
        return list(records)

    attr = config.key.value
    reverse = config.direction is SortDirection.DESCENDING
    if config.key.is_numeric:
        return sorted(records, key=lambda r: getattr(r, attr), reverse=reverse)
    return sorted(records, key=lambda r: _string_key(getattr(r, attr)), reverse=reverse)


def partition_favorites(
    records: Sequence[AssetRecord], favorites: Container[str]
) -> list[AssetRecord]:
    """Move favorited records ahead of the rest, keeping each group's order."""
    favored = [r for r in records if r.id in favorites]
    rest = [r for r in records if r.id not in favorites]
    return favored + rest


def filter_assets(records: Sequence[AssetRecord], term: str) -> list[AssetRecord]:
    """Case-insensitive substring match on name or symbol. '' matches all."""
    needle = term.casefold()
    if not needle:
        return list(records)
    return [r for r in records if needle in r.name.casefold() or needle in r.symbol.casefold()]


def derive_view(
    records: Sequence[AssetRecord],
    config: SortConfig,
    favorites: Container[str],
    term: str,
) -> list[AssetRecord]:
    """The displayed list, recomputed from scratch from its four inputs."""
    return filter_assets(partition_favorites(sort_assets(records, config), favorites), term)


def next_sort_config(current: SortConfig, key: SortKey) -> SortConfig:
    """Sort config after clicking the header of `key`.

    Clicking the active column flips its direction. A new column starts
    descending for market cap and volume, ascending otherwise.
    """
    if current.key is key:
        return SortConfig(key=key, direction=current.direction.toggled())
    if key in _DESCENDING_FIRST:
        return SortConfig(key=key, direction=SortDirection.DESCENDING)
    return SortConfig(key=key, direction=SortDirection.ASCENDING)
