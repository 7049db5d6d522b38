"""User favorites, persisted through the LocalStore."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..market.constants import FAVORITES_KEY
from .store import LocalStore

logger = logging.getLogger(__name__)


class Favorites:
    """Set of favorited asset ids.

    Loaded once from the store on construction, then kept in sync with it:
    every toggle is persisted immediately, and writes to the same key from
    other consumers of the store are picked up through its notifications.
    Ids are independent of the loaded asset list.
    """

    def __init__(self, store: LocalStore, key: str = FAVORITES_KEY) -> None:
        self._store = store
        self._key = key
        self._ids: list[str] = self._load()
        self._listeners: list[Callable[[], None]] = []
        self._unsubscribe = store.subscribe(self._on_store_change)

    def toggle(self, asset_id: str) -> bool:
        """Add asset_id if absent, remove it if present. Returns the new membership."""
        if asset_id in self._ids:
            updated = [i for i in self._ids if i != asset_id]
        else:
            updated = [*self._ids, asset_id]
        # The store notifies us synchronously, which reloads self._ids
        self._store.write(self._key, updated)
        return asset_id in self._ids

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a listener called after every change. Returns an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop following the store."""
        self._unsubscribe()
        self._listeners.clear()

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def to_list(self) -> list[str]:
        """Ids in the order they were favorited."""
        return list(self._ids)

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    # --- Internal ---

    def _load(self) -> list[str]:
        value = self._store.read(self._key, [])
        if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
            logger.warning("Ignoring malformed favorites under %r: %r", self._key, value)
            return []
        # Drop duplicates, keep first-favorited order
        return list(dict.fromkeys(value))

    def _on_store_change(self, key: str) -> None:
        if key != self._key:
            return
        loaded = self._load()
        if loaded == self._ids:
            return
        self._ids = loaded
        for listener in list(self._listeners):
            listener()
