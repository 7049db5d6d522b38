"""JSON file-backed key-value store with change notification."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from threading import Lock
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[str], None]


class LocalStore:
    """Persistent key-value store for user-local state such as favorites.

    Values are JSON-serialized into a single document at `path`. With
    path=None the store lives only in memory.

    read() and write() never raise: storage errors are logged as warnings
    and degrade to the fallback (read) or a no-op (write).

    Listeners registered with subscribe() are called synchronously, before
    write() returns, with the key that changed. Changes made by other
    processes sharing the same file become visible on sync(), which the
    dashboard calls once per refresh cycle.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._data: dict[str, Any] = {}
        self._listeners: list[Listener] = []
        self._lock = Lock()
        if self._path is not None:
            self._data = self._load_file(self._path)

    def read(self, key: str, fallback: T) -> T:
        """Return the stored value for key, or fallback if absent."""
        with self._lock:
            if key not in self._data:
                return fallback
            try:
                # Round-trip so callers never share mutable state with the store
                return json.loads(json.dumps(self._data[key]))
            except (TypeError, ValueError) as e:
                logger.warning("Error reading store key %r: %s", key, e)
                return fallback

    def write(self, key: str, value: Any) -> None:
        """Persist value under key and notify listeners. No-op on failure."""
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning("Error setting store key %r: %s", key, e)
            return

        with self._lock:
            updated = dict(self._data)
            updated[key] = json.loads(encoded)
            if self._path is not None:
                try:
                    self._dump_file(self._path, updated)
                except OSError as e:
                    logger.warning("Error setting store key %r: %s", key, e)
                    return
            self._data = updated

        self.notify(key)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def notify(self, key: str) -> None:
        """Tell every listener that key changed."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key)
            except Exception:
                logger.exception("Store listener failed for key %r", key)

    def sync(self) -> list[str]:
        """Pick up writes made by other processes. Returns the changed keys."""
        if self._path is None:
            return []
        fresh = self._load_file(self._path)
        with self._lock:
            changed = [
                key
                for key in set(self._data) | set(fresh)
                if self._data.get(key) != fresh.get(key)
            ]
            self._data = fresh
        for key in sorted(changed):
            self.notify(key)
        return changed

    @property
    def path(self) -> Path | None:
        return self._path

    # --- Internal ---

    def _load_file(self, path: Path) -> dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("Store file %s unreadable: %s", path, e)
            return dict(self._data)
        try:
            data = json.loads(text)
        except ValueError as e:
            logger.warning("Store file %s is not valid JSON: %s", path, e)
            return dict(self._data)
        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold an object, ignoring it", path)
            return dict(self._data)
        return data

    def _dump_file(self, path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(path)
