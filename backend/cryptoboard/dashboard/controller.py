"""Refresh-and-reconcile controller for the dashboard table."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from ..market.constants import FETCH_FAILED_MESSAGE, NO_DATA_MESSAGE, REFRESH_INTERVAL
from ..market.models import AssetRecord, ControllerState, SortConfig, SortKey
from .favorites import Favorites
from .store import LocalStore
from .view import derive_view, next_sort_config

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[AssetRecord]]]


class RefreshController:
    """Owns the authoritative asset list and the table's view state.

    Polls `fetch` every `refresh_interval` seconds and reconciles the result
    with the current list using stale-while-revalidate rules: once data has
    been shown it is never blanked by a failed or empty refresh. A raised
    exception from `fetch` counts as a failed poll.

    The displayed list (`view`) is a pure function of the records, sort
    config, favorites and search term. It is recomputed after every change
    to any of them, and listeners are notified after each recomputation.

    Every poll takes a sequence number. A response older than the last
    applied one is discarded, so overlapping polls (timer tick plus manual
    refresh) can't overwrite fresh data with stale data. After stop(), late
    responses are discarded too.

    Lifecycle:
        controller = RefreshController(gateway.load_assets, favorites)
        await controller.start()
        # ... user sorts, searches, toggles favorites ...
        await controller.stop()
    """

    def __init__(
        self,
        fetch: Fetcher,
        favorites: Favorites,
        *,
        refresh_interval: float = REFRESH_INTERVAL,
        store: LocalStore | None = None,
    ) -> None:
        self._fetch = fetch
        self._favorites = favorites
        self._interval = refresh_interval
        self._store = store

        self._state = ControllerState.INITIAL
        self._records: list[AssetRecord] = []
        self._error: str | None = None
        self._last_updated: float | None = None
        self._sort_config = SortConfig()
        self._search_term = ""
        self._view: list[AssetRecord] = []
        self._version = 0

        self._active = False
        self._task: asyncio.Task | None = None
        self._issued_seq = 0
        self._applied_seq = 0
        self._listeners: list[Callable[[], None]] = []
        self._unsubscribe_favorites: Callable[[], None] | None = None

    # --- Lifecycle ---

    async def start(self) -> None:
        """Load the first data set, then refresh on an interval.

        Calling start() on a running controller is a no-op. A stopped
        controller can be started again.
        """
        if self._active:
            return
        self._active = True
        # Favorite toggles re-derive the view while running
        self._unsubscribe_favorites = self._favorites.subscribe(self._rederive)
        if not self._records:
            self._state = ControllerState.LOADING
            self._rederive()

        # Immediate first poll so the table has data right away
        await self._poll_once()
        if not self._active:
            # Stopped while the first poll was in flight
            return

        self._task = asyncio.create_task(self._poll_loop(), name="dashboard-refresh")
        logger.info("Dashboard refresh started: %.1fs interval", self._interval)

    async def stop(self) -> None:
        """Cancel the refresh task. In-flight polls complete as no-ops."""
        self._active = False
        if self._unsubscribe_favorites is not None:
            self._unsubscribe_favorites()
            self._unsubscribe_favorites = None
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Dashboard refresh stopped")

    async def refresh(self) -> None:
        """Poll now, outside the regular interval."""
        await self._poll_once()

    # --- User actions ---

    def request_sort(self, key: SortKey | str) -> SortConfig:
        """Column-header click. Raises ValueError for an unknown column."""
        if not isinstance(key, SortKey):
            key = SortKey.parse(key)
        self._sort_config = next_sort_config(self._sort_config, key)
        self._rederive()
        return self._sort_config

    def set_search_term(self, term: str) -> None:
        self._search_term = term
        self._rederive()

    def toggle_favorite(self, asset_id: str) -> bool:
        """Flip favorite membership. Returns True if the asset is now a favorite."""
        # Favorites notifies us on change, which re-derives the view
        return self._favorites.toggle(asset_id)

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a listener called after every view recomputation."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Read-only state ---

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def error(self) -> str | None:
        """Banner text. Only ever set while there is nothing to show."""
        return None if self._records else self._error

    @property
    def records(self) -> list[AssetRecord]:
        return list(self._records)

    @property
    def view(self) -> list[AssetRecord]:
        return list(self._view)

    @property
    def sort_config(self) -> SortConfig:
        return self._sort_config

    @property
    def search_term(self) -> str:
        return self._search_term

    @property
    def favorites(self) -> Favorites:
        return self._favorites

    @property
    def last_updated(self) -> float | None:
        """Unix seconds of the last applied non-empty refresh."""
        return self._last_updated

    @property
    def version(self) -> int:
        """Bumped on every view recomputation. Useful for SSE change detection."""
        return self._version

    @property
    def is_running(self) -> bool:
        return self._active

    def snapshot(self) -> dict:
        """Serialize the dashboard for JSON / SSE transmission."""
        return {
            "state": self._state.value,
            "error": self.error,
            "sortConfig": self._sort_config.to_dict(),
            "searchTerm": self._search_term,
            "favorites": self._favorites.to_list(),
            "lastUpdated": self._last_updated,
            "version": self._version,
            "total": len(self._records),
            "assets": [record.to_dict() for record in self._view],
        }

    # --- Internal ---

    async def _poll_loop(self) -> None:
        """Poll on interval. First poll already happened in start()."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._poll_once()
            except Exception:
                logger.exception("Dashboard refresh cycle failed")

    async def _poll_once(self) -> None:
        """Execute one poll cycle: fetch, then reconcile if still current."""
        self._issued_seq += 1
        seq = self._issued_seq

        if self._store is not None:
            # Pick up favorites written by other processes
            self._store.sync()

        try:
            records = await self._fetch()
        except Exception as e:
            logger.warning("Dashboard refresh #%d failed: %s", seq, e)
            if self._accept(seq):
                self._apply_failure(str(e) or FETCH_FAILED_MESSAGE)
            return

        if self._accept(seq):
            self._apply_success(records)

    def _accept(self, seq: int) -> bool:
        """Whether the response of poll `seq` may still be applied."""
        if not self._active:
            logger.debug("Discarding refresh #%d: controller stopped", seq)
            return False
        if seq < self._applied_seq:
            logger.info("Discarding refresh #%d: #%d already applied", seq, self._applied_seq)
            return False
        self._applied_seq = seq
        return True

    def _apply_success(self, records: list[AssetRecord]) -> None:
        if records:
            self._records = list(records)
            self._state = ControllerState.READY
            self._error = None
            self._last_updated = time.time()
            logger.debug("Dashboard refreshed: %d assets", len(records))
        elif self._records:
            # Upstream hiccup; keep showing what we have
            logger.info("Refresh returned no data, keeping %d assets", len(self._records))
            return
        else:
            self._state = ControllerState.EMPTY
            self._error = NO_DATA_MESSAGE
            logger.warning("Refresh returned no data and nothing is loaded")
        self._rederive()

    def _apply_failure(self, message: str) -> None:
        if self._records:
            self._state = ControllerState.REFRESH_FAILED
        else:
            self._state = ControllerState.LOADING
            self._error = message
        self._rederive()

    def _rederive(self) -> None:
        self._view = derive_view(
            self._records,
            self._sort_config,
            self._favorites.ids,
            self._search_term,
        )
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Dashboard listener failed")
