"""Tests for RefreshController."""

import asyncio
from unittest.mock import patch

import pytest
import requests

from cryptoboard.dashboard.controller import RefreshController
from cryptoboard.dashboard.favorites import Favorites
from cryptoboard.dashboard.store import LocalStore
from cryptoboard.market.coingecko import CoinGeckoGateway
from cryptoboard.market.constants import NO_DATA_MESSAGE
from cryptoboard.market.models import ControllerState, SortConfig, SortDirection, SortKey


def _ids(records):
    return [r.id for r in records]


async def settle():
    """Let pending tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
class TestControllerLifecycle:
    """State machine and polling behavior."""

    async def test_initial_state(self, feed_factory, favorites):
        """Test the state before start()."""
        controller = RefreshController(feed_factory([]), favorites)
        assert controller.state is ControllerState.INITIAL
        assert controller.view == []
        assert controller.error is None

    async def test_start_loads_data(self, feed_factory, favorites, top_assets):
        """Test that start() does an immediate poll and becomes ready."""
        feed = feed_factory(top_assets)
        controller = RefreshController(feed, favorites, refresh_interval=60.0)

        await controller.start()

        assert feed.calls == 1
        assert controller.state is ControllerState.READY
        assert controller.records == top_assets
        assert controller.last_updated is not None
        assert controller.is_running

        await controller.stop()

    async def test_loading_while_first_poll_in_flight(self, feed_factory, favorites, top_assets):
        """Test that the controller is loading until the first response lands."""
        gate = asyncio.Event()
        controller = RefreshController(feed_factory((gate, top_assets)), favorites, refresh_interval=60.0)

        start = asyncio.create_task(controller.start())
        await settle()
        assert controller.state is ControllerState.LOADING

        gate.set()
        await start
        assert controller.state is ControllerState.READY

        await controller.stop()

    async def test_start_twice_is_noop(self, feed_factory, favorites, top_assets):
        """Test that a second start() doesn't poll again."""
        feed = feed_factory(top_assets)
        controller = RefreshController(feed, favorites, refresh_interval=60.0)

        await controller.start()
        await controller.start()

        assert feed.calls == 1
        await controller.stop()

    async def test_first_poll_empty(self, feed_factory, favorites):
        """Test a successful but empty first response."""
        controller = RefreshController(feed_factory([]), favorites, refresh_interval=60.0)

        await controller.start()

        assert controller.state is ControllerState.EMPTY
        assert controller.error == NO_DATA_MESSAGE
        await controller.stop()

    async def test_first_poll_fails(self, feed_factory, favorites):
        """Test that a failure with no data shows the error banner."""
        controller = RefreshController(
            feed_factory(ConnectionError("network down")), favorites, refresh_interval=60.0
        )

        await controller.start()

        assert controller.state is ControllerState.LOADING
        assert controller.error == "network down"
        assert controller.view == []
        await controller.stop()

    async def test_refresh_failure_keeps_prior_data(self, feed_factory, favorites, make_asset):
        """Test stale-while-revalidate: a failed refresh keeps the 50 shown records."""
        records = [make_asset(f"coin-{i}", market_cap=float(1000 - i)) for i in range(50)]
        feed = feed_factory(records, ConnectionError("network down"))
        controller = RefreshController(feed, favorites, refresh_interval=60.0)
        await controller.start()
        view_before = controller.view

        await controller.refresh()

        assert controller.state is ControllerState.REFRESH_FAILED
        assert controller.view == view_before
        assert len(controller.view) == 50
        assert controller.error is None
        await controller.stop()

    async def test_empty_refresh_keeps_prior_data(self, feed_factory, favorites, top_assets):
        """Test that an empty refresh keeps data and doesn't flag an error."""
        feed = feed_factory(top_assets, [])
        controller = RefreshController(feed, favorites, refresh_interval=60.0)
        await controller.start()
        version = controller.version

        await controller.refresh()

        assert controller.state is ControllerState.READY
        assert controller.records == top_assets
        assert controller.error is None
        assert controller.version == version
        await controller.stop()

    async def test_recovers_after_failure(self, feed_factory, favorites, top_assets):
        """Test refresh_failed → ready on the next success."""
        fresh = top_assets[:2]
        feed = feed_factory(top_assets, RuntimeError("503"), fresh)
        controller = RefreshController(feed, favorites, refresh_interval=60.0)
        await controller.start()

        await controller.refresh()
        assert controller.state is ControllerState.REFRESH_FAILED

        await controller.refresh()
        assert controller.state is ControllerState.READY
        assert controller.records == fresh
        await controller.stop()

    async def test_success_clears_banner(self, feed_factory, favorites, top_assets):
        """Test that the error banner goes away once data arrives."""
        feed = feed_factory(ConnectionError("down"), top_assets)
        controller = RefreshController(feed, favorites, refresh_interval=60.0)
        await controller.start()
        assert controller.error == "down"

        await controller.refresh()

        assert controller.error is None
        assert controller.state is ControllerState.READY
        await controller.stop()

    async def test_timer_polls_on_interval(self, feed_factory, favorites, top_assets):
        """Test that the background task keeps polling."""
        feed = feed_factory(top_assets)
        controller = RefreshController(feed, favorites, refresh_interval=0.01)

        await controller.start()
        await asyncio.sleep(0.1)

        assert feed.calls >= 3
        await controller.stop()

    async def test_poll_loop_survives_failures(self, feed_factory, favorites, top_assets):
        """Test that repeated failures don't kill the refresh task."""
        feed = feed_factory(top_assets, RuntimeError("boom"))
        controller = RefreshController(feed, favorites, refresh_interval=0.01)

        await controller.start()
        await asyncio.sleep(0.05)

        assert controller._task is not None
        assert not controller._task.done()
        assert controller.state is ControllerState.REFRESH_FAILED
        await controller.stop()

    async def test_stop_cancels_task(self, feed_factory, favorites, top_assets):
        """Test that stop() cancels the timer and is idempotent."""
        controller = RefreshController(feed_factory(top_assets), favorites, refresh_interval=10.0)
        await controller.start()
        assert controller._task is not None

        await controller.stop()
        await controller.stop()  # Should not raise

        assert controller._task is None
        assert not controller.is_running

    async def test_restart_keeps_favorites_live(self, feed_factory, favorites, top_assets):
        """Test that favorite toggles still reorder the view after stop() and start()."""
        controller = RefreshController(feed_factory(top_assets), favorites, refresh_interval=60.0)
        await controller.start()
        await controller.stop()
        await controller.start()

        controller.toggle_favorite("dogecoin")

        assert controller.view[0].id == "dogecoin"
        await controller.stop()

    async def test_stopped_controller_ignores_favorites(self, feed_factory, favorites, top_assets):
        """Test that a stopped controller no longer re-derives on toggles."""
        controller = RefreshController(feed_factory(top_assets), favorites, refresh_interval=60.0)
        await controller.start()
        await controller.stop()
        version = controller.version

        controller.toggle_favorite("dogecoin")

        assert controller.version == version
        assert "dogecoin" in favorites

    async def test_in_flight_poll_ignored_after_stop(self, feed_factory, favorites, top_assets):
        """Test that a response landing after stop() changes nothing."""
        gate = asyncio.Event()
        feed = feed_factory(top_assets, (gate, top_assets[:1]))
        controller = RefreshController(feed, favorites, refresh_interval=60.0)
        await controller.start()
        version = controller.version

        pending = asyncio.create_task(controller.refresh())
        await settle()
        await controller.stop()
        gate.set()
        await pending

        assert controller.records == top_assets
        assert controller.version == version

    async def test_stale_response_discarded(self, feed_factory, favorites, top_assets):
        """Test that an older poll finishing last can't overwrite a newer one."""
        gate = asyncio.Event()
        stale, fresh = top_assets[:1], top_assets[:3]
        feed = feed_factory(top_assets, (gate, stale), fresh)
        controller = RefreshController(feed, favorites, refresh_interval=60.0)
        await controller.start()

        slow = asyncio.create_task(controller.refresh())
        await settle()
        await controller.refresh()  # Issued later, completes first
        assert controller.records == fresh

        gate.set()
        await slow

        assert controller.records == fresh
        await controller.stop()

    async def test_refresh_before_start_is_discarded(self, feed_factory, favorites, top_assets):
        """Test that polls on an inactive controller don't apply."""
        controller = RefreshController(feed_factory(top_assets), favorites)
        await controller.refresh()
        assert controller.state is ControllerState.INITIAL
        assert controller.records == []


@pytest.mark.asyncio
class TestControllerViewState:
    """Sort, search and favorites interplay."""

    async def _ready(self, feed_factory, favorites, records):
        controller = RefreshController(feed_factory(records), favorites, refresh_interval=60.0)
        await controller.start()
        return controller

    async def test_default_view_market_cap_desc(self, feed_factory, favorites, top_assets):
        """Test the initial sort."""
        controller = await self._ready(feed_factory, favorites, top_assets[::-1])
        assert controller.sort_config == SortConfig(SortKey.MARKET_CAP, SortDirection.DESCENDING)
        assert _ids(controller.view) == ["bitcoin", "ethereum", "tether", "solana", "dogecoin"]
        await controller.stop()

    async def test_click_active_column_toggles(self, feed_factory, favorites, top_assets):
        """Test clicking Market Cap while sorted by it."""
        controller = await self._ready(feed_factory, favorites, top_assets)

        config = controller.request_sort("marketCap")

        assert config == SortConfig(SortKey.MARKET_CAP, SortDirection.ASCENDING)
        assert controller.view[0].id == "dogecoin"
        await controller.stop()

    async def test_click_name_column(self, feed_factory, favorites, top_assets):
        """Test clicking Name while sorted by market cap."""
        controller = await self._ready(feed_factory, favorites, top_assets)

        config = controller.request_sort(SortKey.NAME)

        assert config == SortConfig(SortKey.NAME, SortDirection.ASCENDING)
        assert _ids(controller.view) == ["bitcoin", "dogecoin", "ethereum", "solana", "tether"]
        await controller.stop()

    async def test_unknown_column_raises(self, feed_factory, favorites, top_assets):
        """Test that an unknown column is rejected without changing the sort."""
        controller = await self._ready(feed_factory, favorites, top_assets)

        with pytest.raises(ValueError):
            controller.request_sort("image")

        assert controller.sort_config == SortConfig()
        await controller.stop()

    async def test_search_filters_view(self, feed_factory, favorites, top_assets):
        """Test that search narrows the view but not the records."""
        controller = await self._ready(feed_factory, favorites, top_assets)

        controller.set_search_term("COIN")

        assert _ids(controller.view) == ["bitcoin", "dogecoin"]
        assert len(controller.records) == 5

        controller.set_search_term("")
        assert len(controller.view) == 5
        await controller.stop()

    async def test_favorites_float_to_top(self, feed_factory, favorites, top_assets):
        """Test that toggling a favorite moves it first, keeping sort and search."""
        controller = await self._ready(feed_factory, favorites, top_assets)
        controller.request_sort("name")
        controller.set_search_term("o")

        assert controller.toggle_favorite("solana") is True

        assert controller.view[0].id == "solana"
        assert controller.sort_config == SortConfig(SortKey.NAME, SortDirection.ASCENDING)
        assert controller.search_term == "o"
        await controller.stop()

    async def test_favorite_toggle_twice_restores_view(self, feed_factory, favorites, top_assets):
        """Test that double-toggling a favorite restores the original view."""
        controller = await self._ready(feed_factory, favorites, top_assets)
        before = controller.view

        controller.toggle_favorite("dogecoin")
        controller.toggle_favorite("dogecoin")

        assert controller.view == before
        await controller.stop()

    async def test_new_data_keeps_view_state(self, feed_factory, favorites, top_assets):
        """Test that a refresh re-derives the view with the current settings."""
        feed = feed_factory(top_assets[:3], top_assets)
        controller = RefreshController(feed, favorites, refresh_interval=60.0)
        await controller.start()
        controller.toggle_favorite("dogecoin")  # Not loaded yet
        controller.set_search_term("o")

        await controller.refresh()

        assert controller.view[0].id == "dogecoin"
        assert all("o" in r.name.lower() or "o" in r.symbol for r in controller.view)
        await controller.stop()

    async def test_listeners_and_version(self, feed_factory, favorites, top_assets):
        """Test that every re-derivation bumps the version and notifies."""
        controller = await self._ready(feed_factory, favorites, top_assets)
        calls = []
        unsubscribe = controller.subscribe(lambda: calls.append(controller.version))
        version = controller.version

        controller.set_search_term("b")
        controller.request_sort("volume24h")
        controller.toggle_favorite("bitcoin")

        assert calls == [version + 1, version + 2, version + 3]
        unsubscribe()
        controller.set_search_term("")
        assert len(calls) == 3
        await controller.stop()

    async def test_favorites_from_other_process(self, tmp_path, feed_factory, top_assets):
        """Test that a poll cycle picks up favorites written elsewhere."""
        path = tmp_path / "store.json"
        store = LocalStore(path)
        controller = RefreshController(
            feed_factory(top_assets), Favorites(store), refresh_interval=60.0, store=store
        )
        await controller.start()

        Favorites(LocalStore(path)).toggle("tether")
        await controller.refresh()

        assert controller.view[0].id == "tether"
        await controller.stop()

    async def test_snapshot(self, feed_factory, favorites, top_assets):
        """Test the JSON-ready snapshot."""
        controller = await self._ready(feed_factory, favorites, top_assets)
        controller.toggle_favorite("solana")
        controller.set_search_term("so")

        snapshot = controller.snapshot()

        assert snapshot["state"] == "ready"
        assert snapshot["error"] is None
        assert snapshot["sortConfig"] == {"key": "marketCap", "direction": "descending"}
        assert snapshot["searchTerm"] == "so"
        assert snapshot["favorites"] == ["solana"]
        assert snapshot["total"] == 5
        assert [a["id"] for a in snapshot["assets"]] == ["solana"]
        assert snapshot["version"] == controller.version
        await controller.stop()


def _raw_coin(coin_id: str, symbol: str, price: float, market_cap: float) -> dict:
    return {
        "id": coin_id,
        "symbol": symbol,
        "name": coin_id.title(),
        "image": f"https://example.com/{symbol}.png",
        "current_price": price,
        "market_cap": market_cap,
        "total_volume": market_cap / 20,
        "price_change_percentage_24h": 1.5,
        "circulating_supply": market_cap / price,
        "sparkline_in_7d": {"price": [price * 0.98, price]},
    }


@pytest.mark.asyncio
class TestControllerWithCoinGecko:
    """The controller fed by a real CoinGeckoGateway with a mocked HTTP layer."""

    @pytest.fixture
    def payload(self):
        return [
            _raw_coin("bitcoin", "btc", 67000.0, 1.3e12),
            _raw_coin("ethereum", "eth", 3500.0, 4.2e11),
            _raw_coin("solana", "sol", 150.0, 7.0e10),
        ]

    @pytest.fixture
    def gateway(self):
        # No caching window, so every poll reaches the (mocked) upstream
        return CoinGeckoGateway(cache_ttl=0)

    async def test_network_failure_marks_refresh_failed(self, gateway, favorites, payload):
        """Test that an upstream outage after a good poll keeps data and flags it."""
        controller = RefreshController(gateway.load_assets, favorites, refresh_interval=60.0)

        with patch.object(gateway, "_fetch_raw", side_effect=[payload, requests.ConnectionError("down")]):
            await controller.start()
            assert controller.state is ControllerState.READY

            await controller.refresh()

        assert controller.state is ControllerState.REFRESH_FAILED
        assert _ids(controller.records) == ["bitcoin", "ethereum", "solana"]
        assert controller.error is None
        assert controller.snapshot()["state"] == "refresh_failed"
        await controller.stop()

    async def test_error_status_without_data_shows_banner(self, gateway, favorites):
        """Test that a failing first poll leaves the table loading with a banner."""
        controller = RefreshController(gateway.load_assets, favorites, refresh_interval=60.0)
        with patch.object(gateway, "_get_session") as get_session:
            response = get_session.return_value.get.return_value
            response.ok = False
            response.status_code = 429
            response.reason = "Too Many Requests"
            response.text = "rate limited"

            await controller.start()

        assert controller.state is ControllerState.LOADING
        assert "429" in controller.error
        await controller.stop()

    async def test_empty_upstream_list_keeps_data(self, gateway, favorites, payload):
        """Test that a genuinely empty market list is not treated as a failure."""
        controller = RefreshController(gateway.load_assets, favorites, refresh_interval=60.0)

        with patch.object(gateway, "_fetch_raw", side_effect=[payload, []]):
            await controller.start()
            await controller.refresh()

        assert controller.state is ControllerState.READY
        assert len(controller.records) == 3
        await controller.stop()

    async def test_recovers_on_next_good_poll(self, gateway, favorites, payload):
        """Test that a failed refresh is followed by a normal ready state."""
        controller = RefreshController(gateway.load_assets, favorites, refresh_interval=60.0)

        with patch.object(
            gateway, "_fetch_raw", side_effect=[payload, requests.Timeout("slow"), payload[:2]]
        ):
            await controller.start()
            await controller.refresh()
            assert controller.state is ControllerState.REFRESH_FAILED
            await controller.refresh()

        assert controller.state is ControllerState.READY
        assert _ids(controller.records) == ["bitcoin", "ethereum"]
        await controller.stop()
