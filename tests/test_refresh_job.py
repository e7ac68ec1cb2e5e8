"""Tests for the refresh controller: stale discard, re-entrancy and failure handling."""

import asyncio
import contextlib
import tempfile
import unittest
from collections import Counter
from pathlib import Path

from dashboard import config as cfg
from dashboard.domain.models import (
    AnalyticsSnapshot,
    Diversification,
    HeatEntry,
    HeatLevel,
    Holder,
    Holding,
    MarketInsight,
    MarketMovers,
    MarketOverview,
    PortfolioPerformance,
    Stock,
)
from dashboard.errors import HttpError
from dashboard.http_client import FetchResult
from dashboard.jobs.refresh_job import RefreshController, RefreshState
from dashboard.storage.alerts_repo import AlertsRepo
from dashboard.storage.local_store import LocalStore
from dashboard.storage.watchlist_repo import WatchlistRepo
from dashboard.store import StateStore
from dashboard.ui.binding import DashboardView


class FakeBackend:
    """In-memory backend; holdings calls can be held open per holder."""

    def __init__(self):
        self.holders = [Holder(id="1", name="Alice"), Holder(id="2", name="Bob")]
        self.stocks = [
            Stock(symbol="AAPL", sector="Technology", current_price=160.0, volatility=0.2, confidence_score=85),
            Stock(symbol="MSFT", sector="Software", current_price=275.0, volatility=0.3, confidence_score=70),
        ]
        self.holdings = {
            "1": [Holding(stock_symbol="AAPL", quantity=10, avg_price=150.0)],
            "2": [Holding(stock_symbol="MSFT", quantity=2, avg_price=250.0)],
        }
        self.fail = set()
        self.gates = {}
        self.entered = asyncio.Event()
        self.calls = Counter()
        self.history_days = []
        self.realtime_heat = [HeatEntry(symbol="AAPL", heat_score=90.0), HeatEntry(symbol="MSFT", heat_score=20.0)]

    async def _result(self, name, data):
        self.calls[name] += 1
        if name in self.fail:
            return FetchResult.fail(f"/{name}", HttpError(500, "boom", path=f"/{name}"))
        return FetchResult.ok(f"/{name}", data)

    async def get_holders(self):
        return await self._result("holders", list(self.holders))

    async def get_holdings(self, holder_id):
        gate = self.gates.get(holder_id)
        if gate is not None:
            self.entered.set()
            await gate.wait()
        return await self._result("holdings", list(self.holdings[holder_id]))

    async def get_analytics(self, holder_id):
        return await self._result("analytics", AnalyticsSnapshot())

    async def get_stocks(self, exchange=None):
        return await self._result("stocks", list(self.stocks))

    async def get_recommendations(self, limit=None, action=None):
        return await self._result("recommendations", [])

    async def get_heat_map(self, realtime=False):
        if realtime:
            return await self._result("heat_map_realtime", list(self.realtime_heat))
        return await self._result("heat_map", [])

    async def get_market_movers(self):
        return await self._result("movers", MarketMovers())

    async def get_market_overview(self):
        return await self._result("overview", MarketOverview())

    async def get_sectors(self):
        return await self._result("sectors", [])

    async def get_ai_insights(self):
        return await self._result("insights", MarketInsight())

    async def get_diversification(self):
        return await self._result("diversification", Diversification())

    async def get_performance(self):
        return await self._result("performance", PortfolioPerformance())

    async def get_performance_history(self, days=30):
        self.history_days.append(days)
        return await self._result("performance_history", [])


class RefreshTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.backend = FakeBackend()
        self.store = StateStore(history_capacity=5)
        self.notifications = []
        self.controller = RefreshController(
            backend=self.backend,
            store=self.store,
            notify=self.notifications.append,
        )


class TestTriggers(RefreshTestCase):

    async def test_tick_without_holder_does_nothing(self):
        self.assertFalse(await self.controller.tick())
        self.assertEqual(sum(self.backend.calls.values()), 0)

    async def test_initial_load_selects_first_holder(self):
        self.assertTrue(await self.controller.initial_load())
        snapshot = self.store.snapshot()
        self.assertEqual(snapshot.selected_holder_id, "1")
        self.assertEqual(snapshot.holdings[0].stock_symbol, "AAPL")
        self.assertEqual(self.controller.state, RefreshState.IDLE)

    async def test_initial_load_prefers_configured_holder(self):
        await self.controller.initial_load(preferred_holder_id="2")
        self.assertEqual(self.store.selected_holder_id, "2")

    async def test_initial_load_unknown_preferred_falls_back(self):
        await self.controller.initial_load(preferred_holder_id="99")
        self.assertEqual(self.store.selected_holder_id, "1")

    async def test_initial_load_without_holders_still_refreshes(self):
        self.backend.holders = []
        self.assertTrue(await self.controller.initial_load())
        self.assertIsNone(self.store.selected_holder_id)
        self.assertEqual(self.backend.calls["holdings"], 0)
        self.assertEqual(len(self.store.snapshot().stocks), 2)

    async def test_performance_history_window(self):
        self.controller.history_days = 7
        await self.controller.switch_holder("1")
        self.assertEqual(self.backend.history_days, [7])

    async def test_each_refresh_appends_history(self):
        await self.controller.switch_holder("1")
        await self.controller.tick()
        values = [p.value for p in self.store.history()]
        self.assertEqual(values, [1600.0, 1600.0])


class TestConcurrency(RefreshTestCase):

    async def test_stale_response_discarded_on_holder_switch(self):
        self.backend.gates["1"] = asyncio.Event()
        first = asyncio.create_task(self.controller.switch_holder("1"))
        await self.backend.entered.wait()

        self.assertTrue(await self.controller.switch_holder("2"))
        self.backend.gates["1"].set()
        self.assertFalse(await first)

        snapshot = self.store.snapshot()
        self.assertEqual(snapshot.selected_holder_id, "2")
        self.assertEqual([h.stock_symbol for h in snapshot.holdings], ["MSFT"])
        self.assertEqual([p.value for p in self.store.history()], [550.0])
        self.assertEqual(self.controller.state, RefreshState.IDLE)

    async def test_refresh_skipped_while_fetching(self):
        await self.controller.switch_holder("1")
        self.backend.gates["1"] = asyncio.Event()

        running = asyncio.create_task(self.controller.refresh())
        await self.backend.entered.wait()
        self.assertEqual(self.controller.state, RefreshState.FETCHING)

        self.assertFalse(await self.controller.tick())
        self.backend.gates["1"].set()
        self.assertTrue(await running)
        self.assertEqual(self.backend.calls["holdings"], 2)


class TestFailures(RefreshTestCase):

    async def test_server_error_keeps_previous_values(self):
        await self.controller.switch_holder("1")
        before = self.store.snapshot()

        self.backend.fail = {"stocks", "holdings"}
        self.assertTrue(await self.controller.refresh())

        after = self.store.snapshot()
        self.assertEqual(after.stocks, before.stocks)
        self.assertEqual(after.holdings, before.holdings)
        self.assertEqual(after.failures["stocks"].status, 500)
        self.assertEqual(len(self.store.history()), 1)

        self.assertEqual(len(self.notifications), 1)
        self.assertIn("stocks", self.notifications[0])
        self.assertIn("HTTP 500", self.notifications[0])

    async def test_holders_failure_is_reported(self):
        self.backend.fail = {"holders"}
        await self.controller.initial_load()
        self.assertIn("Failed to load holders: HTTP 500", self.notifications)
        self.assertIsNone(self.store.selected_holder_id)


class TestScheduler(RefreshTestCase):

    async def test_scheduler_ticks_until_stopped(self):
        await self.controller.switch_holder("1")
        task = asyncio.create_task(self.controller.start_scheduler(interval_sec=0))
        for _ in range(200):
            if self.backend.calls["holdings"] >= 3:
                break
            await asyncio.sleep(0.01)

        self.controller.stop_scheduler()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self.assertGreaterEqual(self.backend.calls["holdings"], 3)


class TestRendering(RefreshTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.rendered = []
        self.view = DashboardView()
        self.controller = RefreshController(
            backend=self.backend,
            store=self.store,
            view=self.view,
            notify=self.notifications.append,
            on_rendered=lambda: self.rendered.append(self.view.render_count),
        )

    async def asyncTearDown(self):
        self.view.charts.destroy_all()

    async def test_views_and_charts_redrawn_in_place(self):
        await self.controller.switch_holder("1")
        await self.controller.refresh()

        self.assertEqual(self.rendered, [2, 3])
        self.assertEqual(len(self.view.charts), 8)
        self.assertEqual(self.view.charts.get(cfg.CHART_ALLOCATION).render_count, 3)
        self.assertIn("AAPL", self.view.binding.get(cfg.MOUNT_HOLDINGS))
        self.assertIn("₹1,600.00", self.view.binding.get(cfg.MOUNT_SUMMARY))
        self.assertEqual(
            self.view.binding.get(cfg.MOUNT_WATCHLIST),
            "⭐ Watchlist (0 stocks)\n\nYour watchlist is empty. Add stocks to track them here.",
        )

    async def test_realtime_heat_map_and_filter(self):
        await self.controller.switch_holder("1")
        self.assertTrue(await self.controller.load_heat_map_realtime())
        self.assertEqual(len(self.store.snapshot().heat_map), 2)

        self.controller.filter_heat_map("cool")
        self.assertEqual(self.view.heat_filter, HeatLevel.COOL)
        heat_text = self.view.binding.get(cfg.MOUNT_HEAT_MAP)
        self.assertIn("MSFT", heat_text)
        self.assertNotIn("AAPL", heat_text)
        self.assertEqual(self.rendered[-1], self.view.render_count)

        self.controller.filter_heat_map(None)
        self.assertIn("AAPL", self.view.binding.get(cfg.MOUNT_HEAT_MAP))

    async def test_realtime_heat_map_failure_keeps_table(self):
        await self.controller.switch_holder("1")
        self.backend.fail = {"heat_map_realtime"}
        self.assertFalse(await self.controller.load_heat_map_realtime())
        self.assertEqual(self.store.snapshot().heat_map, ())
        self.assertEqual(self.notifications, ["Failed to load realtime heat map: HTTP 500"])


class TestLocalActions(RefreshTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.tmpdir = tempfile.TemporaryDirectory()
        local_store = LocalStore(str(Path(self.tmpdir.name) / "local.db"))
        self.view = DashboardView()
        self.controller = RefreshController(
            backend=self.backend,
            store=self.store,
            view=self.view,
            watchlist_repo=WatchlistRepo(local_store),
            alerts_repo=AlertsRepo(local_store),
            notify=self.notifications.append,
        )
        await self.controller.switch_holder("1")

    async def asyncTearDown(self):
        self.view.charts.destroy_all()
        self.tmpdir.cleanup()

    async def test_watchlist_changes_redraw(self):
        self.assertTrue(self.controller.add_to_watchlist("msft"))
        self.assertIn("⭐ Watchlist (1 stocks)", self.view.binding.get(cfg.MOUNT_WATCHLIST))
        self.assertFalse(self.controller.add_to_watchlist("MSFT"))

        self.assertTrue(self.controller.remove_from_watchlist("MSFT"))
        self.assertIn("Your watchlist is empty", self.view.binding.get(cfg.MOUNT_WATCHLIST))

    async def test_price_alert_changes_redraw(self):
        self.controller.add_price_alert("AAPL", "above", 150)
        self.assertIn("triggered at ₹160.00", self.view.binding.get(cfg.MOUNT_ALERTS))

        self.assertTrue(self.controller.remove_price_alert(0))
        self.assertEqual(self.view.binding.get(cfg.MOUNT_ALERTS), "No active alerts.")
