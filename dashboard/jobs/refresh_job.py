"""Refresh controller: polling loop plus manual and holder-switch refreshes."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Union

from ..domain.metrics import aggregate_portfolio
from ..domain.models import HeatLevel, PriceAlert
from ..http_client import FetchResult
from ..providers.backend import BackendProvider
from ..storage.alerts_repo import AlertsRepo
from ..storage.watchlist_repo import WatchlistRepo
from ..store import StateStore
from ..ui.binding import DashboardView

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RENDERING = "rendering"


def _log_notification(message: str) -> None:
    logger.warning("Notification: %s", message)


class RefreshController:
    """
    Re-fetches data, updates the store and redraws every view.

    Two guards keep state consistent:
      * a refresh is skipped while another one for the same holder
        generation is still fetching;
      * switching holder bumps the generation, and any response that
        arrives for an older generation is discarded.
    """

    def __init__(
        self,
        backend: BackendProvider,
        store: StateStore,
        view: Optional[DashboardView] = None,
        watchlist_repo: Optional[WatchlistRepo] = None,
        alerts_repo: Optional[AlertsRepo] = None,
        notify: Optional[Notifier] = None,
        recommendation_limit: int = 30,
        history_days: int = 30,
        on_rendered: Optional[Callable[[], None]] = None,
    ):
        self.backend = backend
        self.store = store
        self.view = view
        self.watchlist_repo = watchlist_repo
        self.alerts_repo = alerts_repo
        self.notify = notify or _log_notification
        self.recommendation_limit = recommendation_limit
        self.history_days = history_days
        self.on_rendered = on_rendered
        self.state = RefreshState.IDLE
        self.generation = 0
        self._inflight_generation: Optional[int] = None
        self._running = False

    # ==================== Triggers ====================

    async def initial_load(self, preferred_holder_id: Optional[str] = None) -> bool:
        """Load holders, select one (preferred, else first) and refresh."""
        result = await self.backend.get_holders()
        if result.success:
            self.store.update({"holders": result.data})
        else:
            self.store.record_failure("holders", result.error)
            self.notify(f"Failed to load holders: {result.error}")

        holders = self.store.snapshot().holders
        holder_id = None
        if preferred_holder_id and any(h.id == preferred_holder_id for h in holders):
            holder_id = preferred_holder_id
        elif holders:
            holder_id = holders[0].id

        if holder_id is not None:
            return await self.switch_holder(holder_id)
        return await self.refresh(trigger="initial")

    async def switch_holder(self, holder_id: Optional[str]) -> bool:
        """Select a holder; stale in-flight responses for the old one are dropped."""
        self.generation += 1
        self.store.select_holder(holder_id)
        self._render()
        return await self.refresh(trigger="holder-switch")

    async def tick(self) -> bool:
        """Timer trigger; only refreshes while a holder is selected."""
        if self.store.selected_holder_id is None:
            logger.debug("Tick ignored: no holder selected")
            return False
        return await self.refresh(trigger="timer")

    async def refresh(self, trigger: str = "manual") -> bool:
        """
        Run one fetch -> update -> render cycle.

        Returns:
            True if the results were applied to the store
        """
        if self._inflight_generation == self.generation:
            logger.warning("Refresh (%s) skipped: already fetching", trigger)
            return False

        generation = self.generation
        holder_id = self.store.selected_holder_id
        self._inflight_generation = generation
        self.state = RefreshState.FETCHING
        logger.debug("Refresh (%s) started for holder %s, generation %d", trigger, holder_id, generation)

        try:
            results = await self._fetch_all(holder_id)

            if generation != self.generation:
                logger.warning(
                    "Discarding stale refresh for holder %s (generation %d, current %d)",
                    holder_id, generation, self.generation,
                )
                return False

            self.state = RefreshState.RENDERING
            self._apply(results, holder_id)
            self._redraw()
            return True
        finally:
            if self._inflight_generation == generation:
                self._inflight_generation = None
                self.state = RefreshState.IDLE

    async def load_heat_map_realtime(self) -> bool:
        """Manual action: replace the heat map with the realtime variant."""
        result = await self.backend.get_heat_map(realtime=True)
        if not result.success:
            self.store.record_failure("heat_map", result.error)
            self.notify(f"Failed to load realtime heat map: {result.error}")
            return False
        self.store.update({"heat_map": result.data})
        self._redraw()
        return True

    def filter_heat_map(self, level: Union[HeatLevel, str, None]) -> None:
        """Show one heat band (or all with None) and redraw."""
        if self.view is None:
            return
        self.view.set_heat_filter(level)
        self._redraw()

    # ==================== Watchlist & alerts ====================

    def add_to_watchlist(self, symbol: str) -> bool:
        added = self.watchlist_repo.add(symbol)
        if added:
            self._redraw()
        return added

    def remove_from_watchlist(self, symbol: str) -> bool:
        removed = self.watchlist_repo.remove(symbol)
        if removed:
            self._redraw()
        return removed

    def add_price_alert(self, symbol: str, condition: str, price: float) -> PriceAlert:
        """Persist an alert (ValidationError on bad input) and redraw."""
        alert = self.alerts_repo.add(symbol, condition, price)
        self._redraw()
        return alert

    def remove_price_alert(self, index: int) -> bool:
        removed = self.alerts_repo.remove(index)
        if removed:
            self._redraw()
        return removed

    # ==================== Internals ====================

    async def _fetch_all(self, holder_id: Optional[str]) -> Dict[str, FetchResult]:
        calls: Dict[str, Awaitable[FetchResult]] = {
            "holders": self.backend.get_holders(),
            "stocks": self.backend.get_stocks(),
            "recommendations": self.backend.get_recommendations(limit=self.recommendation_limit),
            "heat_map": self.backend.get_heat_map(),
            "movers": self.backend.get_market_movers(),
            "overview": self.backend.get_market_overview(),
            "sectors": self.backend.get_sectors(),
            "insights": self.backend.get_ai_insights(),
            "diversification": self.backend.get_diversification(),
            "performance": self.backend.get_performance(),
            "performance_history": self.backend.get_performance_history(days=self.history_days),
        }
        if holder_id is not None:
            calls["holdings"] = self.backend.get_holdings(holder_id)
            calls["analytics"] = self.backend.get_analytics(holder_id)

        names = list(calls)
        outcomes = await asyncio.gather(*calls.values())
        return dict(zip(names, outcomes))

    def _apply(self, results: Dict[str, FetchResult], holder_id: Optional[str]) -> None:
        """Store what succeeded, record and report what did not."""
        partial = {name: r.data for name, r in results.items() if r.success}
        failed: List[str] = []
        for name, r in results.items():
            if not r.success:
                self.store.record_failure(name, r.error)
                failed.append(f"{name} ({r.error})")

        if partial:
            self.store.update(partial)

        if holder_id is not None and "holdings" in partial:
            snapshot = self.store.snapshot()
            totals = aggregate_portfolio(snapshot.holdings, snapshot.stocks)
            self.store.append_history(totals.current_value)

        if failed:
            self.notify("Failed to refresh: " + ", ".join(failed))

    def _redraw(self) -> None:
        self._render()
        if self.on_rendered is not None:
            self.on_rendered()

    def _render(self) -> None:
        if self.view is None:
            return
        watchlist = self.watchlist_repo.get_all() if self.watchlist_repo else []
        alerts = self.alerts_repo.get_all() if self.alerts_repo else []
        self.view.render(self.store.snapshot(), watchlist, alerts)

    # ==================== Scheduler ====================

    async def start_scheduler(self, interval_sec: int = 30) -> None:
        """Tick every interval until stopped or cancelled."""
        self._running = True
        logger.info("Refresh scheduler started (interval: %ds)", interval_sec)

        while self._running:
            try:
                await asyncio.sleep(interval_sec)
                if not self._running:
                    break
                await self.tick()
            except asyncio.CancelledError:
                logger.info("Refresh scheduler stopped")
                raise
            except Exception as e:
                logger.error("Refresh scheduler error: %s", e, exc_info=True)

    def stop_scheduler(self) -> None:
        """Stop the refresh scheduler."""
        self._running = False
        logger.info("Refresh scheduler stop requested")
