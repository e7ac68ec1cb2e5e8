"""
View binding - maps state snapshots onto mount points.

Derivations run once per render pass; every renderer then receives only
the typed data it needs and writes its output to a named mount.
"""

import logging
from typing import Dict, List, Optional, Sequence, Union

from .. import config as cfg
from ..chart import ChartRegistry, ChartSpec
from ..domain import metrics
from ..domain.models import HeatLevel, PriceAlert
from ..services.alerts_service import evaluate_alerts
from ..store import StateSnapshot
from .screens import DashboardScreens

logger = logging.getLogger(__name__)


class ViewBinding:
    """Latest rendered output per mount id."""

    def __init__(self):
        self._mounts: Dict[str, str] = {}

    def set(self, mount_id: str, content: str) -> None:
        self._mounts[mount_id] = content

    def get(self, mount_id: str) -> Optional[str]:
        return self._mounts.get(mount_id)

    def items(self) -> Dict[str, str]:
        return dict(self._mounts)


class DashboardView:
    """Redraws every view and chart from one snapshot."""

    def __init__(
        self,
        screens: Optional[DashboardScreens] = None,
        binding: Optional[ViewBinding] = None,
        charts: Optional[ChartRegistry] = None,
    ):
        self.screens = screens or DashboardScreens()
        self.binding = binding or ViewBinding()
        self.charts = charts or ChartRegistry()
        self.heat_filter: Optional[HeatLevel] = None
        self.render_count = 0

    def set_heat_filter(self, level: Union[HeatLevel, str, None]) -> None:
        """Restrict the heat map table to one band; None shows all."""
        if isinstance(level, str):
            level = HeatLevel(level.strip().upper())
        self.heat_filter = level
        logger.debug("Heat map filter: %s", level.value if level else "all")

    def render(
        self,
        snapshot: StateSnapshot,
        watchlist: Sequence[str] = (),
        alerts: Sequence[PriceAlert] = (),
    ) -> Dict[str, str]:
        """Render all views; returns the mount -> text mapping."""
        s = self.screens
        stock_index = metrics.index_stocks(snapshot.stocks)
        heat = metrics.heat_scores(snapshot.heat_map)
        rows = metrics.derive_holdings(snapshot.holdings, snapshot.stocks, heat)
        portfolio = metrics.aggregate_portfolio(snapshot.holdings, snapshot.stocks)
        rec_counts = metrics.count_recommendations(snapshot.recommendations)
        triggered = evaluate_alerts(alerts, snapshot.stocks)

        b = self.binding
        b.set(cfg.MOUNT_SUMMARY, s.summary_cards(portfolio, snapshot.selected_holder))
        b.set(cfg.MOUNT_HOLDINGS, s.holdings_table(rows))
        b.set(cfg.MOUNT_ANALYTICS, s.analytics_cards(portfolio, snapshot.analytics))
        b.set(cfg.MOUNT_RECOMMENDATIONS, s.recommendations_grid(snapshot.recommendations, rec_counts))
        b.set(cfg.MOUNT_TOP_PICKS, s.top_picks(metrics.top_by_confidence(snapshot.stocks)))
        b.set(cfg.MOUNT_MOVERS, s.market_movers(snapshot.movers))
        b.set(cfg.MOUNT_HEAT_MAP, s.heat_map(snapshot.heat_map, metrics.heat_summary(snapshot.heat_map), self.heat_filter))
        b.set(cfg.MOUNT_STOCKS, s.stocks_table(snapshot.stocks, heat))
        b.set(cfg.MOUNT_SECTORS, s.sector_performance(snapshot.sectors))
        b.set(cfg.MOUNT_WATCHLIST, s.watchlist(list(watchlist), stock_index, heat))
        b.set(cfg.MOUNT_ALERTS, s.price_alerts(list(alerts), triggered))
        b.set(cfg.MOUNT_DIVERSIFICATION, s.diversification(snapshot.diversification))
        b.set(cfg.MOUNT_INSIGHTS, s.insights(snapshot.insights))
        b.set(cfg.MOUNT_PERFORMANCE, s.portfolio_performance(snapshot.performance))
        b.set(cfg.MOUNT_OVERVIEW, s.market_overview(snapshot.overview))

        self._render_charts(snapshot, rows, portfolio)
        self._render_backend_charts(snapshot)
        self.render_count += 1
        logger.debug("Render pass %d complete", self.render_count)
        return b.items()

    def _render_charts(
        self,
        snapshot: StateSnapshot,
        rows: List[metrics.HoldingMetrics],
        portfolio: metrics.PortfolioMetrics,
    ) -> None:
        prefix = self.screens.currency_symbol
        self.charts.upsert_chart(
            cfg.CHART_ALLOCATION,
            ChartSpec(
                kind="pie",
                labels=[r.symbol for r in rows],
                values=[r.market_value for r in rows],
                title="Holdings Allocation",
            ),
        )
        allocation = portfolio.sector_allocation
        self.charts.upsert_chart(
            cfg.CHART_SECTOR,
            ChartSpec(
                kind="bar",
                labels=list(allocation),
                values=list(allocation.values()),
                title="Value by Sector",
                value_prefix=prefix,
            ),
        )
        history = list(snapshot.history)
        self.charts.upsert_chart(
            cfg.CHART_HISTORY,
            ChartSpec(
                kind="line",
                labels=[p.timestamp.strftime("%H:%M:%S") for p in history],
                values=[p.value for p in history],
                title="Portfolio Value",
                value_prefix=prefix,
            ),
        )
        self.charts.upsert_chart(
            cfg.CHART_RISK,
            ChartSpec(kind="gauge", labels=["risk"], values=[portfolio.risk_score], title="Risk Score"),
        )
        signals = metrics.signal_breakdown(snapshot.stocks)
        self.charts.upsert_chart(
            cfg.CHART_SIGNALS,
            ChartSpec(
                kind="doughnut",
                labels=list(signals),
                values=list(signals.values()),
                title="Smart vs Dumb Money",
            ),
        )

    def _render_backend_charts(self, snapshot: StateSnapshot) -> None:
        """Charts drawn straight from backend aggregates."""
        history = list(snapshot.performance_history)
        if not history and snapshot.performance is not None:
            history = list(snapshot.performance.history)
        self.charts.upsert_chart(
            cfg.CHART_PERFORMANCE,
            ChartSpec(
                kind="line",
                labels=[p.timestamp.strftime("%d %b") for p in history],
                values=[p.value for p in history],
                title="Portfolio Performance",
                value_prefix=self.screens.currency_symbol,
            ),
        )
        diversification = snapshot.diversification
        sectors = diversification.sector_allocation if diversification else {}
        exchanges = diversification.exchange_allocation if diversification else {}
        self.charts.upsert_chart(
            cfg.CHART_DIVERSIFICATION_SECTOR,
            ChartSpec(kind="doughnut", labels=list(sectors), values=list(sectors.values()), title="Sector Allocation"),
        )
        self.charts.upsert_chart(
            cfg.CHART_DIVERSIFICATION_EXCHANGE,
            ChartSpec(kind="pie", labels=list(exchanges), values=list(exchanges.values()), title="Exchange Allocation"),
        )
