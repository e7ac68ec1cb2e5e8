"""Pure screen text builders for every dashboard view."""

from typing import Dict, List, Mapping, Optional, Sequence

from ..domain.metrics import HoldingMetrics, PortfolioMetrics, classify_heat, sector_percentages
from ..domain.models import (
    AnalyticsSnapshot,
    Diversification,
    HeatEntry,
    HeatLevel,
    Holder,
    MarketInsight,
    MarketMovers,
    MarketOverview,
    PortfolioPerformance,
    PriceAlert,
    Recommendation,
    SectorPerformance,
    Stock,
)
from ..services.alerts_service import TriggeredAlert
from .formatters import PLACEHOLDER, format_currency, format_percent, format_volume, truncate_text

MOVERS_LIMIT = 5


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Left-aligned fixed-width text table."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(cells: Sequence[str]) -> str:
        return "  ".join(c.ljust(widths[i]) for i, c in enumerate(cells)).rstrip()

    out = [line(headers), "  ".join("-" * w for w in widths)]
    out.extend(line(row) for row in rows)
    return "\n".join(out)


def trend_marker(value: float) -> str:
    if value > 0:
        return "▲"
    if value < 0:
        return "▼"
    return "•"


class DashboardScreens:
    """Text renderers; each takes exactly the typed data its view needs."""

    def __init__(self, currency_symbol: str = "₹", locale: str = "en-IN"):
        self.currency_symbol = currency_symbol
        self.locale = locale

    def money(self, value: Optional[float]) -> str:
        return format_currency(value, self.currency_symbol, self.locale)

    # ==================== Portfolio ====================

    def summary_cards(self, metrics: PortfolioMetrics, holder: Optional[Holder] = None) -> str:
        title = f"💼 Portfolio: {holder.name}" if holder else "💼 Portfolio"
        pl_state = "profit" if metrics.profit_loss >= 0 else "loss"
        return "\n".join([
            title,
            "",
            f"Invested:      {self.money(metrics.total_invested)}",
            f"Current value: {self.money(metrics.current_value)}",
            f"P/L:           {trend_marker(metrics.profit_loss)} {self.money(metrics.profit_loss)} "
            f"({format_percent(metrics.profit_loss_percent)}) [{pl_state}]",
        ])

    def holdings_table(self, rows: Sequence[HoldingMetrics]) -> str:
        if not rows:
            return "No holdings yet - Add your first holding!"
        table_rows = [
            [
                r.symbol,
                str(r.quantity),
                self.money(r.avg_price),
                self.money(r.current_price),
                self.money(r.market_value),
                f"{self.money(r.profit_loss)} ({format_percent(r.profit_loss_percent)})",
                format_percent(r.weight, signed=False),
                r.heat_level.value if r.heat_level else PLACEHOLDER,
                r.signal.value,
            ]
            for r in rows
        ]
        return render_table(
            ["Symbol", "Qty", "Avg Price", "Price", "Value", "P/L", "Weight", "Heat", "Signal"],
            table_rows,
        )

    def analytics_cards(
        self,
        metrics: PortfolioMetrics,
        analytics: Optional[AnalyticsSnapshot] = None,
    ) -> str:
        """KPI block; backend analytics win where they carry extra fields."""
        best = (
            f"{metrics.best_performer} ({format_percent(metrics.best_return_percent)})"
            if metrics.best_performer else "-"
        )
        lines = [
            "📊 Analytics",
            "",
            f"Total holdings:  {metrics.total_holdings}",
            f"Unique stocks:   {metrics.unique_stocks}",
            f"Average return:  {format_percent(metrics.profit_loss_percent)}",
            f"Best performer:  {best}",
            f"Risk score:      {metrics.risk_score}/100",
        ]
        if metrics.sector_allocation:
            lines.append("Sector allocation:")
            for sector, pct in sector_percentages(metrics.sector_allocation).items():
                lines.append(f"  {sector:<16} {format_percent(pct, signed=False)}")
        if analytics is not None:
            if analytics.diversification_score is not None:
                lines.append(f"Diversification: {analytics.diversification_score:.0f}/100")
            lines.append(f"Backend risk:    {analytics.risk_score:.0f}/100")
        return "\n".join(lines)

    def diversification(self, data: Optional[Diversification]) -> str:
        if data is None:
            return f"Diversification score: {PLACEHOLDER}"
        score = (
            f"{round(data.diversification_score)}%"
            if data.diversification_score is not None else PLACEHOLDER
        )
        lines = [f"Diversification score: {score}"]
        lines.extend(f"• {s}" for s in data.suggestions)
        if data.exchange_allocation:
            lines.append("Exchange allocation:")
            for exchange, pct in sector_percentages(data.exchange_allocation).items():
                lines.append(f"  {exchange:<16} {format_percent(pct, signed=False)}")
        return "\n".join(lines)

    def portfolio_performance(self, performance: Optional[PortfolioPerformance]) -> str:
        if performance is None:
            return f"Portfolio performance: {PLACEHOLDER}"
        p = performance
        return "\n".join([
            "📈 Portfolio Performance",
            "",
            f"Total value: {self.money(p.total_value)}",
            f"Total gain:  {trend_marker(p.total_gain)} {self.money(p.total_gain)} "
            f"({format_percent(p.total_gain_percent)})",
            f"Day change:  {trend_marker(p.day_change)} {self.money(p.day_change)} "
            f"({format_percent(p.day_change_percent)})",
        ])

    # ==================== Recommendations ====================

    def recommendations_grid(self, recs: Sequence[Recommendation], counts: Mapping[str, int]) -> str:
        header = "  ".join(f"{action}: {count}" for action, count in counts.items())
        if not recs:
            return header + "\n\nNo recommendations available"
        rows = [
            [
                r.symbol or PLACEHOLDER,
                truncate_text(r.name or PLACEHOLDER, 24),
                r.action.value,
                f"{r.score:.0f}",
                truncate_text(r.reason or PLACEHOLDER, 48),
            ]
            for r in recs
        ]
        return header + "\n\n" + render_table(["Symbol", "Name", "Action", "Score", "Reason"], rows)

    def top_picks(self, stocks: Sequence[Stock]) -> str:
        """Legacy top-confidence table."""
        if not stocks:
            return "No recommendations available"
        rows = [
            [
                s.symbol,
                truncate_text(s.name, 24),
                s.sector,
                self.money(s.base_price),
                format_percent(s.volatility * 100, signed=False),
                f"{s.confidence_score:.0f}%",
            ]
            for s in stocks
        ]
        return render_table(["Symbol", "Name", "Sector", "Base Price", "Volatility", "Confidence"], rows)

    # ==================== Market ====================

    def market_movers(self, movers: Optional[MarketMovers]) -> str:
        def block(title: str, stocks: List[Stock], volume: bool = False) -> List[str]:
            lines = [title]
            if not stocks:
                lines.append("  No data")
                return lines
            for s in stocks[:MOVERS_LIMIT]:
                detail = (
                    f"Vol: {format_volume(s.volume)}" if volume
                    else format_percent(s.change_percent)
                )
                lines.append(f"  {s.symbol:<10} {detail}")
            return lines

        movers = movers or MarketMovers()
        lines = block("🟢 Top Gainers", movers.top_gainers)
        lines += block("🔴 Top Losers", movers.top_losers)
        lines += block("🔥 Most Active", movers.most_active, volume=True)
        if movers.overview is not None:
            o = movers.overview
            lines.append(
                f"Breadth: {o.advancing_stocks} up / {o.declining_stocks} down of {o.total_stocks} "
                f"| Sentiment {o.market_sentiment:.0f} ({o.overall_trend})"
            )
        return "\n".join(lines)

    def market_overview(self, overview: Optional[MarketOverview]) -> str:
        if overview is None:
            return f"Market overview: {PLACEHOLDER}"
        o = overview
        return "\n".join([
            "🌐 Market Overview",
            "",
            f"Total stocks: {o.total_stocks}",
            f"Advancing:    {o.advancing_stocks}",
            f"Declining:    {o.declining_stocks}",
            f"Sentiment:    {o.market_sentiment:.0f} ({o.overall_trend})",
        ])

    def stocks_table(self, stocks: Sequence[Stock], heat: Mapping[str, float]) -> str:
        if not stocks:
            return "No stocks available"
        rows = []
        for s in stocks:
            score = heat.get(s.symbol, 0.0)
            rows.append([
                s.symbol,
                truncate_text(s.name or PLACEHOLDER, 24),
                s.sector or PLACEHOLDER,
                s.exchange or PLACEHOLDER,
                self.money(s.current_price),
                format_percent(s.change_percent),
                f"{s.pe_ratio:.1f}" if s.pe_ratio is not None else PLACEHOLDER,
                f"{score:.0f} {classify_heat(score).value}",
            ])
        return render_table(["Symbol", "Name", "Sector", "Exchange", "Price", "Change", "P/E", "Heat"], rows)

    def heat_map(
        self,
        entries: Sequence[HeatEntry],
        summary: Mapping[str, float],
        level: Optional[HeatLevel] = None,
    ) -> str:
        counts = "  ".join(f"{lvl.value}: {int(summary.get(lvl.value, 0))}" for lvl in HeatLevel)
        header = f"{counts}\nAverage heat: {summary.get('average', 0.0):.1f}"
        if level is not None:
            entries = [e for e in entries if classify_heat(e.heat_score) == level]
        if not entries:
            return header + "\n\nNo heat map data"
        rows = [
            [
                e.symbol,
                truncate_text(e.name or PLACEHOLDER, 24),
                e.sector or PLACEHOLDER,
                self.money(e.current_price),
                f"{e.heat_score:.1f}",
                classify_heat(e.heat_score).value,
            ]
            for e in entries
        ]
        return header + "\n\n" + render_table(["Symbol", "Name", "Sector", "Price", "Heat", "Level"], rows)

    def sector_performance(self, sectors: Sequence[SectorPerformance]) -> str:
        if not sectors:
            return "No sector data"
        rows = [
            [
                s.display_name,
                format_percent(s.day_change_percent),
                format_percent(s.week_change),
                format_percent(s.month_change),
                str(s.stock_count),
                s.sentiment,
            ]
            for s in sectors
        ]
        return render_table(["Sector", "Day", "Week", "Month", "Stocks", "Sentiment"], rows)

    def insights(self, insight: Optional[MarketInsight]) -> str:
        if insight is None:
            return "No AI insights available"
        lines = [
            f"🤖 {insight.title or 'Market Insights'}",
            insight.summary,
            f"Outlook: {insight.outlook} ({insight.confidence:.0f}% confidence)",
        ]
        if insight.trending_symbols:
            lines.append("Trending: " + ", ".join(insight.trending_symbols))
        lines.extend(f"⚠️ {r}" for r in insight.risk_alerts if r)
        return "\n".join(line for line in lines if line)

    # ==================== Watchlist & alerts ====================

    def watchlist(
        self,
        symbols: Sequence[str],
        stocks: Mapping[str, Stock],
        heat: Mapping[str, float],
    ) -> str:
        header = f"⭐ Watchlist ({len(symbols)} stocks)"
        if not symbols:
            return header + "\n\nYour watchlist is empty. Add stocks to track them here."
        rows = []
        for symbol in symbols:
            stock = stocks.get(symbol)
            rows.append([
                symbol,
                truncate_text(stock.name, 24) if stock and stock.name else PLACEHOLDER,
                stock.exchange if stock and stock.exchange else PLACEHOLDER,
                self.money(stock.current_price if stock else 0.0),
                format_percent(stock.change_percent if stock else 0.0),
                f"{heat.get(symbol, 0.0):.0f}",
            ])
        return header + "\n\n" + render_table(["Symbol", "Name", "Exchange", "Price", "Change", "Heat"], rows)

    def price_alerts(self, alerts: Sequence[PriceAlert], triggered: Sequence[TriggeredAlert] = ()) -> str:
        if not alerts:
            return "No active alerts."
        fired: Dict[int, TriggeredAlert] = {t.index: t for t in triggered}
        lines = ["🔔 Price Alerts"]
        for index, alert in enumerate(alerts):
            line = f"{index + 1}. {alert.symbol} {alert.condition.value} {self.money(alert.price)}"
            hit = fired.get(index)
            if hit is not None:
                line += f"  ✅ triggered at {self.money(hit.current_price)}"
            lines.append(line)
        return "\n".join(lines)

    @staticmethod
    def notification(message: str) -> str:
        return f"⚠️ {message}"
