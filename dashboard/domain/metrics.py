"""
Pure derivation functions for portfolio metrics.

No I/O, no state - every function is total and deterministic.
Used by the refresh controller and renderers to turn raw holdings and
stock reference data into display metrics.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .models import (
    HeatEntry,
    HeatLevel,
    Holding,
    MoneySignal,
    Recommendation,
    RecommendationAction,
    Stock,
)

# Heat score band floors (policy constants)
HEAT_OVERHEATED = 75.0
HEAT_WARM = 55.0
HEAT_NEUTRAL = 35.0

# Smart/dumb money thresholds
SMART_MAX_VOLATILITY = 0.3
SMART_MIN_CONFIDENCE = 80.0
DUMB_MIN_VOLATILITY = 0.4
DUMB_MAX_CONFIDENCE = 50.0

UNKNOWN_SECTOR = "Unknown"


@dataclass(frozen=True)
class HoldingMetrics:
    """Derived row for the holdings table."""
    symbol: str
    name: str
    sector: str
    quantity: int
    avg_price: float
    current_price: float
    invested_value: float
    market_value: float
    profit_loss: float
    profit_loss_percent: float
    weight: float
    heat_level: Optional[HeatLevel] = None
    signal: MoneySignal = MoneySignal.NEUTRAL


@dataclass(frozen=True)
class PortfolioMetrics:
    """Aggregate metrics over one holder's holdings."""
    total_invested: float = 0.0
    current_value: float = 0.0
    profit_loss: float = 0.0
    profit_loss_percent: float = 0.0
    sector_allocation: Dict[str, float] = field(default_factory=dict)
    total_holdings: int = 0
    unique_stocks: int = 0
    best_performer: Optional[str] = None
    best_return_percent: float = 0.0
    risk_score: int = 0


def safe_percent(part: float, whole: float) -> float:
    """part / whole * 100, or 0 when whole is 0."""
    if whole == 0:
        return 0.0
    return part / whole * 100


def market_value(holding: Holding, stock: Optional[Stock]) -> float:
    """Quantity times the stock's current price (0 for an unknown stock)."""
    if stock is None:
        return 0.0
    return holding.quantity * stock.current_price


def invested_value(holding: Holding) -> float:
    """Quantity times the average acquisition price."""
    return holding.quantity * holding.avg_price


def profit_loss(holding: Holding, stock: Optional[Stock]) -> float:
    return market_value(holding, stock) - invested_value(holding)


def profit_loss_percent(holding: Holding, stock: Optional[Stock]) -> float:
    return safe_percent(profit_loss(holding, stock), invested_value(holding))


def weight(value: float, total_value: float) -> float:
    """Share of total portfolio value, in percent."""
    return safe_percent(value, total_value)


def classify_heat(heat_score: float) -> HeatLevel:
    """Map a backend heat score onto its band."""
    if heat_score >= HEAT_OVERHEATED:
        return HeatLevel.OVERHEATED
    if heat_score >= HEAT_WARM:
        return HeatLevel.WARM
    if heat_score >= HEAT_NEUTRAL:
        return HeatLevel.NEUTRAL
    return HeatLevel.COOL


def classify_signal(stock: Stock) -> MoneySignal:
    """
    Classify a stock as smart, dumb or neutral money.

    Smart requires BOTH low volatility and high confidence; dumb needs
    EITHER high volatility or low confidence. The gap between the two
    rules is intentional and lands in NEUTRAL.
    """
    if stock.volatility < SMART_MAX_VOLATILITY and stock.confidence_score > SMART_MIN_CONFIDENCE:
        return MoneySignal.SMART_MONEY
    if stock.volatility > DUMB_MIN_VOLATILITY or stock.confidence_score < DUMB_MAX_CONFIDENCE:
        return MoneySignal.DUMB_MONEY
    return MoneySignal.NEUTRAL


def index_stocks(stocks: Iterable[Stock]) -> Dict[str, Stock]:
    """Symbol -> Stock lookup (last one wins on duplicates)."""
    return {s.symbol: s for s in stocks}


def heat_scores(entries: Iterable[HeatEntry]) -> Dict[str, float]:
    return {e.symbol: e.heat_score for e in entries}


def derive_holdings(
    holdings: Sequence[Holding],
    stocks: Iterable[Stock],
    heat: Optional[Mapping[str, float]] = None,
) -> List[HoldingMetrics]:
    """
    Compute per-holding metrics in input order.

    Args:
        holdings: Holdings of one holder
        stocks: Stock reference data
        heat: Optional symbol -> heat score map

    Returns:
        One HoldingMetrics per holding
    """
    by_symbol = index_stocks(stocks)
    heat = heat or {}
    total = sum(market_value(h, by_symbol.get(h.stock_symbol)) for h in holdings)

    rows: List[HoldingMetrics] = []
    for h in holdings:
        stock = by_symbol.get(h.stock_symbol)
        invested = invested_value(h)
        value = market_value(h, stock)
        pl = value - invested
        score = heat.get(h.stock_symbol)
        rows.append(
            HoldingMetrics(
                symbol=h.stock_symbol,
                name=stock.name if stock else "",
                sector=stock.sector if stock else UNKNOWN_SECTOR,
                quantity=h.quantity,
                avg_price=h.avg_price,
                current_price=stock.current_price if stock else 0.0,
                invested_value=invested,
                market_value=value,
                profit_loss=pl,
                profit_loss_percent=safe_percent(pl, invested),
                weight=weight(value, total),
                heat_level=classify_heat(score) if score is not None else None,
                signal=classify_signal(stock) if stock else MoneySignal.NEUTRAL,
            )
        )
    return rows


def sector_allocation(rows: Sequence[HoldingMetrics]) -> Dict[str, float]:
    """Sum of market value grouped by sector, sectors sorted by name."""
    if not rows:
        return {}
    df = pd.DataFrame(
        {
            "sector": [r.sector for r in rows],
            "market_value": [r.market_value for r in rows],
        }
    )
    grouped = df.groupby("sector", sort=True)["market_value"].sum()
    return {str(sector): float(value) for sector, value in grouped.items()}


def sector_percentages(allocation: Mapping[str, float]) -> Dict[str, float]:
    """Allocation values as percent of their total, rounded to 2 places."""
    total = sum(allocation.values())
    return {k: round(safe_percent(v, total), 2) for k, v in allocation.items()}


def risk_score(rows: Sequence[HoldingMetrics], stocks: Iterable[Stock]) -> int:
    """Mean volatility (x100) over held stocks, capped at 100."""
    by_symbol = index_stocks(stocks)
    vols = [by_symbol[r.symbol].volatility for r in rows if r.symbol in by_symbol]
    if not vols:
        return 0
    return int(min(100.0, float(np.mean(np.array(vols) * 100))))


def aggregate_portfolio(
    holdings: Sequence[Holding],
    stocks: Iterable[Stock],
) -> PortfolioMetrics:
    """
    Aggregate one holder's holdings into portfolio metrics.

    P/L and P/L% follow the same rules as a single holding; sector
    allocation sums to current value.
    """
    stocks = list(stocks)
    rows = derive_holdings(holdings, stocks)
    if not rows:
        return PortfolioMetrics()

    total_invested = sum(r.invested_value for r in rows)
    current_value = sum(r.market_value for r in rows)
    pl = current_value - total_invested

    best: Optional[HoldingMetrics] = None
    for r in rows:
        if best is None or r.profit_loss_percent > best.profit_loss_percent:
            best = r

    return PortfolioMetrics(
        total_invested=total_invested,
        current_value=current_value,
        profit_loss=pl,
        profit_loss_percent=safe_percent(pl, total_invested),
        sector_allocation=sector_allocation(rows),
        total_holdings=len(rows),
        unique_stocks=len({r.symbol for r in rows}),
        best_performer=best.symbol if best else None,
        best_return_percent=best.profit_loss_percent if best else 0.0,
        risk_score=risk_score(rows, stocks),
    )


def action_bucket(action: RecommendationAction) -> RecommendationAction:
    """Collapse WATCH into the SELL bucket."""
    if action == RecommendationAction.WATCH:
        return RecommendationAction.SELL
    return action


def count_recommendations(recs: Iterable[Recommendation]) -> Dict[str, int]:
    """Count recommendations per BUY / HOLD / SELL bucket."""
    counts = Counter(action_bucket(r.action).value for r in recs)
    return {
        bucket.value: counts.get(bucket.value, 0)
        for bucket in (RecommendationAction.BUY, RecommendationAction.HOLD, RecommendationAction.SELL)
    }


def filter_recommendations(
    recs: Iterable[Recommendation],
    bucket: Optional[RecommendationAction] = None,
) -> List[Recommendation]:
    if bucket is None:
        return list(recs)
    wanted = action_bucket(bucket)
    return [r for r in recs if action_bucket(r.action) == wanted]


def heat_summary(entries: Sequence[HeatEntry]) -> Dict[str, float]:
    """Counts per heat band plus the average heat score."""
    counts = Counter(classify_heat(e.heat_score).value for e in entries)
    summary: Dict[str, float] = {level.value: counts.get(level.value, 0) for level in HeatLevel}
    summary["average"] = (
        sum(e.heat_score for e in entries) / len(entries) if entries else 0.0
    )
    return summary


def signal_breakdown(stocks: Iterable[Stock]) -> Dict[str, int]:
    counts = Counter(classify_signal(s).value for s in stocks)
    return {signal.value: counts.get(signal.value, 0) for signal in MoneySignal}


def top_by_confidence(stocks: Iterable[Stock], n: int = 5) -> List[Stock]:
    """Highest-confidence stocks first; ties keep input order."""
    return sorted(stocks, key=lambda s: s.confidence_score, reverse=True)[:n]
