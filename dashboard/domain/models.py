"""Domain models for the portfolio dashboard."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _num(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON number (or null/garbage) to float."""
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _opt_num(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class HeatLevel(str, Enum):
    """Heat score bands."""
    OVERHEATED = "OVERHEATED"
    WARM = "WARM"
    NEUTRAL = "NEUTRAL"
    COOL = "COOL"


class MoneySignal(str, Enum):
    """Local smart/dumb money classification."""
    SMART_MONEY = "SMART_MONEY"
    DUMB_MONEY = "DUMB_MONEY"
    NEUTRAL = "NEUTRAL"


class RecommendationAction(str, Enum):
    """Backend recommendation actions."""
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    WATCH = "WATCH"

    @classmethod
    def parse(cls, raw: Any) -> "RecommendationAction":
        try:
            return cls(str(raw or "HOLD").strip().upper())
        except ValueError:
            return cls.HOLD


class AlertCondition(str, Enum):
    """Price alert trigger direction."""
    ABOVE = "above"
    BELOW = "below"


@dataclass(frozen=True)
class Holder:
    """Investor account."""
    id: str
    name: str
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Holder":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            email=data.get("email") or None,
        )


@dataclass(frozen=True)
class Stock:
    """Stock reference data; refreshed wholesale, never mutated locally."""
    symbol: str
    name: str = ""
    sector: str = "Other"
    exchange: str = ""
    base_price: float = 0.0
    current_price: float = 0.0
    volatility: float = 0.0
    confidence_score: float = 0.0
    volume: Optional[float] = None
    pe_ratio: Optional[float] = None
    change_percent: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stock":
        base_price = _num(data.get("basePrice"))
        current = data.get("currentPrice")
        return cls(
            symbol=str(data.get("symbol", "")).upper(),
            name=data.get("name") or "",
            sector=data.get("sector") or "Other",
            exchange=data.get("exchange") or "",
            base_price=base_price,
            current_price=_num(current) if current is not None else base_price,
            volatility=_num(data.get("volatility")),
            confidence_score=_num(data.get("confidenceScore")),
            volume=_opt_num(data.get("volume")),
            pe_ratio=_opt_num(data.get("peRatio")),
            change_percent=_opt_num(data.get("changePercent")),
        )


@dataclass(frozen=True)
class Holding:
    """Position of one stock owned by one holder."""
    stock_symbol: str
    quantity: int
    avg_price: float
    holder_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Holding":
        symbol = data.get("stockSymbol")
        if not symbol and isinstance(data.get("stock"), dict):
            symbol = data["stock"].get("symbol")
        holder_id = data.get("holderId")
        if holder_id is None and isinstance(data.get("holder"), dict):
            holder_id = data["holder"].get("id")
        avg_price = data.get("avgPrice")
        if avg_price is None:
            avg_price = data.get("price")
        return cls(
            stock_symbol=str(symbol or "").upper(),
            quantity=int(_num(data.get("quantity"))),
            avg_price=_num(avg_price),
            holder_id=str(holder_id) if holder_id is not None else None,
        )


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Per-holder aggregate served by the backend."""
    total_invested: float = 0.0
    current_value: float = 0.0
    profit_loss: float = 0.0
    average_return: float = 0.0
    risk_score: float = 0.0
    sector_allocation: Dict[str, float] = field(default_factory=dict)
    holder_name: Optional[str] = None
    total_holdings: int = 0
    unique_stocks: int = 0
    best_performer: str = "-"
    diversification_score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyticsSnapshot":
        allocation = data.get("sectorAllocation") or {}
        return cls(
            total_invested=_num(data.get("totalInvested")),
            current_value=_num(data.get("currentValue")),
            profit_loss=_num(data.get("profitLoss")),
            average_return=_num(data.get("averageReturn")),
            risk_score=_num(data.get("riskScore")),
            sector_allocation={str(k): _num(v) for k, v in allocation.items()},
            holder_name=data.get("holderName"),
            total_holdings=int(_num(data.get("totalHoldings"))),
            unique_stocks=int(_num(data.get("uniqueStocks"))),
            best_performer=data.get("bestPerformer") or "-",
            diversification_score=_opt_num(data.get("diversificationScore")),
        )


@dataclass(frozen=True)
class HistoryPoint:
    """Portfolio value at a point in time."""
    timestamp: datetime
    value: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryPoint":
        raw = data.get("date") or data.get("timestamp")
        try:
            ts = datetime.fromisoformat(str(raw))
        except (TypeError, ValueError):
            ts = datetime.now(timezone.utc)
        return cls(timestamp=ts, value=_num(data.get("value")))


@dataclass(frozen=True)
class Recommendation:
    """Backend recommendation for one stock."""
    symbol: str
    action: RecommendationAction
    score: float = 0.0
    reason: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        stock = data.get("stock") if isinstance(data.get("stock"), dict) else {}
        return cls(
            symbol=str(stock.get("symbol") or data.get("symbol") or "").upper(),
            name=stock.get("name") or data.get("name") or "",
            action=RecommendationAction.parse(data.get("action")),
            score=_num(data.get("score", data.get("confidenceScore"))),
            reason=data.get("reason") or "",
        )


@dataclass(frozen=True)
class HeatEntry:
    """Heat-map row for one stock."""
    symbol: str
    heat_score: float = 0.0
    heat_level: Optional[str] = None
    name: str = ""
    sector: str = ""
    current_price: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HeatEntry":
        return cls(
            symbol=str(data.get("symbol", "")).upper(),
            heat_score=_num(data.get("heatScore")),
            heat_level=data.get("heatLevel"),
            name=data.get("name") or "",
            sector=data.get("sector") or "",
            current_price=_num(data.get("currentPrice")),
        )


@dataclass(frozen=True)
class MarketMovers:
    """Top gainers, losers and most active stocks."""
    top_gainers: List[Stock] = field(default_factory=list)
    top_losers: List[Stock] = field(default_factory=list)
    most_active: List[Stock] = field(default_factory=list)
    overview: Optional["MarketOverview"] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketMovers":
        def rows(key: str) -> List[Stock]:
            return [Stock.from_dict(item) for item in data.get(key) or []]

        return cls(
            top_gainers=rows("topGainers"),
            top_losers=rows("topLosers"),
            most_active=rows("mostActive"),
            overview=MarketOverview.from_dict(data["summary"]) if data.get("summary") else None,
        )


@dataclass(frozen=True)
class Diversification:
    """Backend diversification report; displayed, never recomputed."""
    diversification_score: Optional[float] = None
    suggestions: List[str] = field(default_factory=list)
    sector_allocation: Dict[str, float] = field(default_factory=dict)
    exchange_allocation: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Diversification":
        return cls(
            diversification_score=_opt_num(data.get("diversificationScore")),
            suggestions=[str(s) for s in data.get("suggestions") or []],
            sector_allocation={str(k): _num(v) for k, v in (data.get("sectorAllocation") or {}).items()},
            exchange_allocation={str(k): _num(v) for k, v in (data.get("exchangeAllocation") or {}).items()},
        )


@dataclass(frozen=True)
class SectorPerformance:
    """Sector-level performance row."""
    name: str
    display_name: str = ""
    day_change_percent: float = 0.0
    week_change: float = 0.0
    month_change: float = 0.0
    stock_count: int = 0
    sentiment: str = "NEUTRAL"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SectorPerformance":
        name = data.get("name") or data.get("sector") or "Other"
        return cls(
            name=name,
            display_name=data.get("displayName") or name,
            day_change_percent=_num(data.get("dayChangePercent")),
            week_change=_num(data.get("weekChange")),
            month_change=_num(data.get("monthChange")),
            stock_count=int(_num(data.get("stockCount"))),
            sentiment=data.get("sentiment") or "NEUTRAL",
        )

    @classmethod
    def list_from_payload(cls, data: Any) -> List["SectorPerformance"]:
        """Accept either a bare list or the {"sectors": [...]} envelope."""
        rows = data.get("sectors") if isinstance(data, dict) else data
        return [cls.from_dict(item) for item in rows or []]


@dataclass(frozen=True)
class MarketOverview:
    """Market breadth summary."""
    total_stocks: int = 0
    advancing_stocks: int = 0
    declining_stocks: int = 0
    market_sentiment: float = 0.0
    overall_trend: str = "NEUTRAL"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketOverview":
        return cls(
            total_stocks=int(_num(data.get("totalStocks"))),
            advancing_stocks=int(_num(data.get("advancingStocks"))),
            declining_stocks=int(_num(data.get("decliningStocks"))),
            market_sentiment=_num(data.get("marketSentiment")),
            overall_trend=data.get("overallTrend") or "NEUTRAL",
        )


@dataclass(frozen=True)
class PortfolioPerformance:
    """Whole-portfolio performance with the backend's value history."""
    total_value: float = 0.0
    total_gain: float = 0.0
    total_gain_percent: float = 0.0
    day_change: float = 0.0
    day_change_percent: float = 0.0
    history: List[HistoryPoint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PortfolioPerformance":
        return cls(
            total_value=_num(data.get("totalValue")),
            total_gain=_num(data.get("totalGain")),
            total_gain_percent=_num(data.get("totalGainPercent")),
            day_change=_num(data.get("dayChange")),
            day_change_percent=_num(data.get("dayChangePercent")),
            history=[HistoryPoint.from_dict(p) for p in data.get("history") or []],
        )


@dataclass(frozen=True)
class MarketInsight:
    """AI market insight headline block."""
    title: str = ""
    summary: str = ""
    outlook: str = "NEUTRAL"
    confidence: float = 0.0
    trending_symbols: List[str] = field(default_factory=list)
    risk_alerts: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketInsight":
        outlook = data.get("outlook") or {}
        return cls(
            title=data.get("title") or "",
            summary=data.get("summary") or "",
            outlook=outlook.get("overall") or "NEUTRAL",
            confidence=_num(outlook.get("confidence")),
            trending_symbols=[
                str(t.get("symbol", "")).upper() for t in data.get("trendingStocks") or []
            ],
            risk_alerts=[
                r.get("description") or "" for r in data.get("riskAlerts") or []
            ],
        )


@dataclass
class PriceAlert:
    """User-defined price alert kept in local storage."""
    symbol: str
    condition: AlertCondition
    price: float
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "condition": self.condition.value,
            "price": self.price,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceAlert":
        return cls(
            symbol=str(data["symbol"]).upper(),
            condition=AlertCondition(str(data["condition"]).lower()),
            price=float(data["price"]),
            created_at=data.get("createdAt") or "",
        )
