"""Domain layer - models and pure derivations."""

from .models import (
    AlertCondition,
    AnalyticsSnapshot,
    Diversification,
    HeatEntry,
    HeatLevel,
    HistoryPoint,
    Holder,
    Holding,
    MarketInsight,
    MarketMovers,
    MarketOverview,
    MoneySignal,
    PortfolioPerformance,
    PriceAlert,
    Recommendation,
    RecommendationAction,
    SectorPerformance,
    Stock,
)

__all__ = [
    "AlertCondition",
    "AnalyticsSnapshot",
    "Diversification",
    "HeatEntry",
    "HeatLevel",
    "HistoryPoint",
    "Holder",
    "Holding",
    "MarketInsight",
    "MarketMovers",
    "MarketOverview",
    "MoneySignal",
    "PortfolioPerformance",
    "PriceAlert",
    "Recommendation",
    "RecommendationAction",
    "SectorPerformance",
    "Stock",
]
