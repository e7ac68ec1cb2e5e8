"""Configuration management for the portfolio dashboard client."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Backend
    api_base_url: str = "http://localhost:8080"

    # Network settings
    http_timeout: int = 10
    max_concurrent_requests: int = 5

    # Refresh loop
    refresh_interval: int = 30  # seconds
    history_capacity: int = 20
    history_days: int = 30
    recommendation_limit: int = 30
    default_holder_id: Optional[str] = None

    # Local storage (watchlist, price alerts)
    local_store_path: str = "dashboard_local.db"

    # Rendering
    chart_output_dir: str = "charts"
    currency_symbol: str = "₹"
    number_locale: str = "en-IN"

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        base_url = os.getenv("DASHBOARD_API_URL", "").strip() or "http://localhost:8080"
        history_capacity = int(os.getenv("HISTORY_CAPACITY", "20"))
        if history_capacity < 1:
            raise ValueError("HISTORY_CAPACITY must be >= 1")

        return cls(
            api_base_url=base_url.rstrip("/"),
            http_timeout=int(os.getenv("HTTP_TIMEOUT", "10")),
            max_concurrent_requests=int(os.getenv("MAX_CONCURRENT_REQUESTS", "5")),
            refresh_interval=int(os.getenv("REFRESH_INTERVAL", "30")),
            history_capacity=history_capacity,
            history_days=int(os.getenv("HISTORY_DAYS", "30")),
            recommendation_limit=int(os.getenv("RECOMMENDATION_LIMIT", "30")),
            default_holder_id=os.getenv("DEFAULT_HOLDER_ID", "").strip() or None,
            local_store_path=os.getenv("LOCAL_STORE_PATH", "dashboard_local.db"),
            chart_output_dir=os.getenv("CHART_OUTPUT_DIR", "charts"),
            currency_symbol=os.getenv("CURRENCY_SYMBOL", "₹").strip() or "₹",
            number_locale=os.getenv("NUMBER_LOCALE", "en-IN").strip() or "en-IN",
        )


# Local storage keys (fixed, no expiry)
WATCHLIST_KEY = "watchlist"
PRICE_ALERTS_KEY = "priceAlerts"

# Mount points for rendered views
MOUNT_SUMMARY = "summary"
MOUNT_HOLDINGS = "holdingsTable"
MOUNT_ANALYTICS = "analytics"
MOUNT_RECOMMENDATIONS = "recommendationsGrid"
MOUNT_TOP_PICKS = "recommendationTable"
MOUNT_MOVERS = "marketMovers"
MOUNT_HEAT_MAP = "heatMapTable"
MOUNT_STOCKS = "stocksTable"
MOUNT_SECTORS = "sectorPerformance"
MOUNT_WATCHLIST = "watchlistTable"
MOUNT_ALERTS = "alertsList"
MOUNT_DIVERSIFICATION = "diversification"
MOUNT_INSIGHTS = "aiInsights"
MOUNT_PERFORMANCE = "portfolioPerformance"
MOUNT_OVERVIEW = "marketOverview"

# Chart mount points
CHART_ALLOCATION = "pieChart"
CHART_SECTOR = "sectorChart"
CHART_HISTORY = "historyChart"
CHART_RISK = "riskGauge"
CHART_SIGNALS = "signalChart"
CHART_PERFORMANCE = "performanceChart"
CHART_DIVERSIFICATION_SECTOR = "diversificationSectorChart"
CHART_DIVERSIFICATION_EXCHANGE = "diversificationExchangeChart"
