"""Typed access to the dashboard backend's REST endpoints."""

import logging
from typing import Any, Callable, Dict, Optional

from ..domain.models import (
    AnalyticsSnapshot,
    Diversification,
    HeatEntry,
    HistoryPoint,
    Holder,
    Holding,
    MarketInsight,
    MarketMovers,
    MarketOverview,
    PortfolioPerformance,
    Recommendation,
    SectorPerformance,
    Stock,
)
from ..errors import DecodeError
from ..http_client import ApiClient, FetchResult

logger = logging.getLogger(__name__)


def _list_of(factory: Callable[[Dict[str, Any]], Any]) -> Callable[[Any], list]:
    def parse(data: Any) -> list:
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON array, got {type(data).__name__}")
        return [factory(item) for item in data]
    return parse


def _parse(result: FetchResult, parser: Callable[[Any], Any]) -> FetchResult:
    """Map raw JSON to models; shape errors become DecodeError."""
    if not result.success:
        return result
    try:
        parsed = parser(result.data)
    except (TypeError, ValueError, KeyError, AttributeError, OverflowError) as exc:
        logger.error("Unexpected payload shape for %s: %s", result.path, exc)
        return FetchResult.fail(result.path, DecodeError(f"Unexpected payload: {exc}", path=result.path))
    return FetchResult(success=True, path=result.path, data=parsed, timestamp=result.timestamp)


class BackendProvider:
    """One method per backend endpoint; each returns a FetchResult of models."""

    def __init__(self, client: ApiClient):
        self.client = client

    # ==================== Holders & holdings ====================

    async def get_holders(self) -> FetchResult:
        return _parse(await self.client.get("/holders"), _list_of(Holder.from_dict))

    async def add_holder(self, name: str, email: Optional[str] = None) -> FetchResult:
        body = {"name": name}
        if email:
            body["email"] = email
        return _parse(await self.client.post("/holders/add", body), Holder.from_dict)

    async def get_holdings(self, holder_id: str) -> FetchResult:
        return _parse(await self.client.get(f"/holdings/{holder_id}"), _list_of(Holding.from_dict))

    async def add_holding(self, holder_id: str, symbol: str, quantity: int, avg_price: float) -> FetchResult:
        body = {"stockSymbol": symbol, "quantity": quantity, "avgPrice": avg_price}
        return _parse(await self.client.post(f"/holdings/add/{holder_id}", body), Holding.from_dict)

    # ==================== Stocks ====================

    async def get_stocks(self, exchange: Optional[str] = None) -> FetchResult:
        params = {"exchange": exchange} if exchange else None
        return _parse(await self.client.get("/stocks", params=params), _list_of(Stock.from_dict))

    # ==================== Portfolio ====================

    async def get_portfolio_summary(self, holder_id: str) -> FetchResult:
        return _parse(await self.client.get(f"/portfolio/summary/{holder_id}"), AnalyticsSnapshot.from_dict)

    async def get_analytics(self, holder_id: str) -> FetchResult:
        return _parse(await self.client.get(f"/portfolio/analytics/{holder_id}"), AnalyticsSnapshot.from_dict)

    async def get_performance(self) -> FetchResult:
        return _parse(await self.client.get("/portfolio/performance"), PortfolioPerformance.from_dict)

    async def get_performance_history(self, days: int = 30) -> FetchResult:
        return _parse(
            await self.client.get("/portfolio/performance/history", params={"days": days}),
            _list_of(HistoryPoint.from_dict),
        )

    async def get_diversification(self) -> FetchResult:
        return _parse(await self.client.get("/portfolio/diversification"), Diversification.from_dict)

    # ==================== Market ====================

    async def get_market_overview(self) -> FetchResult:
        return _parse(await self.client.get("/market/overview"), MarketOverview.from_dict)

    async def get_market_movers(self) -> FetchResult:
        return _parse(await self.client.get("/market/movers"), MarketMovers.from_dict)

    async def get_top_gainers(self) -> FetchResult:
        return _parse(await self.client.get("/market/top-gainers"), _list_of(Stock.from_dict))

    async def get_top_losers(self) -> FetchResult:
        return _parse(await self.client.get("/market/top-losers"), _list_of(Stock.from_dict))

    async def get_most_active(self) -> FetchResult:
        return _parse(await self.client.get("/market/most-active"), _list_of(Stock.from_dict))

    async def get_sectors(self) -> FetchResult:
        return _parse(await self.client.get("/sectors"), SectorPerformance.list_from_payload)

    async def get_ai_insights(self) -> FetchResult:
        return _parse(await self.client.get("/ai-insights"), MarketInsight.from_dict)

    # ==================== Recommendations & heat map ====================

    async def get_recommendations(self, limit: Optional[int] = None, action: Optional[str] = None) -> FetchResult:
        """
        Fetch recommendations.

        Args:
            limit: Maximum rows
            action: "buy" or "sell" to hit the filtered endpoints
        """
        path = "/recommendations"
        if action in ("buy", "sell"):
            path = f"{path}/{action}"
        params = {"limit": limit} if limit else None
        return _parse(await self.client.get(path, params=params), _list_of(Recommendation.from_dict))

    async def get_legacy_recommendations(self) -> FetchResult:
        return _parse(await self.client.post("/stocks/recommendations", {}), _list_of(Recommendation.from_dict))

    async def get_heat_map(self, realtime: bool = False) -> FetchResult:
        path = "/dumb-money/heat-map/realtime" if realtime else "/dumb-money/heat-map"
        return _parse(await self.client.get(path), _list_of(HeatEntry.from_dict))
