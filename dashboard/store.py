"""In-memory state store holding the latest fetched dashboard data."""

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple

from .domain.models import (
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
from .errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 20

# Collections that belong to the selected holder and are dropped on switch
HOLDER_SCOPED = ("holdings", "analytics")


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable view of the store handed to renderers."""
    selected_holder_id: Optional[str] = None
    holders: Tuple[Holder, ...] = ()
    holdings: Tuple[Holding, ...] = ()
    stocks: Tuple[Stock, ...] = ()
    analytics: Optional[AnalyticsSnapshot] = None
    recommendations: Tuple[Recommendation, ...] = ()
    heat_map: Tuple[HeatEntry, ...] = ()
    movers: Optional[MarketMovers] = None
    overview: Optional[MarketOverview] = None
    sectors: Tuple[SectorPerformance, ...] = ()
    insights: Optional[MarketInsight] = None
    diversification: Optional[Diversification] = None
    performance: Optional[PortfolioPerformance] = None
    performance_history: Tuple[HistoryPoint, ...] = ()
    history: Tuple[HistoryPoint, ...] = ()
    failures: Mapping[str, FetchError] = field(default_factory=dict)

    @property
    def selected_holder(self) -> Optional[Holder]:
        for holder in self.holders:
            if holder.id == self.selected_holder_id:
                return holder
        return None


_COLLECTIONS = {
    "holders",
    "holdings",
    "stocks",
    "analytics",
    "recommendations",
    "heat_map",
    "movers",
    "overview",
    "sectors",
    "insights",
    "diversification",
    "performance",
    "performance_history",
}

_SEQUENCES = {
    "holders", "holdings", "stocks", "recommendations", "heat_map", "sectors", "performance_history",
}


class StateStore:
    """
    Latest successfully fetched value per collection.

    Written only by the refresh controller, read by renderers through
    snapshot(). Not transactional across collections: a failed collection
    keeps its previous value.
    """

    def __init__(self, history_capacity: int = DEFAULT_HISTORY_CAPACITY):
        if history_capacity < 1:
            raise ValueError("history_capacity must be >= 1")
        self._snapshot = StateSnapshot()
        self._history: Deque[HistoryPoint] = deque(maxlen=history_capacity)
        self._failures: Dict[str, FetchError] = {}

    @property
    def history_capacity(self) -> int:
        return self._history.maxlen

    @property
    def selected_holder_id(self) -> Optional[str]:
        return self._snapshot.selected_holder_id

    @property
    def failures(self) -> Dict[str, FetchError]:
        return dict(self._failures)

    def snapshot(self) -> StateSnapshot:
        return replace(
            self._snapshot,
            history=tuple(self._history),
            failures=dict(self._failures),
        )

    def update(self, partial: Mapping[str, Any]) -> None:
        """Merge one refresh cycle's successful collections."""
        unknown = set(partial) - _COLLECTIONS
        if unknown:
            raise KeyError(f"Unknown state collections: {sorted(unknown)}")

        changes = {
            key: tuple(value) if key in _SEQUENCES else value
            for key, value in partial.items()
        }
        self._snapshot = replace(self._snapshot, **changes)
        for key in partial:
            self._failures.pop(key, None)
        logger.debug("State updated: %s", sorted(partial))

    def record_failure(self, name: str, error: FetchError) -> None:
        if name not in _COLLECTIONS:
            raise KeyError(f"Unknown state collection: {name}")
        self._failures[name] = error

    def append_history(self, value: float, timestamp: Optional[datetime] = None) -> HistoryPoint:
        """Append to the bounded history buffer; oldest point is evicted first."""
        point = HistoryPoint(timestamp=timestamp or datetime.now(timezone.utc), value=value)
        self._history.append(point)
        return point

    def history(self) -> List[HistoryPoint]:
        return list(self._history)

    def select_holder(self, holder_id: Optional[str]) -> None:
        """Switch holder and drop everything scoped to the previous one."""
        if holder_id == self._snapshot.selected_holder_id:
            return
        cleared = {key: () if key in _SEQUENCES else None for key in HOLDER_SCOPED}
        self._snapshot = replace(self._snapshot, selected_holder_id=holder_id, **cleared)
        self._history.clear()
        for key in HOLDER_SCOPED:
            self._failures.pop(key, None)
        logger.info("Selected holder: %s", holder_id)
