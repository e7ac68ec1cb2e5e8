"""Price alerts repository (data access layer)."""

import logging
import math
from datetime import datetime, timezone
from typing import List

from ..config import PRICE_ALERTS_KEY
from ..domain.models import AlertCondition, PriceAlert
from ..errors import ValidationError
from .local_store import LocalStore
from .watchlist_repo import normalize_symbol

logger = logging.getLogger(__name__)


class AlertsRepo:
    """Ordered list of price alerts under the fixed alerts key."""

    def __init__(self, store: LocalStore):
        self.store = store

    def get_all(self) -> List[PriceAlert]:
        raw = self.store.get_item(PRICE_ALERTS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Price alerts payload is not a list, ignoring it")
            return []
        alerts: List[PriceAlert] = []
        for item in raw:
            try:
                alerts.append(PriceAlert.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed price alert %r: %s", item, exc)
        return alerts

    def _save(self, alerts: List[PriceAlert]) -> None:
        self.store.set_item(PRICE_ALERTS_KEY, [a.to_dict() for a in alerts])

    def add(self, symbol: str, condition: str, price: float) -> PriceAlert:
        """Validate and append an alert. Returns the created alert."""
        symbol = normalize_symbol(symbol or "")
        if not symbol:
            raise ValidationError("Please enter a stock symbol", field="symbol")
        try:
            cond = AlertCondition(str(condition).strip().lower())
        except ValueError:
            raise ValidationError("Condition must be 'above' or 'below'", field="condition")
        try:
            price = float(price)
        except (TypeError, ValueError):
            raise ValidationError("Please enter a valid price", field="price")
        if not math.isfinite(price) or price <= 0:
            raise ValidationError("Price must be greater than 0", field="price")

        alert = PriceAlert(
            symbol=symbol,
            condition=cond,
            price=price,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        alerts = self.get_all()
        alerts.append(alert)
        self._save(alerts)
        logger.debug("Added alert %s %s %.2f", symbol, cond.value, price)
        return alert

    def remove(self, index: int) -> bool:
        """Remove alert at position. Returns True if removed."""
        alerts = self.get_all()
        if index < 0 or index >= len(alerts):
            return False
        removed = alerts.pop(index)
        self._save(alerts)
        logger.debug("Removed alert %s at index %d", removed.symbol, index)
        return True

    def count(self) -> int:
        return len(self.get_all())
