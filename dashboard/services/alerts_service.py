"""Price alert evaluation against the latest stock prices."""

import logging
from dataclasses import dataclass
from typing import Iterable, List

from ..domain.metrics import index_stocks
from ..domain.models import AlertCondition, PriceAlert, Stock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggeredAlert:
    """Alert whose condition holds for the current price."""
    index: int
    alert: PriceAlert
    current_price: float


def is_triggered(alert: PriceAlert, current_price: float) -> bool:
    if alert.condition == AlertCondition.ABOVE:
        return current_price >= alert.price
    return current_price <= alert.price


def evaluate_alerts(alerts: Iterable[PriceAlert], stocks: Iterable[Stock]) -> List[TriggeredAlert]:
    """
    Check every alert against current stock prices.

    Alerts for symbols missing from the stock list are never triggered.

    Returns:
        Triggered alerts with their position in the stored list
    """
    by_symbol = index_stocks(stocks)
    triggered: List[TriggeredAlert] = []
    for index, alert in enumerate(alerts):
        stock = by_symbol.get(alert.symbol)
        if stock is None:
            continue
        if is_triggered(alert, stock.current_price):
            triggered.append(TriggeredAlert(index=index, alert=alert, current_price=stock.current_price))
    if triggered:
        logger.info("%d price alert(s) triggered", len(triggered))
    return triggered
