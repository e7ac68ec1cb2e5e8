"""
Portfolio form actions - add holders and holdings with client-side checks.

Validation failures raise ValidationError and never reach the network.
"""

import logging
import math
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from ..domain.models import Holder, Holding, Stock
from ..errors import ValidationError
from ..providers.backend import BackendProvider

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def validate_holder_form(name: Optional[str], email: Optional[str] = None) -> tuple:
    """Return cleaned (name, email) or raise ValidationError."""
    name = (name or "").strip()
    email = (email or "").strip() or None
    if not name:
        raise ValidationError("Please enter a holder name!", field="name")
    return name, email


def validate_holding_form(
    holder_id: Optional[str],
    symbol: Optional[str],
    quantity: Any,
    avg_price: Any,
) -> tuple:
    """
    Return cleaned (holder_id, symbol, quantity, avg_price) or raise.

    Quantity must be a whole number >= 1 and price must be > 0.
    """
    if not holder_id:
        raise ValidationError("Please add a holder first!", field="holder")

    symbol = (symbol or "").strip().upper()
    if not symbol:
        raise ValidationError("Please fill in all fields!", field="symbol")

    try:
        qty_float = float(quantity)
    except (TypeError, ValueError):
        raise ValidationError("Please enter a valid quantity", field="quantity")
    if not math.isfinite(qty_float) or qty_float != int(qty_float):
        raise ValidationError("Quantity must be a whole number", field="quantity")
    qty = int(qty_float)
    if qty < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")

    try:
        price = float(avg_price)
    except (TypeError, ValueError):
        raise ValidationError("Please enter a valid price", field="avg_price")
    if not math.isfinite(price) or price <= 0:
        raise ValidationError("Price must be greater than 0", field="avg_price")

    return str(holder_id), symbol, qty, price


def search_stocks(stocks: Iterable[Stock], query: str, limit: int = 5) -> List[Stock]:
    """Match query against symbol or name (case-insensitive); needs 2+ chars."""
    query = (query or "").strip().upper()
    if len(query) < MIN_SEARCH_LENGTH:
        return []
    results = [s for s in stocks if query in s.symbol or query in s.name.upper()]
    return results[:limit]


class PortfolioService:
    """Submits validated holder/holding forms to the backend."""

    def __init__(
        self,
        backend: BackendProvider,
        on_added: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self.backend = backend
        self.on_added = on_added

    async def _after_add(self) -> None:
        if self.on_added is not None:
            await self.on_added()

    async def add_holder(self, name: Optional[str], email: Optional[str] = None) -> Holder:
        """
        Create a holder.

        Raises:
            ValidationError: name missing
            FetchError: backend call failed
        """
        name, email = validate_holder_form(name, email)
        result = await self.backend.add_holder(name, email)
        holder = result.unwrap()
        logger.info("Holder added: %s", name)
        await self._after_add()
        return holder

    async def add_holding(
        self,
        holder_id: Optional[str],
        symbol: Optional[str],
        quantity: Any,
        avg_price: Any,
    ) -> Holding:
        """
        Record a transaction for a holder.

        Raises:
            ValidationError: missing holder or invalid fields
            FetchError: backend call failed
        """
        holder_id, symbol, qty, price = validate_holding_form(holder_id, symbol, quantity, avg_price)
        result = await self.backend.add_holding(holder_id, symbol, qty, price)
        holding = result.unwrap()
        logger.info("Holding added for holder %s: %s x%d @ %.2f", holder_id, symbol, qty, price)
        await self._after_add()
        return holding
