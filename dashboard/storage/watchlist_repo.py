"""Watchlist repository (data access layer)."""

import logging
from typing import List

from ..config import WATCHLIST_KEY
from .local_store import LocalStore

logger = logging.getLogger(__name__)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


class WatchlistRepo:
    """Ordered list of watched symbols under the fixed watchlist key."""

    def __init__(self, store: LocalStore):
        self.store = store

    def get_all(self) -> List[str]:
        """Symbols in insertion order."""
        items = self.store.get_item(WATCHLIST_KEY, [])
        if not isinstance(items, list):
            logger.warning("Watchlist payload is not a list, ignoring it")
            return []
        return [str(s) for s in items]

    def add(self, symbol: str) -> bool:
        """Add symbol. Returns True if added, False if empty or already present."""
        symbol = normalize_symbol(symbol)
        if not symbol:
            return False
        items = self.get_all()
        if symbol in items:
            logger.debug("%s already in watchlist", symbol)
            return False
        items.append(symbol)
        self.store.set_item(WATCHLIST_KEY, items)
        logger.debug("Added %s to watchlist", symbol)
        return True

    def remove(self, symbol: str) -> bool:
        """Remove symbol. Returns True if removed, False if not found."""
        symbol = normalize_symbol(symbol)
        items = self.get_all()
        if symbol not in items:
            return False
        self.store.set_item(WATCHLIST_KEY, [s for s in items if s != symbol])
        logger.debug("Removed %s from watchlist", symbol)
        return True

    def contains(self, symbol: str) -> bool:
        return normalize_symbol(symbol) in self.get_all()

    def count(self) -> int:
        return len(self.get_all())
