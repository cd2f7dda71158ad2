"""Cached access to reference data and order history."""

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from cardtrader_sales_tracker.api.cache import DiskCache
from cardtrader_sales_tracker.api.client import CardTraderAPIError, CardTraderClient
from cardtrader_sales_tracker.config import Settings
from cardtrader_sales_tracker.core.models import Catalog, Expansion, Game, Order

logger = logging.getLogger(__name__)

CATEGORIES_KEY = "categories"
EXPANSIONS_KEY = "expansions"
ORDERS_KEY = "orders_all"


def build_suffix_pattern(suffixes: Iterable[str]) -> re.Pattern[str] | None:
    """
    Compile a pattern matching a product-type suffix and everything after it.

    Parameters
    ----------
    suffixes : Iterable[str]
        Suffix words (e.g., 'Single Card', 'Booster')

    Returns
    -------
    re.Pattern[str] | None
        Case-insensitive pattern, or None if there are no suffixes

    """
    words = [re.escape(s) for s in suffixes if s]
    if not words:
        return None
    return re.compile(r" (?:" + "|".join(words) + r").*", re.IGNORECASE | re.DOTALL)


def games_from_categories(categories: Iterable[Any], suffixes: Iterable[str]) -> list[Game]:
    """
    Derive the game list from product categories.

    The first category seen for each game_id names the game, with its
    product-type suffix stripped.

    Parameters
    ----------
    categories : Iterable[Any]
        Raw category objects ({id, name, game_id})
    suffixes : Iterable[str]
        Product-type suffix words

    Returns
    -------
    list[Game]
        Games sorted by name

    """
    pattern = build_suffix_pattern(suffixes)
    games: dict[int, Game] = {}
    for category in categories:
        if not isinstance(category, dict):
            continue
        game_id = category.get("game_id")
        name = category.get("name")
        if not isinstance(game_id, int) or not isinstance(name, str) or game_id in games:
            continue
        if pattern is not None:
            name = pattern.sub("", name, count=1)
        games[game_id] = Game(id=game_id, name=name.strip())

    return sorted(games.values(), key=lambda g: g.name.lower())


class SalesDataGateway:
    """
    Get-or-fetch access to CardTrader data backed by a disk cache.

    Parameters
    ----------
    client : CardTraderClient
        API client used on cache misses
    cache : DiskCache
        Cache for raw payloads
    settings : Settings
        TTLs and category suffixes

    """

    def __init__(self, client: CardTraderClient, cache: DiskCache, settings: Settings) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings

    def _cached_list(self, key: str, ttl: float, fetch: Callable[[], Any]) -> list[Any]:
        data = self.cache.get_or_fetch(key, ttl, fetch)
        if not isinstance(data, list):
            msg = f"Unexpected cached payload for {key}: expected a list"
            raise CardTraderAPIError(msg)
        return data

    def load_games(self) -> list[Game]:
        """
        Load games, derived from cached categories.

        Returns
        -------
        list[Game]
            Games sorted by name

        """
        categories = self._cached_list(CATEGORIES_KEY, self.settings.cache_ttl_seconds, self.client.get_categories)
        return games_from_categories(categories, self.settings.category_suffixes)

    def load_expansions(self) -> list[Expansion]:
        """
        Load all expansions.

        Returns
        -------
        list[Expansion]
            Expansions in API order; malformed entries are skipped

        """
        raw = self._cached_list(EXPANSIONS_KEY, self.settings.cache_ttl_seconds, self.client.get_expansions)
        expansions = [e for e in (Expansion.from_api(r) for r in raw) if e is not None]
        if len(expansions) != len(raw):
            logger.debug("Skipped %d malformed expansions", len(raw) - len(expansions))
        return expansions

    def load_catalog(self) -> Catalog:
        """
        Load games and expansions.

        Returns
        -------
        Catalog
            Reference data for the browser

        Raises
        ------
        CardTraderAPIError
            If either list cannot be fetched

        """
        return Catalog(games=self.load_games(), expansions=self.load_expansions())

    def load_orders(self, on_page: Callable[[int], None] | None = None) -> list[Order]:
        """
        Load the complete order history.

        Parameters
        ----------
        on_page : Callable[[int], None] | None
            Progress callback forwarded to the client on a cache miss

        Returns
        -------
        list[Order]
            Parsed orders; malformed entries are skipped

        """
        raw = self._cached_list(
            ORDERS_KEY,
            self.settings.orders_cache_ttl_seconds,
            lambda: self.client.get_orders(on_page=on_page),
        )
        orders = [o for o in (Order.from_api(r) for r in raw) if o is not None]
        logger.debug("Loaded %d orders", len(orders))
        return orders
