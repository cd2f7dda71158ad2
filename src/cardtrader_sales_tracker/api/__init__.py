"""API layer with the CardTrader client, retry logic, and disk caching."""

from cardtrader_sales_tracker.api.cache import CacheEntry, DiskCache
from cardtrader_sales_tracker.api.client import CardTraderAPIError, CardTraderClient
from cardtrader_sales_tracker.api.gateway import SalesDataGateway, games_from_categories
from cardtrader_sales_tracker.api.retry import RetryConfig, is_transient, with_retry

__all__ = [
    "CacheEntry",
    "CardTraderAPIError",
    "CardTraderClient",
    "DiskCache",
    "RetryConfig",
    "SalesDataGateway",
    "games_from_categories",
    "is_transient",
    "with_retry",
]
