"""Core functionality including models, filtering, and sales aggregation."""

from cardtrader_sales_tracker.core.aggregator import SalesAggregator
from cardtrader_sales_tracker.core.models import (
    CardSales,
    Catalog,
    Expansion,
    ExpansionSales,
    Game,
    LineItem,
    Order,
    SalesReport,
)
from cardtrader_sales_tracker.core.money import format_usd
from cardtrader_sales_tracker.core.search import clamp_cursor, filter_by_name

__all__ = [
    "CardSales",
    "Catalog",
    "Expansion",
    "ExpansionSales",
    "Game",
    "LineItem",
    "Order",
    "SalesAggregator",
    "SalesReport",
    "clamp_cursor",
    "filter_by_name",
    "format_usd",
]
