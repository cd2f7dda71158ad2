"""Packaged defaults and their loader."""

from cardtrader_sales_tracker.data.loader import (
    get_category_suffixes,
    load_defaults,
)

__all__ = [
    "get_category_suffixes",
    "load_defaults",
]
