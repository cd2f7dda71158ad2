"""Tests for game derivation and the cached data gateway."""

import pytest

from cardtrader_sales_tracker.api.cache import DiskCache
from cardtrader_sales_tracker.api.client import CardTraderAPIError
from cardtrader_sales_tracker.api.gateway import (
    ORDERS_KEY,
    SalesDataGateway,
    build_suffix_pattern,
    games_from_categories,
)
from cardtrader_sales_tracker.config import Settings
from cardtrader_sales_tracker.core.models import Game
from cardtrader_sales_tracker.data import get_category_suffixes

SUFFIXES = ["Single Card", "Booster", "Sealed"]


class FakeClient:
    """Stands in for CardTraderClient, counting calls."""

    def __init__(self, categories=None, expansions=None, orders=None) -> None:
        self.categories = categories or []
        self.expansions = expansions or []
        self.orders = orders or []
        self.calls: list[str] = []

    def get_categories(self):
        self.calls.append("categories")
        return self.categories

    def get_expansions(self):
        self.calls.append("expansions")
        return self.expansions

    def get_orders(self, on_page=None):
        self.calls.append("orders")
        if on_page:
            on_page(1)
        return self.orders

    def close(self) -> None:
        pass


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(cache_dir=tmp_path, category_suffixes=SUFFIXES)


def test_games_from_categories():
    """The first category per game names it, with its suffix stripped."""
    categories = [
        {"id": 1, "name": "Pokemon Single Card", "game_id": 5},
        {"id": 2, "name": "Magic: the Gathering Single Card", "game_id": 1},
        {"id": 3, "name": "Magic: the Gathering Booster Box", "game_id": 1},
        {"id": 4, "name": "Pokemon Sealed Products", "game_id": 5},
    ]

    assert games_from_categories(categories, SUFFIXES) == [
        Game(id=1, name="Magic: the Gathering"),
        Game(id=5, name="Pokemon"),
    ]


def test_games_from_categories_skips_malformed():
    categories = [
        {"id": 1, "name": "No game"},
        {"id": 2, "game_id": 3},
        "garbage",
        {"id": 4, "name": "yu-gi-oh! single card", "game_id": 4},
    ]

    assert games_from_categories(categories, SUFFIXES) == [Game(id=4, name="yu-gi-oh!")]


def test_games_sorted_case_insensitively():
    categories = [
        {"name": "zeta Single Card", "game_id": 1},
        {"name": "Alpha Single Card", "game_id": 2},
        {"name": "beta Single Card", "game_id": 3},
    ]

    assert [g.name for g in games_from_categories(categories, SUFFIXES)] == ["Alpha", "beta", "zeta"]


def test_build_suffix_pattern():
    pattern = build_suffix_pattern(["Single Card"])

    assert pattern.sub("", "Flesh and Blood single card", count=1) == "Flesh and Blood"
    assert build_suffix_pattern([]) is None


def test_packaged_suffixes_strip_common_categories():
    suffixes = get_category_suffixes()
    categories = [
        {"name": "Magic: the Gathering Single Card", "game_id": 1},
        {"name": "One Piece Card Game Single Card", "game_id": 2},
    ]

    names = [g.name for g in games_from_categories(categories, suffixes)]

    assert "Magic: the Gathering" in names


def test_load_catalog_caches_reference_data(settings):
    client = FakeClient(
        categories=[{"id": 1, "name": "Magic Single Card", "game_id": 1}],
        expansions=[
            {"id": 10, "game_id": 1, "code": "lea", "name": "Alpha"},
            {"id": 11, "game_id": 1},
        ],
    )
    gateway = SalesDataGateway(client, DiskCache(settings.cache_dir), settings)

    first = gateway.load_catalog()
    second = gateway.load_catalog()

    assert first == second
    assert [g.name for g in first.games] == ["Magic"]
    # Malformed expansion is skipped
    assert [e.name for e in first.expansions] == ["Alpha"]
    assert client.calls == ["categories", "expansions"]


def test_load_orders_uses_own_cache_key(settings, raw_orders):
    client = FakeClient(orders=raw_orders)
    gateway = SalesDataGateway(client, DiskCache(settings.cache_dir), settings)
    pages = []

    orders = gateway.load_orders(on_page=pages.append)
    again = gateway.load_orders(on_page=pages.append)

    assert [o.id for o in orders] == [1001, 1002, 1003]
    assert orders == again
    assert client.calls == ["orders"]
    assert pages == [1]
    assert (settings.cache_dir / f"{ORDERS_KEY}.json").exists()


def test_api_failure_propagates(settings):
    class FailingClient(FakeClient):
        def get_expansions(self):
            raise CardTraderAPIError("HTTP error 500")

    gateway = SalesDataGateway(FailingClient(), DiskCache(settings.cache_dir), settings)

    with pytest.raises(CardTraderAPIError, match="500"):
        gateway.load_expansions()


def test_unexpected_cached_payload_raises(settings):
    cache = DiskCache(settings.cache_dir)
    cache.set("expansions", {"not": "a list"})
    gateway = SalesDataGateway(FakeClient(), cache, settings)

    with pytest.raises(CardTraderAPIError, match="expected a list"):
        gateway.load_expansions()
