"""Pytest configuration and shared fixtures for cardtrader-sales-tracker tests."""

import pytest

from cardtrader_sales_tracker.core.models import Catalog, Expansion, Game, Order


@pytest.fixture
def catalog() -> Catalog:
    """Two games with two expansions each."""
    return Catalog(
        games=[Game(id=1, name="Magic"), Game(id=2, name="Pokemon")],
        expansions=[
            Expansion(id=10, game_id=1, code="lea", name="Alpha"),
            Expansion(id=11, game_id=1, code="leb", name="Beta"),
            Expansion(id=20, game_id=2, code="base1", name="Base Set"),
            Expansion(id=21, game_id=2, code="jungle", name="Jungle"),
        ],
    )


@pytest.fixture
def raw_orders() -> list[dict]:
    """Order payloads in the shapes the orders endpoint returns."""
    return [
        {
            "id": 1001,
            "date": "2024-01-01T10:00:00.000Z",
            "order_items": [
                {"expansion": "Alpha", "name": "Card A", "quantity": 2, "price_cents": 500},
            ],
        },
        {
            "id": 1002,
            "date": "2024-03-15T12:30:00.000Z",
            "order_items": [
                {"expansion": "alpha", "name": "Card B", "quantity": 1, "seller_price": {"cents": 1200}},
                {"expansion": "Beta", "name": "Card C", "quantity": 3, "price": 0.5},
                {"expansion": "Jungle", "name": "Pikachu", "quantity": 1, "price_cents": 250},
            ],
        },
        {
            "id": 1003,
            "date": "2024-06-01T08:00:00.000Z",
            "items": [
                {"expansion": "Alpha", "name": "Card A", "price_cents": 700},
                {"expansion": "Alpha", "name": "Broken", "quantity": "lots", "price_cents": 100},
                {"expansion": "Alpha", "name": "Free", "quantity": 1, "price_cents": "n/a"},
            ],
        },
    ]


@pytest.fixture
def orders(raw_orders) -> list[Order]:
    """Parsed orders."""
    return [Order.from_api(raw) for raw in raw_orders]
