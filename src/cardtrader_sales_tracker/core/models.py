"""Data models for games, expansions, orders, and sales reports."""

import logging
import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int | None:
    """Coerce an API number to int, or None if it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _is_number(value: Any) -> bool:
    """True for finite ints and floats (bools, NaN and infinities excluded)."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return isinstance(value, int) or math.isfinite(value)


class Game(BaseModel):
    """
    Game information.

    Attributes
    ----------
    id : int
        CardTrader game id
    name : str
        Game name (e.g., 'Magic: the Gathering')

    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str

    @property
    def display_name(self) -> str:
        return self.name


class Expansion(BaseModel):
    """
    Expansion (set) information.

    Attributes
    ----------
    id : int
        CardTrader expansion id
    game_id : int
        Id of the game the expansion belongs to
    code : str
        Short set code (e.g., 'lea')
    name : str
        Human-readable expansion name, as it appears on order items

    """

    model_config = ConfigDict(frozen=True)

    id: int
    game_id: int
    code: str = ""
    name: str

    @property
    def display_name(self) -> str:
        return self.name

    @classmethod
    def from_api(cls, raw: Any) -> "Expansion | None":
        """
        Parse an expansion from the /expansions payload.

        Parameters
        ----------
        raw : Any
            Raw expansion object

        Returns
        -------
        Expansion | None
            Expansion, or None if id, game_id or name are missing

        """
        if not isinstance(raw, dict):
            return None
        expansion_id = _as_int(raw.get("id"))
        game_id = _as_int(raw.get("game_id"))
        name = raw.get("name")
        if expansion_id is None or game_id is None or not isinstance(name, str):
            return None
        code = raw.get("code")
        return cls(
            id=expansion_id,
            game_id=game_id,
            code=code if isinstance(code, str) else "",
            name=name,
        )


class LineItem(BaseModel):
    """
    A single sold item within an order.

    Order items reference their expansion by name only, never by id.

    Attributes
    ----------
    expansion_name : str
        Expansion name recorded on the item
    name : str
        Card or product name
    quantity : int
        Units sold
    unit_price_cents : int
        Price per unit in cents

    """

    model_config = ConfigDict(frozen=True)

    expansion_name: str
    name: str
    quantity: int
    unit_price_cents: int = 0

    @property
    def revenue_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    @classmethod
    def from_api(cls, raw: Any) -> "LineItem | None":
        """
        Parse an order item.

        Parameters
        ----------
        raw : Any
            Raw order item object

        Returns
        -------
        LineItem | None
            Parsed item, or None if the quantity is not a whole number

        """
        if not isinstance(raw, dict):
            return None

        raw_quantity = raw.get("quantity")
        quantity = 1 if raw_quantity is None else _as_int(raw_quantity)
        if quantity is None:
            logger.debug("Skipping order item with malformed quantity: %r", raw_quantity)
            return None

        expansion = raw.get("expansion")
        if isinstance(expansion, dict):
            expansion = expansion.get("name")
        blueprint = raw.get("blueprint")
        name = raw.get("name")
        if not name and isinstance(blueprint, dict):
            name = blueprint.get("name")

        return cls(
            expansion_name=expansion if isinstance(expansion, str) else "",
            name=name if isinstance(name, str) and name else "Unknown",
            quantity=quantity,
            unit_price_cents=_unit_price_cents(raw),
        )


def _unit_price_cents(raw: dict[str, Any]) -> int:
    """
    Resolve the unit price of an order item in cents.

    The first present field wins: seller_price.cents, price_cents, then
    price (in currency units). A present but non-numeric or non-finite
    value (NaN, Infinity) yields 0.
    """
    seller_price = raw.get("seller_price")
    if isinstance(seller_price, dict) and seller_price.get("cents") is not None:
        cents = seller_price["cents"]
        return round(cents) if _is_number(cents) else 0
    if raw.get("price_cents") is not None:
        cents = raw["price_cents"]
        return round(cents) if _is_number(cents) else 0
    price = raw.get("price")
    if _is_number(price) and _is_number(price * 100):
        return round(price * 100)
    return 0


def _parse_date(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class Order(BaseModel):
    """
    A completed sale from the seller's order history.

    Attributes
    ----------
    id : int | None
        CardTrader order id
    date : datetime | None
        Order date, None if missing or unparseable
    items : list[LineItem]
        Well-formed items of the order

    """

    id: int | None = None
    date: datetime | None = None
    items: list[LineItem] = Field(default_factory=list)

    @classmethod
    def from_api(cls, raw: Any) -> "Order | None":
        """
        Parse an order from the /orders payload.

        Items are read from ``order_items`` or ``items``; malformed items
        are dropped.

        Parameters
        ----------
        raw : Any
            Raw order object

        Returns
        -------
        Order | None
            Parsed order, or None if raw is not an object

        """
        if not isinstance(raw, dict):
            return None
        raw_items = raw.get("order_items") or raw.get("items") or []
        if not isinstance(raw_items, list):
            raw_items = []
        items = [item for item in (LineItem.from_api(r) for r in raw_items) if item is not None]
        return cls(id=_as_int(raw.get("id")), date=_parse_date(raw.get("date")), items=items)


class Catalog(BaseModel):
    """
    Reference data the browser navigates.

    Attributes
    ----------
    games : list[Game]
        Games in display order
    expansions : list[Expansion]
        All expansions across games

    """

    games: list[Game] = Field(default_factory=list)
    expansions: list[Expansion] = Field(default_factory=list)

    def game(self, game_id: int | None) -> Game | None:
        return next((g for g in self.games if g.id == game_id), None)

    def expansions_for(self, game_id: int | None) -> list[Expansion]:
        """Expansions of a game, in catalog order."""
        return [e for e in self.expansions if e.game_id == game_id]

    def expansion_count(self, game_id: int) -> int:
        return sum(1 for e in self.expansions if e.game_id == game_id)

    def find_game(self, name: str) -> Game | None:
        """Find a game by case-insensitive name."""
        wanted = name.lower()
        return next((g for g in self.games if g.name.lower() == wanted), None)


class CardSales(BaseModel):
    """
    Sales of a single card name within an expansion.

    Attributes
    ----------
    name : str
        Card name
    quantity : int
        Units sold
    revenue_cents : int
        Revenue in cents

    """

    name: str
    quantity: int = 0
    revenue_cents: int = 0


class ExpansionSales(BaseModel):
    """
    Aggregated sales for one expansion.

    Attributes
    ----------
    expansion_id : int
        Expansion id
    name : str
        Expansion name
    total_quantity : int
        Units sold across all orders
    total_revenue_cents : int
        Revenue in cents across all orders
    top_cards : list[CardSales]
        Best-selling cards by revenue

    """

    expansion_id: int
    name: str
    total_quantity: int = 0
    total_revenue_cents: int = 0
    top_cards: list[CardSales] = Field(default_factory=list)


class SalesReport(BaseModel):
    """
    Aggregated sales for a set of expansions.

    Attributes
    ----------
    expansions : list[ExpansionSales]
        Per-expansion summaries
    total_quantity : int
        Units sold across all expansions
    total_revenue_cents : int
        Revenue in cents across all expansions
    order_count : int
        Number of orders scanned

    """

    expansions: list[ExpansionSales] = Field(default_factory=list)
    total_quantity: int = 0
    total_revenue_cents: int = 0
    order_count: int = 0
