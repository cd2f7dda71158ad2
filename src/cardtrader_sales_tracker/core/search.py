"""Case-insensitive substring filtering over named entities."""

from collections.abc import Sequence
from typing import Protocol, TypeVar


class Named(Protocol):
    """Anything with a display name."""

    @property
    def display_name(self) -> str: ...


T = TypeVar("T", bound=Named)


def filter_by_name(entities: Sequence[T], text: str) -> list[T]:
    """
    Keep entities whose display name contains text, ignoring case.

    Parameters
    ----------
    entities : Sequence[T]
        Entities in display order
    text : str
        Filter text. Empty text keeps every entity.

    Returns
    -------
    list[T]
        Matching entities in their original order

    Examples
    --------
    >>> [g.name for g in filter_by_name(games, "mag")]
    ['Magic']

    """
    needle = text.lower()
    return [entity for entity in entities if needle in entity.display_name.lower()]


def clamp_cursor(cursor: int, length: int) -> int:
    """
    Clamp a cursor into a list of the given length.

    Parameters
    ----------
    cursor : int
        Current cursor position
    length : int
        Length of the filtered list

    Returns
    -------
    int
        Cursor within [0, length - 1], or 0 for an empty list

    """
    return max(0, min(cursor, length - 1))
