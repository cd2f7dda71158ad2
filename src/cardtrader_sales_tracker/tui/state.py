"""Navigation state and the reducer that advances it one key at a time."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from cardtrader_sales_tracker.core.models import Catalog, Expansion, Game
from cardtrader_sales_tracker.core.search import clamp_cursor, filter_by_name
from cardtrader_sales_tracker.tui.keys import KeyEvent, KeyKind


class Screen(StrEnum):
    """Screen of the browser."""

    GAME_SELECT = "game_select"
    EXPANSION_SELECT = "expansion_select"
    RESULTS = "results"


class UIState(BaseModel):
    """
    Complete state of the browser.

    Attributes
    ----------
    screen : Screen
        Active screen
    cursor : int
        Highlighted row within the filtered list
    scroll_offset : int
        First visible row of the filtered list
    filter_mode : bool
        Whether keystrokes are being typed into the filter
    filter_text : str
        Active filter for the current screen's list
    marked : frozenset[int]
        Expansion ids selected for aggregation
    selected_game_id : int | None
        Game whose expansions are listed
    loading : bool
        Results are being computed; input is ignored meanwhile
    quit : bool
        The user asked to exit

    """

    model_config = ConfigDict(frozen=True)

    screen: Screen = Screen.GAME_SELECT
    cursor: int = 0
    scroll_offset: int = 0
    filter_mode: bool = False
    filter_text: str = ""
    marked: frozenset[int] = frozenset()
    selected_game_id: int | None = None
    loading: bool = False
    quit: bool = False

    def update(self, **changes: object) -> "UIState":
        return self.model_copy(update=changes)


def initial_state() -> UIState:
    return UIState()


def filtered_entities(state: UIState, catalog: Catalog) -> list[Game] | list[Expansion]:
    """
    The list shown on the active screen, after filtering.

    Parameters
    ----------
    state : UIState
        Current state
    catalog : Catalog
        Games and expansions

    Returns
    -------
    list[Game] | list[Expansion]
        Filtered games on GameSelect, the selected game's filtered
        expansions otherwise

    """
    if state.screen == Screen.GAME_SELECT:
        return filter_by_name(catalog.games, state.filter_text)
    return filter_by_name(catalog.expansions_for(state.selected_game_id), state.filter_text)


def highlighted(state: UIState, catalog: Catalog) -> Game | Expansion | None:
    """The entity under the cursor, if any."""
    entities = filtered_entities(state, catalog)
    if not entities:
        return None
    return entities[clamp_cursor(state.cursor, len(entities))]


def finish_loading(state: UIState) -> UIState:
    """Mark the results computation as done."""
    return state.update(loading=False)


def apply_event(state: UIState, event: KeyEvent, catalog: Catalog) -> UIState:
    """
    Advance the browser by one key event.

    Parameters
    ----------
    state : UIState
        Current state
    event : KeyEvent
        Decoded keypress
    catalog : Catalog
        Games and expansions the lists are built from

    Returns
    -------
    UIState
        New state. Keys with no meaning in the current state return the
        state unchanged.

    """
    if event.kind == KeyKind.INTERRUPT:
        return state.update(quit=True)
    if state.loading or state.quit:
        return state

    if state.screen == Screen.RESULTS:
        if event.kind == KeyKind.QUIT:
            return state.update(quit=True)
        return state.update(screen=Screen.EXPANSION_SELECT, cursor=0, scroll_offset=0)

    if state.filter_mode:
        return _apply_filter_event(state, event)

    new_state = _apply_navigation_event(state, event, catalog)
    return _clamp(new_state, catalog)


def _clamp(state: UIState, catalog: Catalog) -> UIState:
    length = len(filtered_entities(state, catalog))
    cursor = clamp_cursor(state.cursor, length)
    if cursor == state.cursor:
        return state
    return state.update(cursor=cursor, scroll_offset=min(state.scroll_offset, cursor))


def _apply_filter_event(state: UIState, event: KeyEvent) -> UIState:
    if event.kind in (KeyKind.ENTER, KeyKind.ESCAPE):
        return state.update(filter_mode=False)
    if event.kind == KeyKind.BACKSPACE:
        return state.update(filter_text=state.filter_text[:-1], cursor=0, scroll_offset=0)
    if event.is_text:
        return state.update(filter_text=state.filter_text + event.char, cursor=0, scroll_offset=0)
    return state


def _apply_navigation_event(state: UIState, event: KeyEvent, catalog: Catalog) -> UIState:
    kind = event.kind

    if kind == KeyKind.QUIT:
        return state.update(quit=True)

    if kind == KeyKind.FILTER:
        return state.update(filter_mode=True, filter_text="")

    if kind == KeyKind.UP or (kind == KeyKind.CHAR and event.char == "k"):
        return state.update(cursor=max(0, state.cursor - 1))

    if kind == KeyKind.DOWN or (kind == KeyKind.CHAR and event.char == "j"):
        last = len(filtered_entities(state, catalog)) - 1
        return state.update(cursor=max(0, min(last, state.cursor + 1)))

    if state.screen == Screen.GAME_SELECT:
        if kind == KeyKind.ENTER:
            game = highlighted(state, catalog)
            if game is None:
                return state
            return state.update(
                screen=Screen.EXPANSION_SELECT,
                selected_game_id=game.id,
                cursor=0,
                scroll_offset=0,
                filter_text="",
                marked=frozenset(),
            )
        return state

    # ExpansionSelect
    if kind == KeyKind.ESCAPE:
        return state.update(
            screen=Screen.GAME_SELECT,
            selected_game_id=None,
            cursor=0,
            scroll_offset=0,
            filter_text="",
            marked=frozenset(),
        )

    if kind == KeyKind.SPACE:
        expansion = highlighted(state, catalog)
        if expansion is None:
            return state
        return state.update(marked=state.marked ^ {expansion.id})

    if kind == KeyKind.ENTER and state.marked:
        return state.update(screen=Screen.RESULTS, loading=True)

    return state
