"""View models for each screen and the painter that draws them with ANSI sequences."""

from typing import NamedTuple, TextIO

from pydantic import BaseModel, Field
from rich.color import ColorSystem
from rich.control import Control
from rich.style import Style

from cardtrader_sales_tracker.core.models import Catalog, Expansion, Game, SalesReport
from cardtrader_sales_tracker.core.money import format_usd
from cardtrader_sales_tracker.core.search import clamp_cursor
from cardtrader_sales_tracker.tui.state import Screen, UIState, filtered_entities

# Header (title + rule) and footer (rule + hints + status) lines, plus one spare
RESERVED_ROWS = 6
LIST_TOP = 2

BOLD = Style(bold=True)
DIM = Style(dim=True)
INVERSE = Style(reverse=True)
GREEN = Style(color="green")
YELLOW = Style(color="yellow")
CYAN = Style(color="cyan")
RED = Style(color="red", bold=True)

MARKED = "[✓]"
UNMARKED = "[ ]"


class TerminalSize(NamedTuple):
    """Terminal dimensions in character cells."""

    columns: int
    rows: int


def visible_rows(terminal_rows: int) -> int:
    """Number of list rows that fit on screen."""
    return max(1, terminal_rows - RESERVED_ROWS)


def fit_viewport(cursor: int, scroll_offset: int, height: int) -> int:
    """
    Scroll just enough to keep the cursor on screen.

    Parameters
    ----------
    cursor : int
        Highlighted row
    scroll_offset : int
        Current first visible row
    height : int
        Number of visible rows. Values below 1 count as 1.

    Returns
    -------
    int
        New scroll offset with scroll_offset <= cursor < scroll_offset + height

    """
    height = max(1, height)
    if cursor < scroll_offset:
        return cursor
    if cursor >= scroll_offset + height:
        return cursor - height + 1
    return scroll_offset


class RowView(BaseModel):
    """
    One visible list row.

    Attributes
    ----------
    label : str
        Entity name
    prefix : str
        Indicator drawn before the label (mark box on expansions)
    suffix : str
        Indicator drawn after the label (set count on games)
    marked : bool
        Whether the expansion is marked
    highlighted : bool
        Whether the row is under the cursor

    """

    label: str
    prefix: str = ""
    suffix: str = ""
    marked: bool = False
    highlighted: bool = False

    @property
    def plain(self) -> str:
        return " ".join(part for part in (self.prefix, self.label, self.suffix) if part)


class ListView(BaseModel):
    """
    Everything needed to paint a list screen.

    Attributes
    ----------
    title : str
        Screen title
    filter_mode : bool
        Whether the filter prompt is active
    filter_text : str
        Current filter text
    rows : list[RowView]
        Visible rows, top to bottom
    empty_message : str
        Shown instead of rows when the filtered list is empty
    hints : list[str]
        Key hints for the footer
    status : str
        Item count line
    marked_count : int | None
        Number of marked expansions, None on screens without marking
    cursor : int
        Cursor after clamping
    scroll_offset : int
        Scroll offset after fitting the cursor into the viewport
    total : int
        Length of the filtered list

    """

    title: str
    filter_mode: bool = False
    filter_text: str = ""
    rows: list[RowView] = Field(default_factory=list)
    empty_message: str = ""
    hints: list[str] = Field(default_factory=list)
    status: str = ""
    marked_count: int | None = None
    cursor: int = 0
    scroll_offset: int = 0
    total: int = 0


class LoadingView(BaseModel):
    """Shown while results are computed."""

    title: str = "Calculating Lifetime Sales..."
    detail: str = ""


class ResultsView(BaseModel):
    """
    Sales results, or the error that prevented computing them.

    Attributes
    ----------
    title : str
        Screen title
    report : SalesReport | None
        Computed report
    error : str | None
        Error message if loading orders failed

    """

    title: str = "Lifetime Sales Results"
    report: SalesReport | None = None
    error: str | None = None


View = ListView | LoadingView | ResultsView


def build_list_view(state: UIState, catalog: Catalog, size: TerminalSize) -> ListView:
    """
    Compute the visible part of the active list.

    Parameters
    ----------
    state : UIState
        Current state, on GameSelect or ExpansionSelect
    catalog : Catalog
        Games and expansions
    size : TerminalSize
        Current terminal size

    Returns
    -------
    ListView
        Rows in the viewport plus header and footer text

    """
    entities = filtered_entities(state, catalog)
    height = visible_rows(size.rows)

    if entities:
        cursor = clamp_cursor(state.cursor, len(entities))
        scroll_offset = fit_viewport(cursor, state.scroll_offset, height)
    else:
        cursor = scroll_offset = 0

    window = entities[scroll_offset : scroll_offset + height]
    rows = [_row(entity, state, catalog, scroll_offset + i == cursor) for i, entity in enumerate(window)]

    if state.screen == Screen.GAME_SELECT:
        return ListView(
            title="Select a Game",
            filter_mode=state.filter_mode,
            filter_text=state.filter_text,
            rows=rows,
            empty_message="No games found",
            hints=["↑↓ navigate", "/ filter", "Enter select", "q quit"],
            status=f"{len(entities)} games",
            cursor=cursor,
            scroll_offset=scroll_offset,
            total=len(entities),
        )

    game = catalog.game(state.selected_game_id)
    return ListView(
        title=f"{game.name if game else 'Unknown'} Expansions",
        filter_mode=state.filter_mode,
        filter_text=state.filter_text,
        rows=rows,
        empty_message="No expansions found",
        hints=["↑↓ navigate", "Space mark", "/ filter", "Enter calculate", "Esc back", "q quit"],
        status=f"{len(entities)} expansions",
        marked_count=len(state.marked),
        cursor=cursor,
        scroll_offset=scroll_offset,
        total=len(entities),
    )


def _row(entity: Game | Expansion, state: UIState, catalog: Catalog, is_cursor: bool) -> RowView:
    if isinstance(entity, Game):
        return RowView(
            label=entity.name,
            suffix=f"({catalog.expansion_count(entity.id)} sets)",
            highlighted=is_cursor,
        )
    marked = entity.id in state.marked
    return RowView(
        label=entity.name,
        prefix=MARKED if marked else UNMARKED,
        marked=marked,
        highlighted=is_cursor,
    )


def build_view(
    state: UIState,
    catalog: Catalog,
    size: TerminalSize,
    report: SalesReport | None = None,
    error: str | None = None,
    loading_detail: str = "",
) -> View:
    """
    Compute the view model for the active screen.

    Parameters
    ----------
    state : UIState
        Current state
    catalog : Catalog
        Games and expansions
    size : TerminalSize
        Current terminal size
    report : SalesReport | None
        Latest results, used on the Results screen
    error : str | None
        Error from the latest results computation
    loading_detail : str
        Progress text while loading

    Returns
    -------
    View
        ListView, LoadingView or ResultsView

    """
    if state.screen == Screen.RESULTS:
        if state.loading:
            return LoadingView(detail=loading_detail)
        return ResultsView(report=report, error=error)
    return build_list_view(state, catalog, size)


def _paint_text(style: Style, text: str) -> str:
    return style.render(text, color_system=ColorSystem.STANDARD)


class AnsiPainter:
    """
    Paints view models as full-screen frames.

    Every paint clears the screen and positions each line absolutely; no
    diffing against the previous frame.

    Parameters
    ----------
    stream : TextIO
        Output stream (the terminal, or a StringIO in tests)

    """

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def paint(self, view: View, size: TerminalSize) -> None:
        """
        Draw a view.

        Parameters
        ----------
        view : View
            View model to draw
        size : TerminalSize
            Current terminal size

        """
        if isinstance(view, ListView):
            lines = self._list_lines(view, size)
        elif isinstance(view, LoadingView):
            lines = self._loading_lines(view, size)
        else:
            lines = self._results_lines(view, size)

        frame = [str(Control.clear()), str(Control.home())]
        for row, text in lines.items():
            if 0 <= row < size.rows:
                frame.append(str(Control.move_to(0, row)))
                frame.append(text)
        self.stream.write("".join(frame))
        self.stream.flush()

    def _rule(self, size: TerminalSize, char: str = "─") -> str:
        return _paint_text(DIM, char * max(0, size.columns - 1))

    def _list_lines(self, view: ListView, size: TerminalSize) -> dict[int, str]:
        width = size.columns
        lines: dict[int, str] = {}

        if view.filter_mode:
            prompt = _paint_text(YELLOW, f"  /{view.filter_text}▌")
        elif view.filter_text:
            prompt = _paint_text(DIM, f"  filter: {view.filter_text}  (press / to change)")
        else:
            prompt = _paint_text(DIM, "  (press / to filter)")
        lines[0] = _paint_text(BOLD, view.title) + prompt
        lines[1] = self._rule(size)

        if not view.rows:
            lines[LIST_TOP] = _paint_text(DIM, view.empty_message)
        for i, row in enumerate(view.rows):
            lines[LIST_TOP + i] = self._row_line(row, width)

        # Footer starts below the list; on short terminals it is clipped instead
        footer = max(size.rows - 3, LIST_TOP + max(1, len(view.rows)))
        lines[footer] = self._rule(size)
        hints = [
            _paint_text(CYAN, hint) if hint.startswith("Enter calculate") else _paint_text(DIM, hint)
            for hint in view.hints
        ]
        lines[footer + 1] = "  ".join(hints)
        status = _paint_text(DIM, view.status)
        if view.marked_count is not None:
            status += "  " + _paint_text(GREEN, f"{view.marked_count} selected")
        lines[footer + 2] = status
        return lines

    def _row_line(self, row: RowView, width: int) -> str:
        if row.highlighted:
            inner = max(0, width - 2)
            return _paint_text(INVERSE, " " + row.plain[:inner].ljust(inner) + " ")

        parts = []
        if row.prefix:
            parts.append(_paint_text(GREEN, row.prefix) if row.marked else row.prefix)
        parts.append(row.label[: max(0, width - 2)])
        if row.suffix:
            parts.append(_paint_text(DIM, row.suffix))
        return " " + " ".join(parts)

    def _loading_lines(self, view: LoadingView, size: TerminalSize) -> dict[int, str]:
        lines = {0: _paint_text(BOLD, view.title)}
        if view.detail:
            lines[size.rows - 1] = _paint_text(DIM, view.detail)
        return lines

    def _results_lines(self, view: ResultsView, size: TerminalSize) -> dict[int, str]:
        lines = {0: _paint_text(BOLD, view.title), 1: self._rule(size, "═")}
        body: list[str] = []

        if view.error:
            body.append(_paint_text(RED, "Could not load orders:") + " " + view.error)
        elif view.report is not None:
            for sales in view.report.expansions:
                body.append(_paint_text(BOLD, sales.name))
                body.append(
                    f"  Cards sold: {_paint_text(CYAN, str(sales.total_quantity))}"
                    f"  |  Revenue: {_paint_text(GREEN, format_usd(sales.total_revenue_cents))}"
                )
                for card in sales.top_cards:
                    body.append(
                        _paint_text(DIM, f"    {card.name}: {card.quantity}x = {format_usd(card.revenue_cents)}")
                    )
                body.append(self._rule(size))

            body.append(_paint_text(BOLD, "GRAND TOTAL"))
            body.append(
                f"  Cards: {_paint_text(CYAN, str(view.report.total_quantity))}"
                f"  |  Revenue: {_paint_text(GREEN, format_usd(view.report.total_revenue_cents))}"
            )

        # Keep the footer line free
        for i, text in enumerate(body[: max(0, size.rows - 4)]):
            lines[2 + i] = text
        lines[size.rows - 1] = _paint_text(DIM, "Press any key to go back, q to quit")
        return lines
