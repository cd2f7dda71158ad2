"""Interactive terminal browser: key decoding, navigation state, rendering, and the event loop."""

from cardtrader_sales_tracker.tui.app import SalesBrowser
from cardtrader_sales_tracker.tui.keys import KeyDecoder, KeyEvent, KeyKind
from cardtrader_sales_tracker.tui.render import (
    AnsiPainter,
    ListView,
    LoadingView,
    ResultsView,
    TerminalSize,
    build_view,
    fit_viewport,
    visible_rows,
)
from cardtrader_sales_tracker.tui.state import Screen, UIState, apply_event, initial_state

__all__ = [
    "AnsiPainter",
    "KeyDecoder",
    "KeyEvent",
    "KeyKind",
    "ListView",
    "LoadingView",
    "ResultsView",
    "SalesBrowser",
    "Screen",
    "TerminalSize",
    "UIState",
    "apply_event",
    "build_view",
    "fit_viewport",
    "initial_state",
    "visible_rows",
]
