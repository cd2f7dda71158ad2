"""Interactive sales browser: the event loop tying input, state, and painting together."""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Protocol

from cardtrader_sales_tracker.api.client import CardTraderAPIError
from cardtrader_sales_tracker.core.aggregator import SalesAggregator
from cardtrader_sales_tracker.core.models import Catalog, Order, SalesReport
from cardtrader_sales_tracker.tui.keys import KeyDecoder, KeyEvent
from cardtrader_sales_tracker.tui.render import AnsiPainter, ListView, TerminalSize, build_view
from cardtrader_sales_tracker.tui.state import UIState, apply_event, finish_loading, initial_state

logger = logging.getLogger(__name__)

# Seconds between loading-screen refreshes while results are computed
LOADING_REFRESH = 0.1


class Terminal(Protocol):
    """What the browser needs from a terminal."""

    stdout: Any

    def __enter__(self) -> Any: ...

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...

    def read(self, timeout: float | None = None) -> str: ...

    def size(self) -> TerminalSize: ...


class SalesBrowser:
    """
    Runs the game -> expansion -> results browser until the user quits.

    Key events are processed one at a time to completion. Entering Results
    runs order loading and aggregation as a background task while a loading
    frame is shown; input is not read until the task finishes.

    Parameters
    ----------
    catalog : Catalog
        Games and expansions, already loaded
    load_orders : Callable[..., list[Order]]
        Returns the order history; accepts an ``on_page`` progress callback
    terminal : Terminal
        Raw-mode terminal (RawTerminal, or a fake in tests)
    aggregator : SalesAggregator | None
        Aggregator for results. Uses a default top-5 aggregator if None.
    escape_timeout : float
        Seconds to wait after ESC before treating it as the Escape key
    clock : Callable[[], float]
        Monotonic clock driving the escape timer

    """

    def __init__(
        self,
        catalog: Catalog,
        load_orders: Callable[..., list[Order]],
        terminal: Terminal,
        aggregator: SalesAggregator | None = None,
        escape_timeout: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.catalog = catalog
        self.load_orders = load_orders
        self.terminal = terminal
        self.aggregator = aggregator or SalesAggregator()
        self.decoder = KeyDecoder(escape_timeout=escape_timeout)
        self.painter = AnsiPainter(terminal.stdout)
        self.clock = clock
        self.state: UIState = initial_state()
        self.report: SalesReport | None = None
        self.error: str | None = None
        self.loading_detail = ""
        self._executor: ThreadPoolExecutor | None = None

    def run(self) -> UIState:
        """
        Take over the terminal and process keys until quit.

        The terminal is restored when this returns or raises, before any
        in-flight order fetch is abandoned.

        Returns
        -------
        UIState
            Final state

        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sales-results")
        self._executor = executor
        try:
            with self.terminal:
                self.paint()
                while not self.state.quit:
                    for event in self._next_events():
                        self.dispatch(event)
                        if self.state.quit:
                            break
        finally:
            self._executor = None
            # Don't block on remaining order pages
            executor.shutdown(wait=False, cancel_futures=True)
        return self.state

    def _next_events(self) -> list[KeyEvent]:
        text = self.terminal.read(self.decoder.timeout(self.clock()))
        now = self.clock()
        if text:
            return self.decoder.feed(text, now)
        return self.decoder.expire(now)

    def dispatch(self, event: KeyEvent) -> None:
        """
        Apply one key event, run the results task if it started loading, and repaint.

        Parameters
        ----------
        event : KeyEvent
            Decoded keypress

        """
        self.state = apply_event(self.state, event, self.catalog)
        if self.state.quit:
            return
        if self.state.loading:
            self._load_results()
        self.paint()

    def paint(self) -> None:
        """Repaint the current screen, keeping the cursor inside the viewport."""
        size = self.terminal.size()
        view = build_view(
            self.state,
            self.catalog,
            size,
            report=self.report,
            error=self.error,
            loading_detail=self.loading_detail,
        )
        if isinstance(view, ListView):
            self.state = self.state.update(cursor=view.cursor, scroll_offset=view.scroll_offset)
        self.painter.paint(view, size)

    def _load_results(self) -> None:
        """Compute a fresh report for the marked expansions, showing progress meanwhile."""
        self.report = None
        self.error = None
        self.loading_detail = ""
        self.paint()

        try:
            self.report = self._run_results_task(self.state.marked)
        except CardTraderAPIError as e:
            logger.warning("Failed to load orders: %s", e)
            self.error = str(e)
        self.state = finish_loading(self.state)

    def _run_results_task(self, marked: frozenset[int]) -> SalesReport:
        # Outside run() there is no executor; compute inline
        if self._executor is None:
            return self._compute_report(marked)

        future = self._executor.submit(self._compute_report, marked)
        shown = self.loading_detail
        while True:
            done, _ = wait([future], timeout=LOADING_REFRESH)
            if done:
                return future.result()
            if self.loading_detail != shown:
                shown = self.loading_detail
                self.paint()

    def _compute_report(self, marked: frozenset[int]) -> SalesReport:
        orders = self.load_orders(on_page=self._on_page)
        return self.aggregator.aggregate(marked, orders, self.catalog.expansions)

    def _on_page(self, page: int) -> None:
        self.loading_detail = f"Fetching orders page {page}..."
