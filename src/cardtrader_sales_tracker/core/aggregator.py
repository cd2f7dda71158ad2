"""Sales aggregator summarizing order history per expansion."""

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from cardtrader_sales_tracker.core.models import (
    CardSales,
    Expansion,
    ExpansionSales,
    Order,
    SalesReport,
)

logger = logging.getLogger(__name__)


class SalesAggregator:
    """
    Summarizes lifetime sales for a set of expansions.

    Workflow:
    1. Resolve each selected expansion id to its name
    2. Scan every order item, matching the item's expansion name
       case-insensitively against the expansion name
    3. Accumulate quantity and revenue, overall and per card name
    4. Keep the best-selling cards by revenue
    5. Sum everything into a grand total

    Order items carry the expansion name, not its id, so the join is by name.

    Parameters
    ----------
    top_n : int
        Number of best-selling cards kept per expansion

    """

    def __init__(self, top_n: int = 5) -> None:
        self.top_n = top_n

    def aggregate(
        self,
        expansion_ids: Iterable[int],
        orders: Sequence[Order],
        expansions: Sequence[Expansion],
        since: date | None = None,
    ) -> SalesReport:
        """
        Build a sales report for the given expansions.

        Parameters
        ----------
        expansion_ids : Iterable[int]
            Ids of the expansions to summarize. Unknown ids are skipped.
        orders : Sequence[Order]
            Complete order history
        expansions : Sequence[Expansion]
            Known expansions, used for id to name resolution and ordering
        since : date | None
            Only count orders dated on or after this day. Undated orders are
            dropped when set.

        Returns
        -------
        SalesReport
            Per-expansion summaries, in the order of ``expansions``, plus totals

        """
        wanted = set(expansion_ids)
        selected = [e for e in expansions if e.id in wanted]
        missing = wanted - {e.id for e in selected}
        if missing:
            logger.debug("Ignoring unknown expansion ids: %s", sorted(missing))

        scanned = self._orders_since(orders, since)
        results = [self._aggregate_expansion(expansion, scanned) for expansion in selected]

        return self._build_report(results, order_count=len(scanned))

    def _orders_since(self, orders: Sequence[Order], since: date | None) -> list[Order]:
        """
        Drop orders dated before since.

        Parameters
        ----------
        orders : Sequence[Order]
            Orders to filter
        since : date | None
            Earliest order day, or None to keep all orders

        Returns
        -------
        list[Order]
            Remaining orders

        """
        if since is None:
            return list(orders)
        return [o for o in orders if o.date is not None and o.date.date() >= since]

    def _aggregate_expansion(self, expansion: Expansion, orders: Sequence[Order]) -> ExpansionSales:
        """
        Accumulate sales of a single expansion.

        Parameters
        ----------
        expansion : Expansion
            Expansion to summarize
        orders : Sequence[Order]
            Orders to scan

        Returns
        -------
        ExpansionSales
            Totals and best-selling cards

        """
        target = expansion.name.lower()
        total_quantity = 0
        total_revenue = 0
        # dict keeps first-seen order, which the stable sort below relies on for ties
        by_card: dict[str, CardSales] = {}

        for order in orders:
            for item in order.items:
                if item.expansion_name.lower() != target:
                    continue
                revenue = item.revenue_cents
                total_quantity += item.quantity
                total_revenue += revenue

                card = by_card.setdefault(item.name, CardSales(name=item.name))
                card.quantity += item.quantity
                card.revenue_cents += revenue

        top_cards = sorted(by_card.values(), key=lambda c: c.revenue_cents, reverse=True)[: self.top_n]

        return ExpansionSales(
            expansion_id=expansion.id,
            name=expansion.name,
            total_quantity=total_quantity,
            total_revenue_cents=total_revenue,
            top_cards=top_cards,
        )

    def _build_report(self, results: list[ExpansionSales], order_count: int) -> SalesReport:
        """
        Sum per-expansion results into a report.

        Parameters
        ----------
        results : list[ExpansionSales]
            Per-expansion summaries
        order_count : int
            Number of orders scanned

        Returns
        -------
        SalesReport
            Report with grand totals

        """
        return SalesReport(
            expansions=results,
            total_quantity=sum(r.total_quantity for r in results),
            total_revenue_cents=sum(r.total_revenue_cents for r in results),
            order_count=order_count,
        )
