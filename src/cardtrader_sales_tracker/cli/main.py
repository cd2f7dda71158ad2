"""CLI for the CardTrader sales tracker."""

import json
import logging
import sys
from datetime import datetime
from enum import StrEnum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from cardtrader_sales_tracker.api import CardTraderAPIError, CardTraderClient, DiskCache, SalesDataGateway
from cardtrader_sales_tracker.config import ConfigError, Settings, load_settings
from cardtrader_sales_tracker.core import Catalog, Expansion, Game, Order, SalesAggregator, SalesReport, format_usd

# Install rich traceback handler
install()

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="cardtrader-sales",
    help="Browse CardTrader games and expansions and summarize lifetime sales per expansion",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _setup_logging(debug: bool, log_file: Path | None) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    debug : bool
        Log at DEBUG instead of WARNING
    log_file : Path | None
        Write logs to this file instead of stderr

    """
    handler: logging.Handler
    if log_file is not None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler = RichHandler(console=err_console, show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Write logs to a file instead of stderr"),
) -> None:
    """Browse CardTrader games and expansions and summarize lifetime sales per expansion."""
    _setup_logging(debug, log_file)
    ctx.obj = {"debug": debug}


def _load_settings() -> Settings:
    try:
        return load_settings()
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


def build_gateway(settings: Settings) -> SalesDataGateway:
    """
    Create the cached data gateway.

    Parameters
    ----------
    settings : Settings
        Application settings

    Returns
    -------
    SalesDataGateway
        Gateway over a CardTrader client and the disk cache

    Raises
    ------
    typer.Exit
        If no API token is configured

    """
    try:
        token = settings.require_token()
    except ConfigError as e:
        console.print(f"[bold red]{e}[/bold red]")
        console.print("[dim]  Set API_TOKEN to your CardTrader API token in the environment or a .env file[/dim]")
        raise typer.Exit(code=1) from e

    client = CardTraderClient(
        api_token=token,
        base_url=settings.api_url,
        page_limit=settings.page_limit,
        timeout=settings.request_timeout,
    )
    return SalesDataGateway(client=client, cache=DiskCache(settings.cache_dir), settings=settings)


def _load_catalog(gateway: SalesDataGateway) -> Catalog:
    """
    Load games and expansions, exiting on failure.

    Parameters
    ----------
    gateway : SalesDataGateway
        Data gateway

    Returns
    -------
    Catalog
        Loaded reference data

    Raises
    ------
    typer.Exit
        If reference data cannot be obtained

    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Loading games and expansions...", total=None)
        try:
            return gateway.load_catalog()
        except CardTraderAPIError as e:
            progress.stop()
            console.print(f"[bold red]Failed to load games and expansions:[/bold red] {e}")
            raise typer.Exit(code=1) from e


def _load_orders(gateway: SalesDataGateway) -> list[Order]:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Loading orders...", total=None)
        try:
            return gateway.load_orders(
                on_page=lambda page: progress.update(task, description=f"Fetching orders page {page}...")
            )
        except CardTraderAPIError as e:
            progress.stop()
            console.print(f"[bold red]Failed to load orders:[/bold red] {e}")
            raise typer.Exit(code=1) from e


def _resolve_game(catalog: Catalog, name: str) -> Game:
    game = catalog.find_game(name)
    if game is None:
        console.print(f"[bold red]Unknown game:[/bold red] {name}")
        raise typer.Exit(code=1)
    return game


def _resolve_expansions(catalog: Catalog, game: Game, names: list[str] | None) -> list[Expansion]:
    """
    Look up expansions of a game by name.

    Parameters
    ----------
    catalog : Catalog
        Reference data
    game : Game
        Game the expansions belong to
    names : list[str] | None
        Expansion names, matched case-insensitively. All of the game's
        expansions if empty.

    Returns
    -------
    list[Expansion]
        Matching expansions

    Raises
    ------
    typer.Exit
        If a name matches no expansion of the game

    """
    game_expansions = catalog.expansions_for(game.id)
    if not names:
        return game_expansions

    by_name = {e.name.lower(): e for e in game_expansions}
    unknown = [n for n in names if n.lower() not in by_name]
    if unknown:
        console.print(f"[bold red]Unknown {game.name} expansion(s):[/bold red] {', '.join(unknown)}")
        raise typer.Exit(code=1)
    return [by_name[n.lower()] for n in names]


@app.command()
def browse() -> None:
    """
    Interactively pick a game and expansions, then show their lifetime sales.

    Keys: ↑/↓ or j/k move, / filters, Space marks an expansion, Enter
    selects or calculates, Esc goes back, q quits.
    """
    if not sys.stdin.isatty():
        console.print("[bold red]browse needs an interactive terminal[/bold red]")
        raise typer.Exit(code=1)

    from cardtrader_sales_tracker.tui import SalesBrowser
    from cardtrader_sales_tracker.tui.terminal import RawTerminal

    settings = _load_settings()
    gateway = build_gateway(settings)
    try:
        catalog = _load_catalog(gateway)
        logger.debug("Loaded %d games and %d expansions", len(catalog.games), len(catalog.expansions))
        browser = SalesBrowser(
            catalog=catalog,
            load_orders=gateway.load_orders,
            terminal=RawTerminal(),
            aggregator=SalesAggregator(top_n=settings.top_n),
            escape_timeout=settings.escape_timeout,
        )
        browser.run()
    finally:
        gateway.client.close()


@app.command()
def report(
    game: str = typer.Option(..., "--game", "-g", help="Game name"),
    expansion: list[str] | None = typer.Option(
        None,
        "--expansion",
        "-e",
        help="Expansion name (repeatable). Defaults to every expansion of the game.",
    ),
    since: datetime | None = typer.Option(
        None,
        "--since",
        "-s",
        formats=["%Y-%m-%d"],
        help="Only count orders from this date on (YYYY-MM-DD)",
    ),
    top: int | None = typer.Option(None, "--top", "-n", min=1, help="Best-selling cards listed per expansion"),
    format: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """
    Summarize sales of a game's expansions without the interactive browser.

    Examples:

        # Lifetime sales of two expansions
        cardtrader-sales report -g "Magic: the Gathering" -e Alpha -e Beta

        # Sales of every expansion of a game since a date, as JSON
        cardtrader-sales report -g Pokemon --since 2024-01-01 --format json
    """
    settings = _load_settings()
    gateway = build_gateway(settings)
    try:
        catalog = _load_catalog(gateway)
        selected_game = _resolve_game(catalog, game)
        expansions = _resolve_expansions(catalog, selected_game, expansion)
        orders = _load_orders(gateway)
    finally:
        gateway.client.close()

    aggregator = SalesAggregator(top_n=top or settings.top_n)
    summary = aggregator.aggregate(
        [e.id for e in expansions],
        orders,
        catalog.expansions,
        since=since.date() if since else None,
    )

    if format == OutputFormat.JSON:
        _output_json(summary)
    else:
        _output_table(summary, title=f"{selected_game.name} sales" + (f" since {since:%Y-%m-%d}" if since else ""))


@app.command()
def games() -> None:
    """List all games with their number of expansions."""
    settings = _load_settings()
    gateway = build_gateway(settings)
    try:
        catalog = _load_catalog(gateway)
    finally:
        gateway.client.close()

    table = Table(title="Games", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Game", style="cyan")
    table.add_column("Expansions", style="green", justify="right")

    for g in catalog.games:
        table.add_row(str(g.id), g.name, str(catalog.expansion_count(g.id)))

    console.print(table)


@app.command()
def expansions(game: str = typer.Argument(..., help="Game name")) -> None:
    """List the expansions of a game."""
    settings = _load_settings()
    gateway = build_gateway(settings)
    try:
        catalog = _load_catalog(gateway)
    finally:
        gateway.client.close()

    selected_game = _resolve_game(catalog, game)

    table = Table(title=f"{selected_game.name} Expansions", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Code", style="yellow")
    table.add_column("Expansion", style="cyan")

    for e in catalog.expansions_for(selected_game.id):
        table.add_row(str(e.id), e.code, e.name)

    console.print(table)


@app.command()
def clear_cache() -> None:
    """Delete cached categories, expansions, and orders."""
    settings = _load_settings()
    removed = DiskCache(settings.cache_dir).clear()
    console.print(f"Removed {removed} cached file(s) from {settings.cache_dir}")


def _output_table(summary: SalesReport, title: str) -> None:
    """Output a sales report as rich tables."""
    if not summary.expansions:
        console.print("\n[yellow]No expansions selected[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Expansion", style="cyan")
    table.add_column("Cards Sold", style="white", justify="right")
    table.add_column("Revenue", style="bold green", justify="right")
    table.add_column("Top Cards", style="dim")

    for sales in summary.expansions:
        top_cards = "\n".join(
            f"{card.name}: {card.quantity}x = {format_usd(card.revenue_cents)}" for card in sales.top_cards
        )
        table.add_row(
            sales.name,
            str(sales.total_quantity),
            format_usd(sales.total_revenue_cents),
            top_cards or "-",
        )

    console.print("\n")
    console.print(table)

    summary_table = Table(show_header=False, box=None)
    summary_table.add_column("Label", style="bold")
    summary_table.add_column("Value", style="bold green")

    summary_table.add_row("Cards Sold:", str(summary.total_quantity))
    summary_table.add_row("Revenue:", format_usd(summary.total_revenue_cents))
    summary_table.add_row("Orders Scanned:", str(summary.order_count))

    console.print("\n")
    console.print(summary_table)
    console.print("\n")


def _output_json(summary: SalesReport) -> None:
    """Output a sales report as JSON."""
    data = summary.model_dump(mode="json")
    console.print_json(json.dumps(data))


if __name__ == "__main__":
    app()
