"""Entry-point for the price monitor CLI."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from price_monitor.core.config import get_settings
from price_monitor.core.errors import DuplicateProductError, ItemNotFoundError, ScraperError
from price_monitor.core.models import MonitoredItem, RunResult, RunStatus
from price_monitor.observability.logging import configure_logging
from price_monitor.tracker.history import absolute_change, is_below_target, percent_change
from price_monitor.tracker.parser import format_price
from price_monitor.tracker.service import PriceMonitorService, build_service

app = typer.Typer(help="Track product prices and get alerted when they drop.")
console = Console()
ITEM_ARGUMENT = typer.Argument(..., help="Id of a tracked item (see `list`).")

T = TypeVar("T")


@app.callback()
def main() -> None:
    """Track product prices and get alerted when they drop."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


def _run(action: Callable[[PriceMonitorService], Awaitable[T]]) -> T:
    """Build a service, run one action against it and report failures."""

    async def _main() -> T:
        service = await build_service(get_settings())
        try:
            return await action(service)
        finally:
            await service.aclose()

    try:
        return asyncio.run(_main())
    except (ScraperError, DuplicateProductError, ItemNotFoundError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc


def _money(item: MonitoredItem, value: float | None) -> str:
    if value is None:
        return "-"
    return f"{item.currency} {format_price(value)}"


def _change(item: MonitoredItem) -> str:
    delta = absolute_change(item)
    if delta == 0:
        return "-"
    colour = "green" if delta < 0 else "red"
    sign = "+" if delta > 0 else "-"
    return f"[{colour}]{sign}{format_price(abs(delta))} ({percent_change(item):+.1f}%)[/{colour}]"


def _print_result(result: RunResult) -> None:
    colour = "green" if result.status is RunStatus.COMPLETED else "yellow"
    console.print(
        f"[bold {colour}]Refresh {result.status.value}:[/bold {colour}] "
        f"{len(result.updated)} updated, {len(result.unchanged)} unchanged, "
        f"{len(result.dropped)} dropped, {len(result.failed)} failed"
    )
    for failure in result.failed:
        console.print(f"  [red]{failure.item_id}[/red] {failure.kind.value}: {failure.message}")


@app.command()
def preview(url: str = typer.Argument(..., help="Product page URL.")) -> None:
    """Fetch a product page and show what would be tracked."""

    record = _run(lambda service: service.preview(url))
    table = Table(show_header=False)
    table.add_row("Name", record.name)
    table.add_row("Price", f"{record.currency} {format_price(record.price)}")
    table.add_row("Image", record.image_url or "-")
    console.print(table)


@app.command()
def add(
    url: str = typer.Argument(..., help="Product page URL."),
    target: float | None = typer.Option(None, help="Optional target price."),
) -> None:
    """Start tracking a product page."""

    result = _run(lambda service: service.track(url, target_price=target))
    if not result.looks_like_product_page:
        console.print("[yellow]Warning:[/yellow] URL does not look like a single product page.")
    item = result.item
    console.print(
        f"[bold green]Tracking[/bold green] {item.name} at {_money(item, item.current_price)} "
        f"[dim]({item.id})[/dim]"
    )


@app.command("list")
def list_items() -> None:
    """Show tracked items."""

    items = _run(lambda service: service.list_items())
    if not items:
        console.print("No tracked items.")
        return

    table = Table(title="Tracked items")
    table.add_column("Id", style="dim", no_wrap=True)
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Status")
    table.add_column("Last checked")
    for item in items:
        target = _money(item, item.target_price)
        if is_below_target(item):
            target = f"[bold green]{target}[/bold green]"
        table.add_row(
            str(item.id),
            item.name,
            _money(item, item.current_price),
            _change(item),
            target,
            "monitoring" if item.is_monitoring else "[yellow]paused[/yellow]",
            item.last_checked_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def history(item_id: uuid.UUID = ITEM_ARGUMENT) -> None:
    """Show the price history of an item."""

    item = _run(lambda service: service.get_item(item_id))
    table = Table(title=item.name)
    table.add_column("Observed at")
    table.add_column("Price", justify="right")
    for point in item.price_history:
        table.add_row(point.observed_at.strftime("%Y-%m-%d %H:%M"), _money(item, point.price))
    console.print(table)


@app.command()
def refresh(
    item_id: uuid.UUID | None = typer.Argument(None, help="Refresh only this item."),
) -> None:
    """Refresh one item, or every monitored item."""

    def progress(index: int, total: int, item: MonitoredItem) -> None:
        console.print(f"[dim][{index + 1}/{total}][/dim] {item.name}")

    result = _run(lambda service: service.refresh(item_id, on_progress=progress))
    _print_result(result)


@app.command()
def remove(item_id: uuid.UUID = ITEM_ARGUMENT) -> None:
    """Stop tracking an item and delete its history."""

    _run(lambda service: service.remove(item_id))
    console.print(f"[bold yellow]Removed[/bold yellow] {item_id}")


@app.command()
def target(
    item_id: uuid.UUID = ITEM_ARGUMENT,
    price: float | None = typer.Argument(None, help="Target price. Omit to clear it."),
) -> None:
    """Set or clear an item's target price."""

    item = _run(lambda service: service.set_target_price(item_id, price))
    console.print(f"Target for {item.name}: {_money(item, item.target_price)}")


@app.command()
def pause(item_id: uuid.UUID = ITEM_ARGUMENT) -> None:
    """Exclude an item from periodic refreshes."""

    item = _run(lambda service: service.set_monitoring(item_id, False))
    console.print(f"[yellow]Paused[/yellow] {item.name}")


@app.command()
def resume(item_id: uuid.UUID = ITEM_ARGUMENT) -> None:
    """Include an item in periodic refreshes again."""

    item = _run(lambda service: service.set_monitoring(item_id, True))
    console.print(f"[green]Monitoring[/green] {item.name}")


@app.command()
def run(
    now: bool = typer.Option(False, help="Run the first cycle immediately."),
) -> None:
    """Run periodic refreshes until interrupted."""

    settings = get_settings()

    async def _serve(service: PriceMonitorService) -> None:
        if service.scheduler is None:
            raise RuntimeError("Service was built without a scheduler")
        await service.scheduler.start(run_immediately=now)
        console.print(
            f"[bold green]Monitoring prices every {settings.wake_interval_seconds}s.[/bold green]"
        )
        await asyncio.Event().wait()

    try:
        _run(_serve)
    except KeyboardInterrupt:
        console.print("[bold yellow]Stopped.[/bold yellow]")


if __name__ == "__main__":  # pragma: no cover
    app()
