"""CLI entry point for the Order Allocation Engine.

Usage:
    allocation-engine months 2024-01-15 2024-03-20 --prorate
    allocation-engine show 100042 --orders orders.json
    allocation-engine partial 100042 --year 2024 --month 3 --orders orders.json
    allocation-engine apply 100042 --plan 2024-03:60 --plan 2024-04:40 --orders orders.json
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ..allocation.builder import create_allocation
from ..allocation.deduplicator import deduplicate_allocations
from ..allocation.months import generate_months_between_dates, prorate_months
from ..allocation.normalizer import is_legacy_allocation_format, normalize_allocation
from ..allocation.validator import get_allocation_status, require_complete_allocation
from ..calculator.partial_amounts import calculate_partial_amounts
from ..core.config import EngineConfig, get_config
from ..core.exceptions import AllocationEngineError
from ..core.models import AllocationPlanEntry, OrderFinancials, PaymentInfo, ReportingPeriod
from ..output.formatters import OutputFormatter, get_formatter
from ..storage.json_store import OrderStore

# Initialize app
app = typer.Typer(
    name="allocation-engine",
    help="Monthly revenue/cost/profit allocation for service orders",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
    )


def _load_config(config: Optional[Path]) -> EngineConfig:
    if config:
        return EngineConfig.from_yaml(config)
    return get_config()


def _open_store(orders: Optional[Path], cfg: EngineConfig) -> OrderStore:
    path = orders or cfg.orders_file
    if path is None:
        console.print("[red]No orders file given. Use --orders or set ALLOCATION_ORDERS_FILE[/]")
        raise typer.Exit(1)
    return OrderStore(path)


def _formatter(output: str) -> OutputFormatter:
    try:
        return get_formatter(output.lower())
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}. Use table, json or csv[/]")
        raise typer.Exit(1)


def _emit(formatted: str, output: str) -> None:
    if output == "table":
        console.print(formatted, markup=False, highlight=False)
    else:
        print(formatted)


def parse_plan_option(value: str) -> AllocationPlanEntry:
    """Parse ``YYYY-MM:PERCENT`` into a plan entry (month is 1-12)."""
    try:
        key, percentage = value.split(":", 1)
        year, month = key.split("-", 1)
        return AllocationPlanEntry(month=int(month), year=int(year), percentage=float(percentage))
    except ValueError:
        raise ValueError(f"Invalid plan entry '{value}'. Use YYYY-MM:PERCENT, e.g. 2024-03:50")


def load_plan_file(path: Path) -> List[AllocationPlanEntry]:
    """Load a YAML list of {month, year, percentage} mappings."""
    with open(path, "r", encoding="utf-8") as f:
        data: Any = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("allocations", [])
    if not isinstance(data, list):
        raise ValueError(f"Plan file {path} must contain a list of months")
    return [AllocationPlanEntry.model_validate(item) for item in data]


@app.command()
def months(
    start: str = typer.Argument(..., help="Service start date (YYYY-MM-DD)"),
    end: str = typer.Argument(..., help="Service end date (YYYY-MM-DD)"),
    prorate: bool = typer.Option(
        False,
        "--prorate", "-p",
        help="Split 100% across the months by number of days",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json, csv",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """
    List the calendar months a service period spans.

    Examples:
        allocation-engine months 2023-12-10 2024-02-05
        allocation-engine months 2024-01-15 2024-03-20 --prorate
    """
    setup_logging(verbose)

    span = prorate_months(start, end) if prorate else generate_months_between_dates(start, end)
    if not span:
        console.print("[red]No valid months found between the selected dates[/]")
        raise typer.Exit(1)

    _emit(_formatter(output).format_months(span), output.lower())


@app.command()
def show(
    order_id: str = typer.Argument(..., help="Order id"),
    orders: Optional[Path] = typer.Option(None, "--orders", help="JSON export of orders"),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json, csv",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show the cleaned allocation of an order and whether it sums to 100%."""
    setup_logging(verbose)

    try:
        cfg = _load_config(config)
        store = _open_store(orders, cfg)
        order = store.get(order_id)
        totals = OrderFinancials.from_document(order)
    except AllocationEngineError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    allocation = order.get("allocation")
    normalized = normalize_allocation(allocation, totals)
    if normalized is None:
        console.print(f"Order {order_id} has no allocation")
        return

    if is_legacy_allocation_format(allocation):
        logger.info(f"Order {order_id} uses the legacy allocation format")

    entries = deduplicate_allocations(
        normalized.allocations,
        negligible=cfg.negligible_percentage,
    )
    status = get_allocation_status(entries, tolerance=cfg.completion_tolerance)
    _emit(_formatter(output).format_allocation(entries, status), output.lower())


@app.command()
def partial(
    order_id: str = typer.Argument(..., help="Order id"),
    year: int = typer.Option(..., "--year", "-y", help="Reporting year"),
    month: int = typer.Option(..., "--month", "-m", help="Reporting month (1-12)"),
    orders: Optional[Path] = typer.Option(None, "--orders", help="JSON export of orders"),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json, csv",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show the revenue, cost, profit and payment slice of an order for one month."""
    setup_logging(verbose)

    if not 1 <= month <= 12:
        console.print(f"[red]Invalid month: {month}. Use 1-12[/]")
        raise typer.Exit(1)

    try:
        store = _open_store(orders, _load_config(config))
        order = store.get(order_id)
        amounts = calculate_partial_amounts(
            order,
            OrderFinancials.from_document(order),
            PaymentInfo.from_document(order),
            ReportingPeriod(year=year, month=month),
        )
    except AllocationEngineError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    period = f"{year}-{month:02d}"
    _emit(_formatter(output).format_partial(amounts, period), output.lower())


@app.command()
def apply(
    order_id: str = typer.Argument(..., help="Order id"),
    plan: Optional[List[str]] = typer.Option(
        None,
        "--plan",
        help="Month share as YYYY-MM:PERCENT (repeatable)",
    ),
    plan_file: Optional[Path] = typer.Option(
        None,
        "--plan-file",
        help="YAML list of {month, year, percentage}",
    ),
    prorate: bool = typer.Option(
        False,
        "--prorate",
        help="Build the plan from the order's service dates",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Save even if the plan does not sum to 100%",
    ),
    orders: Optional[Path] = typer.Option(None, "--orders", help="JSON export of orders"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """
    Replace an order's allocation with a new month/percentage plan.

    Examples:
        allocation-engine apply 100042 --plan 2024-03:60 --plan 2024-04:40 --orders orders.json
        allocation-engine apply 100042 --prorate --orders orders.json
    """
    setup_logging(verbose)

    try:
        cfg = _load_config(config)
        store = _open_store(orders, cfg)
        order = store.get(order_id)

        if plan:
            entries = [parse_plan_option(value) for value in plan]
        elif plan_file:
            entries = load_plan_file(plan_file)
        elif prorate:
            start, end = store.service_dates(order_id)
            entries = [
                AllocationPlanEntry(month=m.month, year=m.year, percentage=m.percentage)
                for m in prorate_months(start, end)
            ]
        else:
            console.print("[red]Provide --plan, --plan-file or --prorate[/]")
            raise typer.Exit(1)

        if not entries:
            console.print("[red]The plan has no months[/]")
            raise typer.Exit(1)

        if force:
            status = get_allocation_status(entries, tolerance=cfg.completion_tolerance)
        else:
            status = require_complete_allocation(entries, tolerance=cfg.completion_tolerance)

        allocation = create_allocation(entries, OrderFinancials.from_document(order))
        store.save_allocation(order_id, allocation)

    except (AllocationEngineError, ValueError, OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    _emit(get_formatter("table").format_allocation(allocation.allocations, status), "table")
    console.print(f"[green]Saved allocation for order {order_id}[/]")


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"Order Allocation Engine v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
