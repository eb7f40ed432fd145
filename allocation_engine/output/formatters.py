"""Output formatters for allocation results.

Provides multiple output formats:
- JSON: Machine-readable, complete data
- CSV: Spreadsheet-compatible, one row per month
- Table: Human-readable CLI output
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table

from ..core.models import (
    AllocationStatus,
    CanonicalMonthEntry,
    MonthYear,
    PartialAmounts,
    ProratedMonth,
)
from ..core.types import AllocationStatusType

logger = logging.getLogger(__name__)

MONTH_FIELDS = ["month_key", "percentage", "revenue", "cost", "profit", "days"]
PARTIAL_FIELDS = ["revenue", "cost", "profit", "paid_amount", "balance", "profit_percentage"]


def _month_row(entry: CanonicalMonthEntry) -> dict[str, Any]:
    return {
        "month_key": entry.key,
        "percentage": entry.percentage,
        "revenue": entry.revenue,
        "cost": entry.cost,
        "profit": entry.profit,
        "days": entry.days,
    }


def _partial_row(amounts: PartialAmounts) -> dict[str, Any]:
    row = amounts.model_dump()
    row["profit_percentage"] = amounts.profit_percentage
    return row


def _span_row(month: MonthYear | ProratedMonth) -> dict[str, Any]:
    row: dict[str, Any] = {"month_key": f"{month.year}-{month.month:02d}"}
    if isinstance(month, ProratedMonth):
        row["days"] = month.days
        row["percentage"] = month.percentage
    return row


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format_allocation(
        self,
        entries: Sequence[CanonicalMonthEntry],
        status: AllocationStatus,
    ) -> str:
        """Format a cleaned allocation and its status."""
        pass

    @abstractmethod
    def format_partial(self, amounts: PartialAmounts, period: str) -> str:
        """Format the slice of an order for one period."""
        pass

    @abstractmethod
    def format_months(self, months: Sequence[MonthYear | ProratedMonth]) -> str:
        """Format a month span or proration plan."""
        pass


class JSONFormatter(OutputFormatter):
    """Formats results as JSON."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format_allocation(self, entries, status) -> str:
        data = {
            "status": status.status.value,
            "message": status.message,
            "total_percentage": status.total_percentage,
            "allocations": [_month_row(entry) for entry in entries],
        }
        return json.dumps(data, indent=self.indent)

    def format_partial(self, amounts, period) -> str:
        return json.dumps({"period": period, **_partial_row(amounts)}, indent=self.indent)

    def format_months(self, months) -> str:
        return json.dumps([_span_row(month) for month in months], indent=self.indent)


class CSVFormatter(OutputFormatter):
    """Formats results as CSV."""

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def _write(self, fieldnames: list[str], rows: list[dict[str, Any]]) -> str:
        output = io.StringIO()
        writer = csv.DictWriter(
            output,
            fieldnames=fieldnames,
            delimiter=self.delimiter,
            extrasaction="ignore",
            lineterminator="\n",
        )
        writer.writeheader()
        writer.writerows(rows)
        return output.getvalue()

    def format_allocation(self, entries, status) -> str:
        return self._write(MONTH_FIELDS, [_month_row(entry) for entry in entries])

    def format_partial(self, amounts, period) -> str:
        return self._write(["period"] + PARTIAL_FIELDS, [{"period": period, **_partial_row(amounts)}])

    def format_months(self, months) -> str:
        rows = [_span_row(month) for month in months]
        fieldnames = ["month_key", "days", "percentage"] if any(len(r) > 1 for r in rows) else ["month_key"]
        return self._write(fieldnames, rows)


class TableFormatter(OutputFormatter):
    """Formats results as human-readable tables for CLI output."""

    STATUS_STYLES = {
        AllocationStatusType.VALID: "green",
        AllocationStatusType.OVER: "red",
        AllocationStatusType.UNDER: "yellow",
    }

    def __init__(self, width: int = 100):
        """
        Initialize table formatter.

        Args:
            width: Maximum table width
        """
        self.width = width

    def _render(self, *renderables: Any) -> str:
        console = Console(file=io.StringIO(), width=self.width, force_terminal=False)
        for renderable in renderables:
            console.print(renderable)
        return console.file.getvalue()

    def format_allocation(self, entries, status) -> str:
        table = Table(title="Monthly Allocation")
        table.add_column("Month")
        table.add_column("Percentage", justify="right")
        table.add_column("Revenue", justify="right")
        table.add_column("Cost", justify="right")
        table.add_column("Profit", justify="right")

        for entry in entries:
            table.add_row(
                entry.key,
                f"{entry.percentage:.2f}%",
                f"${entry.revenue:,.2f}",
                f"${entry.cost:,.2f}",
                f"${entry.profit:,.2f}",
            )

        style = self.STATUS_STYLES.get(status.status, "white")
        summary = (
            f"[{style}]{status.status.display_name}[/]: {status.message} "
            f"(total {status.total_percentage:.2f}%)"
        )
        return self._render(table, summary)

    def format_partial(self, amounts, period) -> str:
        table = Table(title=f"Partial Amounts for {period}")
        table.add_column("Figure")
        table.add_column("Amount", justify="right")

        table.add_row("Revenue", f"${amounts.revenue:,.2f}")
        table.add_row("Cost", f"${amounts.cost:,.2f}")
        table.add_row("Profit", f"${amounts.profit:,.2f}")
        table.add_row("Paid", f"${amounts.paid_amount:,.2f}")
        table.add_row("Balance", f"${amounts.balance:,.2f}")
        table.add_row("Margin", f"{amounts.profit_percentage:.1f}%")
        return self._render(table)

    def format_months(self, months) -> str:
        prorated = any(isinstance(month, ProratedMonth) for month in months)
        table = Table(title="Months")
        table.add_column("Month")
        if prorated:
            table.add_column("Days", justify="right")
            table.add_column("Percentage", justify="right")

        for month in months:
            row = _span_row(month)
            if prorated:
                table.add_row(row["month_key"], str(row["days"]), f"{row['percentage']:.2f}%")
            else:
                table.add_row(row["month_key"])
        return self._render(table)


def get_formatter(output: str) -> OutputFormatter:
    """Return the formatter for an output format name."""
    formatters = {
        "json": JSONFormatter,
        "csv": CSVFormatter,
        "table": TableFormatter,
    }
    try:
        return formatters[output]()
    except KeyError:
        raise ValueError(f"Unknown output format: {output}")
