"""Output formatters for CLI commands."""

import json
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from oauth_handshake.cli.config import OutputFormat

console = Console()
error_console = Console(stderr=True)


def format_output(
    data: BaseModel | Sequence[BaseModel] | dict[str, Any] | list[dict[str, Any]],
    output_format: OutputFormat,
    *,
    title: str | None = None,
    columns: list[str] | None = None,
) -> None:
    """Format and print output in the specified format.

    Args:
        data: Data to format (Pydantic model, list of models, or dict/list)
        output_format: Output format (table, json)
        title: Optional title for table output
        columns: Optional column names to include in tables
    """
    converted: list[dict[str, Any]]
    if isinstance(data, BaseModel):
        converted = [data.model_dump(mode="json", exclude_none=True)]
    elif isinstance(data, dict):
        converted = [data]
    else:
        converted = [
            item.model_dump(mode="json", exclude_none=True) if isinstance(item, BaseModel) else item
            for item in data
        ]

    if output_format == OutputFormat.JSON:
        _format_json(converted, single=isinstance(data, BaseModel | dict))
    else:
        _format_table(converted, title, columns)


def _format_json(data: list[dict[str, Any]], *, single: bool) -> None:
    """Format as JSON."""
    console.print_json(json.dumps(data[0] if single else data, default=str))


def _snake_to_title(s: str) -> str:
    """Convert snake_case to Title Case for table headers."""
    return " ".join(word.capitalize() for word in s.split("_"))


def _format_table(
    data: list[dict[str, Any]],
    title: str | None,
    columns: list[str] | None,
) -> None:
    """Format as rich table."""
    if not data:
        console.print("[dim]No data[/dim]")
        return

    if columns is None:
        columns = list(data[0].keys())

    table = Table(title=title, show_header=True, header_style="bold")

    for col in columns:
        table.add_column(_snake_to_title(col))

    for row in data:
        table.add_row(*[str(row.get(col, "")) for col in columns])

    console.print(table)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {message}")
