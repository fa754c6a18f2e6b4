"""Shared CLI output formatters."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from fnmcp.server.models import ToolDescriptor  # noqa: TC001

console = Console()

# stdout belongs to the protocol while serving
err_console = Console(stderr=True)


def print_tools_table(tools: Sequence[ToolDescriptor]) -> None:
    """Pretty-print tool descriptors as a table."""
    table = Table(title="Exposed Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Parameters")
    table.add_column("Description")

    for tool in tools:
        schema = tool.input_schema
        params = ", ".join(
            f"{name}*" if name in schema.required else name for name in schema.properties
        )
        table.add_row(tool.name, params or "-", _truncate(tool.description))

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
