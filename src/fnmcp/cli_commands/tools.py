"""``fnmcp tools`` — show the tools a target would expose."""

from __future__ import annotations

import json
import sys

import click

from fnmcp.cli_commands._output import console, print_tools_table


@click.command()
@click.argument("target")
@click.option(
    "--function",
    "-f",
    "functions",
    multiple=True,
    help="Show only this function (repeatable).",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def tools(target: str, functions: tuple[str, ...], as_json: bool) -> None:
    """List the tools TARGET exposes and their parameters."""
    from fnmcp.bootstrap import load_target
    from fnmcp.schema.builder import build_schemas
    from fnmcp.server.errors import FnMcpError

    try:
        descriptors = build_schemas(load_target(target, functions))
    except FnMcpError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if as_json:
        console.print_json(json.dumps([t.to_wire() for t in descriptors]))
        return

    print_tools_table(descriptors)
