"""``fnmcp serve`` — run the stdio MCP server for a module's functions."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from fnmcp.cli_commands._output import err_console


@click.command()
@click.argument("target")
@click.option(
    "--function",
    "-f",
    "functions",
    multiple=True,
    help="Expose only this function (repeatable).",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file.",
)
@click.option("--dry-run", is_flag=True, help="Print the tool schema as JSON and exit.")
def serve(
    target: str,
    functions: tuple[str, ...],
    config_path: Path | None,
    dry_run: bool,
) -> None:
    """Serve the functions in TARGET as MCP tools on stdin/stdout.

    TARGET is a module (``pkg.mod``), a single function (``pkg.mod:func``)
    or a path to a ``.py`` file.
    """
    from fnmcp.bootstrap import load_target
    from fnmcp.bootstrap import serve as serve_tools
    from fnmcp.config import load_settings
    from fnmcp.schema.builder import build_schemas
    from fnmcp.server.errors import FnMcpError

    try:
        settings = load_settings(config_path)
        callables = load_target(target, functions)
        if dry_run:
            tools = build_schemas(callables)
            click.echo(json.dumps([t.to_wire() for t in tools], indent=2, ensure_ascii=False))
            return
        serve_tools(callables, settings)
    except FnMcpError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
