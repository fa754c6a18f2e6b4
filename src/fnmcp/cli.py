"""fnmcp CLI entrypoint."""

from __future__ import annotations

import click

from fnmcp import __version__


@click.group()
@click.version_option(version=__version__, prog_name="fnmcp")
def main() -> None:
    """fnmcp — expose Python functions as MCP tools over stdio."""


# Register subcommands
from fnmcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
