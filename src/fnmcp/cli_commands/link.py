"""``fnmcp install-link`` — print a VS Code link that registers the server."""

from __future__ import annotations

from pathlib import PurePath

import click

from fnmcp.vscode import install_link


@click.command("install-link")
@click.argument("target")
@click.option("--name", default=None, help="Server name shown in VS Code.")
@click.option("--command", "command", default="fnmcp", show_default=True, help="Launcher.")
@click.option("--insiders", is_flag=True, help="Link for VS Code Insiders.")
def install_link_cmd(target: str, name: str | None, command: str, insiders: bool) -> None:
    """Print an install link that serves TARGET from VS Code."""
    server_name = name or default_server_name(target)
    click.echo(install_link(server_name, command, ["serve", target], insiders=insiders))


def default_server_name(target: str) -> str:
    """``pkg.greetings`` and ``tools/greetings.py`` both become ``greetings``."""
    from fnmcp.bootstrap import split_target

    module_ref = split_target(target)[0]
    if module_ref.endswith(".py"):
        return PurePath(module_ref).stem
    return module_ref.rsplit(".", 1)[-1]
