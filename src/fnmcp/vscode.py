"""VS Code integration — install links for registering a server with the editor."""

from __future__ import annotations

import json
from collections.abc import Sequence
from urllib.parse import quote

STABLE_SCHEME = "vscode"
INSIDERS_SCHEME = "vscode-insiders"


def server_config(name: str, command: str, args: Sequence[str] = ()) -> dict[str, object]:
    """The stdio server entry VS Code stores for an MCP server."""
    return {"name": name, "type": "stdio", "command": command, "args": list(args)}


def install_link(
    name: str,
    command: str,
    args: Sequence[str] = (),
    *,
    insiders: bool = False,
) -> str:
    """Return a ``vscode:mcp/install?...`` link that registers the server."""
    if not name.strip():
        msg = "server name must not be empty"
        raise ValueError(msg)
    scheme = INSIDERS_SCHEME if insiders else STABLE_SCHEME
    payload = json.dumps(server_config(name, command, args), separators=(",", ":"))
    return f"{scheme}:mcp/install?{quote(payload, safe='')}"
