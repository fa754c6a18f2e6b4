"""Sample tools used by the docs and the test suite.

Serve them with::

    fnmcp serve fnmcp.samples.greetings
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fnmcp.schema.decorators import Param, annotations, tool


@tool
@annotations(title="Greeting", read_only_hint=True)
def get_greeting(name: Annotated[str, Param(help="Name of the person to greet.")]) -> str:
    """Return a short greeting.

    Builds the greeting text locally; nothing leaves the process.

    Role: assistant
    Functionality: greetings
    """
    return f"hello {name}"


@tool
def add_numbers(a: int, b: int = 0) -> dict[str, int]:
    """Add two integers.

    Args:
        a: First addend.
        b: Second addend.
    """
    return {"sum": a + b}


@tool
def fail_always(message: str = "this tool always fails") -> str:
    """Raise an error carrying *message*."""
    raise RuntimeError(message)


@tool
@annotations(title="Server time", read_only_hint=True, open_world_hint=False)
def get_server_time(utc: bool = True) -> str:
    """Return the current server time in ISO 8601 format."""
    now = datetime.now(timezone.utc) if utc else datetime.now()
    return now.isoformat()
