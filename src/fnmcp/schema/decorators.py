"""Decorators and ``Annotated`` markers for declaring tools on plain functions.

Usage::

    from typing import Annotated

    from fnmcp import annotations, tool
    from fnmcp.schema.decorators import Param

    @tool
    @annotations(title="Greeting", read_only_hint=True)
    def get_greeting(name: Annotated[str, Param(help="Who to greet.")]) -> str:
        \"\"\"Return a friendly greeting.\"\"\"
        return f"hello {name}"
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar, overload

from pydantic import ValidationError

from fnmcp.schema.descriptor import ToolAnnotations
from fnmcp.server.errors import InvalidAnnotationsError

F = TypeVar("F", bound=Callable[..., Any])

TOOL_MARKER = "__fnmcp_tool__"
TOOL_NAME_ATTR = "__fnmcp_tool_name__"
ANNOTATIONS_ATTR = "__fnmcp_annotations__"


class Param:
    """``Annotated`` metadata carrying help text and an optional mandatory override."""

    __slots__ = ("help", "mandatory")

    def __init__(self, help: str | None = None, *, mandatory: bool | None = None) -> None:
        self.help = help
        self.mandatory = mandatory

    def __repr__(self) -> str:
        return f"Param(help={self.help!r}, mandatory={self.mandatory!r})"


class _CommonMarker:
    """Marks a parameter as host plumbing rather than part of the tool interface."""

    def __repr__(self) -> str:
        return "Common"


Common = _CommonMarker()


def annotations(
    title: str,
    *,
    read_only_hint: bool = False,
    open_world_hint: bool = False,
) -> Callable[[F], F]:
    """Attach client display hints to a tool function."""
    hints = _make_annotations(title, read_only_hint, open_world_hint)

    def decorator(fn: F) -> F:
        setattr(fn, ANNOTATIONS_ATTR, hints)
        return fn

    return decorator


@overload
def tool(fn: F) -> F: ...
@overload
def tool(
    *,
    name: str | None = None,
    annotations: ToolAnnotations | None = None,
) -> Callable[[F], F]: ...


def tool(
    fn: F | None = None,
    *,
    name: str | None = None,
    annotations: ToolAnnotations | None = None,
) -> F | Callable[[F], F]:
    """Mark a function for exposure as a tool.

    Works bare (``@tool``) or with arguments (``@tool(name="greet")``).
    """

    def decorator(func: F) -> F:
        setattr(func, TOOL_MARKER, True)
        if name is not None:
            setattr(func, TOOL_NAME_ATTR, name)
        if annotations is not None:
            setattr(func, ANNOTATIONS_ATTR, annotations)
        return func

    if fn is not None:
        return decorator(fn)
    return decorator


def is_tool(obj: object) -> bool:
    return bool(getattr(obj, TOOL_MARKER, False))


def _make_annotations(title: str, read_only_hint: bool, open_world_hint: bool) -> ToolAnnotations:
    try:
        return ToolAnnotations(
            title=title,
            read_only_hint=read_only_hint,
            open_world_hint=open_world_hint,
        )
    except ValidationError as exc:
        msg = f"Invalid tool annotations: {exc.errors()[0]['msg']}"
        raise InvalidAnnotationsError(msg) from exc
