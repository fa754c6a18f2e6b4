"""ToolInvoker — runs a named tool and captures its outcome as text.

Fails closed on unknown names and never lets a tool failure escape: every
exception raised while binding arguments or running the tool becomes a
``CallToolResult`` with ``is_error=True``.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import threading
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, validate_call

from fnmcp.server.errors import ToolTimeoutError
from fnmcp.server.models import CallToolResult, ToolDescriptor
from fnmcp.utils.telemetry import ATTR_TOOL_IS_ERROR, ATTR_TOOL_NAME, get_tracer

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

_VALIDATION_CONFIG = ConfigDict(arbitrary_types_allowed=True)


class ToolInvoker:
    """Invokes tools by name against a known tool list.

    ``timeout`` is off by default: a slow tool blocks the caller until it
    returns.  With a timeout set, each call runs on its own daemon thread and
    a call that overruns is reported as a tool error.  The overrunning thread
    is abandoned: it neither delays later calls nor keeps the process alive.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self._timeout = timeout
        self._bound: dict[str, Callable[..., Any]] = {}
        self._abandoned: list[threading.Thread] = []

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def call_tool(
        self,
        tool_name: str,
        arguments: Mapping[str, Any] | None,
        known_tools: Sequence[ToolDescriptor],
    ) -> CallToolResult:
        """Invoke *tool_name* with *arguments* bound by keyword."""
        with _tracer.start_as_current_span("fnmcp.tools.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, str(tool_name))
            result = self._call(tool_name, arguments, known_tools)
            span.set_attribute(ATTR_TOOL_IS_ERROR, result.is_error)
        return result

    @property
    def abandoned(self) -> list[threading.Thread]:
        """Timed-out tool threads that are still running."""
        self._abandoned = [t for t in self._abandoned if t.is_alive()]
        return list(self._abandoned)

    def close(self) -> None:
        running = self.abandoned
        if running:
            logger.warning(
                "%d timed-out tool call(s) still running at close",
                len(running),
                extra={"fields": {"threads": [t.name for t in running]}},
            )

    def _call(
        self,
        tool_name: str,
        arguments: Mapping[str, Any] | None,
        known_tools: Sequence[ToolDescriptor],
    ) -> CallToolResult:
        tool = _find(tool_name, known_tools)
        if tool is None or tool.handler is None:
            logger.warning(
                "Unknown tool requested: %s",
                tool_name,
                extra={"fields": {"tool": tool_name}},
            )
            return CallToolResult(text=f"Unknown tool: {tool_name}", is_error=True)

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            return CallToolResult(
                text=f"Invalid arguments for tool {tool_name}: expected an object",
                is_error=True,
            )

        try:
            value = self._run(tool.name, self._bind(tool.name, tool.handler), dict(arguments))
            text = serialize_result(value)
        except Exception as exc:
            logger.error(
                "Tool %s failed",
                tool_name,
                exc_info=True,
                extra={"fields": {"tool": tool_name, "error": type(exc).__name__}},
            )
            return CallToolResult(text=_error_text(exc), is_error=True)

        logger.info("Tool %s succeeded", tool_name, extra={"fields": {"tool": tool_name}})
        return CallToolResult(text=text)

    def _bind(self, name: str, handler: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap *handler* with pydantic argument validation, once per tool."""
        bound = self._bound.get(name)
        if bound is not None:
            return bound

        try:
            bound = validate_call(config=_VALIDATION_CONFIG)(handler)
        except Exception:
            logger.warning(
                "Argument validation unavailable for tool %s; calling it directly",
                name,
                exc_info=True,
            )
            bound = handler
        self._bound[name] = bound
        return bound

    def _run(self, name: str, fn: Callable[..., Any], arguments: dict[str, Any]) -> Any:
        if self._timeout is None:
            return _invoke(fn, arguments)

        outcome: dict[str, Any] = {}

        def target() -> None:
            try:
                outcome["value"] = _invoke(fn, arguments)
            except BaseException as exc:
                outcome["error"] = exc

        worker = threading.Thread(target=target, name=f"fnmcp-tool-{name}", daemon=True)
        worker.start()
        worker.join(self._timeout)
        if worker.is_alive():
            self._abandoned.append(worker)
            raise ToolTimeoutError(name, self._timeout)
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("value")


def call_tool(
    tool_name: str,
    arguments: Mapping[str, Any] | None,
    known_tools: Sequence[ToolDescriptor],
) -> CallToolResult:
    """Invoke a tool with a default (no timeout) :class:`ToolInvoker`."""
    return ToolInvoker().call_tool(tool_name, arguments, known_tools)


def serialize_result(value: Any) -> str:
    """Render a tool return value as text.

    Strings pass through untouched; everything else becomes compact JSON,
    or ``str(value)`` when it is not JSON-serialisable.
    """
    if isinstance(value, str):
        return value
    try:
        if isinstance(value, BaseModel):
            return value.model_dump_json()
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def _error_text(exc: BaseException) -> str:
    try:
        text = str(exc)
    except Exception:
        text = ""
    return text or type(exc).__name__


def _find(name: str, tools: Sequence[ToolDescriptor]) -> ToolDescriptor | None:
    for tool in tools:
        if tool.name == name:
            return tool
    return None


def _invoke(fn: Callable[..., Any], arguments: dict[str, Any]) -> Any:
    value = fn(**arguments)
    if inspect.isawaitable(value):
        return asyncio.run(_await(value))
    return value


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable
