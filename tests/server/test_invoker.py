"""Tests for the ToolInvoker."""

from __future__ import annotations

import json
import time
from datetime import date
from typing import Any
from unittest.mock import MagicMock

from pydantic import BaseModel

from fnmcp.schema.builder import build_schemas
from fnmcp.server.invoker import ToolInvoker, call_tool, serialize_result
from fnmcp.server.models import ToolDescriptor


def greet(Name: str) -> str:
    """Greets."""
    return f"hello {Name}"


def total(a: int, b: int = 0) -> dict[str, int]:
    """Adds."""
    return {"sum": a + b}


def broken(reason: str = "kaput") -> str:
    """Raises."""
    raise RuntimeError(reason)


def silent_failure() -> str:
    """Raises without a message."""
    raise KeyError()


async def async_echo(text: str) -> str:
    """Echoes asynchronously."""
    return text


def slow(seconds: float) -> str:
    """Sleeps."""
    time.sleep(seconds)
    return "done"


class Point(BaseModel):
    x: int
    y: int


def origin() -> Point:
    """Returns a model."""
    return Point(x=0, y=0)


class Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("no str")


def unprintable() -> Unprintable:
    """Returns a value that cannot be rendered."""
    return Unprintable()


def _tools(*fns: Any) -> list[ToolDescriptor]:
    return build_schemas(list(fns))


class TestUnknownTool:
    def test_fails_closed(self) -> None:
        result = call_tool("missing-tool", {}, _tools(greet))
        assert result.is_error is True
        assert result.text == "Unknown tool: missing-tool"

    def test_never_invokes(self) -> None:
        handler = MagicMock(return_value="x")
        tools = [ToolDescriptor(name="real", description="d", handler=handler)]
        result = call_tool("other", {}, tools)
        assert result.is_error
        handler.assert_not_called()

    def test_empty_tool_list(self) -> None:
        assert call_tool("greet", {}, []).is_error

    def test_descriptor_without_handler(self) -> None:
        tools = [ToolDescriptor(name="schema_only", description="d")]
        result = call_tool("schema_only", {}, tools)
        assert result.is_error
        assert result.text == "Unknown tool: schema_only"


class TestInvocation:
    def test_binds_by_name(self) -> None:
        result = call_tool("greet", {"Name": "Igor"}, _tools(greet))
        assert result.is_error is False
        assert result.text == "hello Igor"

    def test_none_arguments(self) -> None:
        result = call_tool("total", None, _tools(total))
        assert result.is_error
        assert "a" in result.text

    def test_non_mapping_arguments(self) -> None:
        result = call_tool("greet", ["Igor"], _tools(greet))  # type: ignore[arg-type]
        assert result.is_error
        assert "expected an object" in result.text

    def test_coerces_arguments(self) -> None:
        result = call_tool("total", {"a": "2", "b": 3}, _tools(total))
        assert result.is_error is False
        assert json.loads(result.text) == {"sum": 5}

    def test_validation_failure_is_tool_error(self) -> None:
        result = call_tool("total", {"a": "not a number"}, _tools(total))
        assert result.is_error
        assert result.text

    def test_extra_arguments_are_tool_error(self) -> None:
        result = call_tool("greet", {"Name": "a", "Other": 1}, _tools(greet))
        assert result.is_error

    def test_exception_message(self) -> None:
        result = call_tool("broken", {"reason": "disk full"}, _tools(broken))
        assert result.is_error is True
        assert result.text == "disk full"

    def test_empty_exception_message_uses_type(self) -> None:
        result = call_tool("silent_failure", {}, _tools(silent_failure))
        assert result.is_error
        assert result.text == "KeyError"

    def test_coroutine_tool(self) -> None:
        result = call_tool("async_echo", {"text": "hi"}, _tools(async_echo))
        assert result.is_error is False
        assert result.text == "hi"

    def test_descriptor_without_validation(self) -> None:
        handler = MagicMock(return_value=[1, 2])
        tools = [ToolDescriptor(name="mocked", description="d", handler=handler)]
        result = call_tool("mocked", {"k": "v"}, tools)
        assert result.text == "[1,2]"
        handler.assert_called_once_with(k="v")


class TestTimeout:
    def test_no_timeout_by_default(self) -> None:
        assert ToolInvoker().timeout is None

    def test_fast_call_within_timeout(self) -> None:
        invoker = ToolInvoker(timeout=5)
        try:
            result = invoker.call_tool("slow", {"seconds": 0}, _tools(slow))
        finally:
            invoker.close()
        assert result.text == "done"

    def test_overrun_is_tool_error(self) -> None:
        invoker = ToolInvoker(timeout=0.05)
        try:
            result = invoker.call_tool("slow", {"seconds": 0.5}, _tools(slow))
        finally:
            invoker.close()
        assert result.is_error
        assert "timed out" in result.text

    def test_overrun_worker_is_daemon(self) -> None:
        invoker = ToolInvoker(timeout=0.05)
        invoker.call_tool("slow", {"seconds": 2}, _tools(slow))
        stuck = invoker.abandoned
        assert len(stuck) == 1
        assert stuck[0].daemon

    def test_later_calls_not_queued_behind_overrun(self) -> None:
        invoker = ToolInvoker(timeout=1)
        tools = _tools(slow, greet)
        assert invoker.call_tool("slow", {"seconds": 3}, tools).is_error

        started = time.monotonic()
        result = invoker.call_tool("greet", {"Name": "Igor"}, tools)

        assert result.text == "hello Igor"
        assert time.monotonic() - started < 0.5

    def test_tool_error_under_timeout(self) -> None:
        result = ToolInvoker(timeout=5).call_tool("broken", {"reason": "nope"}, _tools(broken))
        assert result.is_error
        assert result.text == "nope"


class TestSerializeResult:
    def test_string_passthrough(self) -> None:
        assert serialize_result("plain") == "plain"

    def test_compact_json(self) -> None:
        assert serialize_result({"a": [1, 2], "b": None}) == '{"a":[1,2],"b":null}'

    def test_none(self) -> None:
        assert serialize_result(None) == "null"

    def test_pydantic_model(self) -> None:
        result = call_tool("origin", {}, _tools(origin))
        assert json.loads(result.text) == {"x": 0, "y": 0}

    def test_fallback_to_str(self) -> None:
        assert serialize_result(date(2025, 1, 2)) == "2025-01-02"

    def test_unicode_kept(self) -> None:
        assert serialize_result(["héllo"]) == '["héllo"]'

    def test_unrenderable_value_is_tool_error(self) -> None:
        result = call_tool("unprintable", {}, _tools(unprintable))
        assert result.is_error is True
        assert result.text == "no str"
