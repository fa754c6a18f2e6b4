"""Shared fixtures: a small tool set, a router over it, and a loop runner."""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from typing import Any

import pytest

from fnmcp.schema.builder import build_schemas
from fnmcp.server.loop import SessionEnd, StreamLoop
from fnmcp.server.models import ServerInfo, ToolDescriptor
from fnmcp.server.router import RequestRouter


def say_hello(Name: str) -> str:
    """Say hello to someone."""
    return f"hello {Name}"


def explode(reason: str = "boom") -> str:
    """Always fails."""
    raise ValueError(reason)


def describe_user(user_id: int, verbose: bool = False) -> dict[str, Any]:
    """Look up a user record."""
    return {"id": user_id, "verbose": verbose}


@pytest.fixture
def tools() -> list[ToolDescriptor]:
    return build_schemas([say_hello, explode, describe_user])


@pytest.fixture
def router(tools: list[ToolDescriptor]) -> RequestRouter:
    return RequestRouter(tools, server_info=ServerInfo(name="test-server", version="9.9.9"))


class LoopRun:
    """Captured streams of one finished session."""

    def __init__(self, end: SessionEnd, output: str, errors: str) -> None:
        self.end = end
        self.output = output
        self.errors = errors

    @property
    def responses(self) -> list[dict[str, Any]]:
        return [json.loads(line) for line in self.output.splitlines()]

    @property
    def diagnostics(self) -> list[dict[str, Any]]:
        return [json.loads(line) for line in self.errors.splitlines()]


@pytest.fixture
def run_loop(router: RequestRouter) -> Callable[..., LoopRun]:
    """Feed raw input text through a StreamLoop and capture both streams."""

    def _run(text: str) -> LoopRun:
        stdin = io.StringIO(text)
        stdout = io.StringIO()
        stderr = io.StringIO()
        end = StreamLoop(router, stdin, stdout, stderr).run()
        return LoopRun(end, stdout.getvalue(), stderr.getvalue())

    return _run
