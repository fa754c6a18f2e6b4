"""Process bootstrap — resolve tools, configure the process, run the loop."""

from __future__ import annotations

import importlib
import importlib.util
import io
import logging
import sys
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any, TextIO

from fnmcp.config import ServerSettings
from fnmcp.logging_setup import configure_logging
from fnmcp.schema.builder import build_schemas
from fnmcp.schema.descriptor import CallableDescriptor
from fnmcp.schema.reflection import discover
from fnmcp.server.errors import ToolLoadError
from fnmcp.server.invoker import ToolInvoker
from fnmcp.server.loop import SessionEnd, StreamLoop
from fnmcp.server.models import ServerInfo
from fnmcp.server.router import RequestRouter
from fnmcp.utils.telemetry import configure_telemetry

logger = logging.getLogger(__name__)

ToolSource = CallableDescriptor | Callable[..., Any]


def load_target(target: str, names: Sequence[str] = ()) -> list[Callable[..., Any]]:
    """Resolve *target* to the callables it exposes.

    *target* is ``package.module``, ``package.module:function`` or a path to
    a ``.py`` file.  *names* narrows the result to the given function names.

    Raises:
        ToolLoadError: If the module or function cannot be found.
    """
    module_ref, attr = split_target(target)
    module = _import(module_ref, target)

    if attr:
        fn = getattr(module, attr, None)
        if fn is None or not callable(fn):
            raise ToolLoadError(target, f"no callable named {attr!r}")
        callables: list[Callable[..., Any]] = [fn]
    else:
        callables = discover(module)

    if names:
        by_name = {getattr(fn, "__name__", ""): fn for fn in callables}
        missing = [n for n in names if n not in by_name]
        if missing:
            raise ToolLoadError(target, f"unknown function(s): {', '.join(missing)}")
        callables = [by_name[n] for n in names]

    if not callables:
        raise ToolLoadError(target, "no functions to expose")
    return callables


def split_target(target: str) -> tuple[str, str]:
    """Split *target* into its module reference and optional function name."""
    if target.endswith(".py"):
        return target, ""
    if ".py:" in target:
        module_ref, _, attr = target.rpartition(":")
        return module_ref, attr
    module_ref, _, attr = target.partition(":")
    return module_ref, attr


def build_router(tools: Iterable[ToolSource], settings: ServerSettings) -> RequestRouter:
    """Build tool schemas and the router that serves them."""
    descriptors = build_schemas(tools)
    return RequestRouter(
        descriptors,
        server_info=ServerInfo(name=settings.server_name, version=settings.server_version),
        invoker=ToolInvoker(timeout=settings.tool_timeout),
    )


def serve(
    tools: Iterable[ToolSource],
    settings: ServerSettings,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> SessionEnd:
    """Configure the process and serve *tools* until the session ends."""
    if stdin is None:
        stdin = _utf8(sys.stdin, errors="replace")
    if stdout is None:
        stdout = _utf8(sys.stdout)

    configure_logging(settings)
    if settings.telemetry:
        configure_telemetry(
            service_name=settings.server_name,
            otlp_endpoint=settings.otlp_endpoint,
        )

    router = build_router(tools, settings)
    logger.info(
        "Serving %d tool(s)",
        len(router.tools),
        extra={"fields": {"server": settings.server_name, "tools": [t.name for t in router.tools]}},
    )

    try:
        return StreamLoop(router, stdin, stdout, stderr).run()
    finally:
        router.close()


def _import(module_ref: str, target: str) -> Any:
    if module_ref.endswith(".py"):
        path = Path(module_ref)
        if not path.is_file():
            raise ToolLoadError(target, "file not found")
        spec = importlib.util.spec_from_file_location(path.stem, path)
        if spec is None or spec.loader is None:
            raise ToolLoadError(target, "not an importable file")
        module = importlib.util.module_from_spec(spec)
        sys.modules[spec.name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(spec.name, None)
            raise ToolLoadError(target, str(exc)) from exc
        return module

    try:
        return importlib.import_module(module_ref)
    except ImportError as exc:
        raise ToolLoadError(target, str(exc)) from exc


def _utf8(stream: TextIO, errors: str = "strict") -> TextIO:
    if isinstance(stream, io.TextIOWrapper):
        stream.reconfigure(encoding="utf-8", errors=errors)
    return stream
