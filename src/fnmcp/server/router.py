"""RequestRouter — maps one JSON-RPC request to one JSON-RPC response.

The router holds no per-session state: every response is a function of the
request and the (immutable) tool list.  Tool failures are absorbed by the
:class:`~fnmcp.server.invoker.ToolInvoker`; only unknown methods produce a
JSON-RPC ``error`` object.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from fnmcp.server.invoker import ToolInvoker
from fnmcp.server.models import (
    COMPAT_PROTOCOL_VERSION,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
    ToolDescriptor,
)
from fnmcp.utils.telemetry import ATTR_METHOD, ATTR_REQUEST_ID, get_tracer

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

Handler = Callable[[JsonRpcRequest], dict[str, Any]]


class RequestRouter:
    """Dispatches requests by method name.

    Usage::

        router = RequestRouter(build_schemas([get_greeting]))
        response = router.handle(JsonRpcRequest(id=1, method="ping"))
        assert response.result == {}
    """

    def __init__(
        self,
        tools: Sequence[ToolDescriptor],
        *,
        server_info: ServerInfo | None = None,
        invoker: ToolInvoker | None = None,
    ) -> None:
        self._tools = tools
        self._server_info = server_info or ServerInfo(name="fnmcp", version=_package_version())
        self._invoker = invoker or ToolInvoker()
        self._handlers: dict[str, Handler] = {
            "initialize": self._initialize,
            "notifications/initialized": self._initialized,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    @property
    def tools(self) -> Sequence[ToolDescriptor]:
        return self._tools

    @property
    def server_info(self) -> ServerInfo:
        return self._server_info

    @property
    def methods(self) -> list[str]:
        return list(self._handlers)

    def close(self) -> None:
        self._invoker.close()

    def handle(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Produce the response for *request*."""
        with _tracer.start_as_current_span("fnmcp.request") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            span.set_attribute(ATTR_REQUEST_ID, str(request.id))

            handler = self._handlers.get(request.method)
            if handler is None:
                logger.warning(
                    "Method not found: %s",
                    request.method,
                    extra={"fields": {"method": request.method, "id": request.id}},
                )
                return JsonRpcResponse.failure(
                    request.id,
                    METHOD_NOT_FOUND,
                    "Method not found",
                    data=f"The method '{request.method}' does not exist or is not available.",
                )

            logger.debug(
                "Handling %s",
                request.method,
                extra={"fields": {"method": request.method, "id": request.id}},
            )
            return JsonRpcResponse.success(request.id, handler(request))

    # -- handlers -------------------------------------------------------------

    def _initialize(self, request: JsonRpcRequest) -> dict[str, Any]:
        requested = request.params.get("protocolVersion")
        version = (
            COMPAT_PROTOCOL_VERSION
            if requested == COMPAT_PROTOCOL_VERSION
            else LATEST_PROTOCOL_VERSION
        )
        logger.info(
            "Client initialized",
            extra={"fields": {"requested": requested, "negotiated": version}},
        )
        return {
            "protocolVersion": version,
            "serverInfo": self._server_info.model_dump(),
            "capabilities": {"tools": {"listChanged": False}},
        }

    def _initialized(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {"message": "Notification received."}

    def _ping(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {}

    def _tools_list(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {"tools": [tool.to_wire() for tool in self._tools]}

    def _tools_call(self, request: JsonRpcRequest) -> dict[str, Any]:
        name = request.params.get("name")
        result = self._invoker.call_tool(
            name if isinstance(name, str) else "",
            request.params.get("arguments"),
            self._tools,
        )
        return result.to_wire()


def _package_version() -> str:
    from fnmcp import __version__

    return __version__
