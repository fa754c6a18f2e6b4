"""MCP stdio server — wire models, tool invoker, request router and stream loop."""

from fnmcp.server.errors import (
    ConfigError,
    DuplicateToolError,
    FnMcpError,
    InvalidAnnotationsError,
    ToolLoadError,
    ToolTimeoutError,
)
from fnmcp.server.invoker import ToolInvoker, call_tool, serialize_result
from fnmcp.server.loop import SessionEnd, StreamLoop
from fnmcp.server.models import (
    CallToolResult,
    InputSchema,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    PropertySchema,
    ServerInfo,
    ToolDescriptor,
)
from fnmcp.server.router import RequestRouter

__all__ = [
    "CallToolResult",
    "ConfigError",
    "DuplicateToolError",
    "FnMcpError",
    "InputSchema",
    "InvalidAnnotationsError",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "PropertySchema",
    "RequestRouter",
    "ServerInfo",
    "SessionEnd",
    "StreamLoop",
    "ToolDescriptor",
    "ToolInvoker",
    "ToolLoadError",
    "ToolTimeoutError",
    "call_tool",
    "serialize_result",
]
