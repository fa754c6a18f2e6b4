"""MCP models — JSON-RPC 2.0 messages and tool definitions.

Implements the message format used by the Model Context Protocol for
lifecycle negotiation (``initialize``), tool discovery (``tools/list``) and
execution (``tools/call``).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

JSONRPC_VERSION = "2.0"

LATEST_PROTOCOL_VERSION = "2025-11-25"
COMPAT_PROTOCOL_VERSION = "2025-06-18"

METHOD_NOT_FOUND = -32601

RequestId = int | float | str

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: str = JSONRPC_VERSION
    method: str = ""
    id: RequestId | None = None
    params: dict[str, Any] = {}

    @field_validator("method", mode="before")
    @classmethod
    def _string_method(cls, value: Any) -> Any:
        return value if isinstance(value, str) else ""

    @field_validator("params", mode="before")
    @classmethod
    def _object_params(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: str = JSONRPC_VERSION
    id: RequestId | None = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @classmethod
    def success(cls, request_id: RequestId | None, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: RequestId | None,
        code: int,
        message: str,
        data: Any = None,
    ) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message, data=data))

    def to_wire(self) -> dict[str, Any]:
        """Dump with either ``result`` or ``error``, never both."""
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            wire["error"] = self.error.model_dump(exclude_none=True)
        else:
            wire["result"] = self.result if self.result is not None else {}
        return wire


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ToolAnnotations(BaseModel):
    """Client display hints for a tool."""

    title: str
    read_only_hint: bool = False
    open_world_hint: bool = False

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            msg = "title must not be empty"
            raise ValueError(msg)
        return value

    def to_wire(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "readOnlyHint": self.read_only_hint,
            "openWorldHint": self.open_world_hint,
        }


class PropertySchema(BaseModel):
    """JSON Schema for one tool parameter."""

    type: Literal["string", "integer", "number", "boolean"] = "string"
    description: str


class InputSchema(BaseModel):
    """JSON Schema describing a tool's arguments object."""

    type: Literal["object"] = "object"
    properties: dict[str, PropertySchema] = {}
    required: list[str] = []


class ToolDescriptor(BaseModel):
    """A tool definition as returned by ``tools/list``.

    ``handler`` is the callable behind the tool; it never leaves the process.
    """

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    name: str
    title: str | None = None
    description: str
    input_schema: InputSchema = Field(default_factory=InputSchema, alias="inputSchema")
    annotations: ToolAnnotations | None = None
    handler: Callable[..., Any] | None = Field(default=None, exclude=True)

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"name": self.name}
        if self.title is not None:
            wire["title"] = self.title
        wire["description"] = self.description
        wire["inputSchema"] = self.input_schema.model_dump()
        if self.annotations is not None:
            wire["annotations"] = self.annotations.to_wire()
        return wire


class TextContent(BaseModel):
    """Plain text content part of a tool result."""

    type: Literal["text"] = "text"
    text: str


class CallToolResult(BaseModel):
    """Outcome of a tool invocation."""

    text: str
    is_error: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {
            "content": [TextContent(text=self.text).model_dump()],
            "isError": self.is_error,
        }


class ServerInfo(BaseModel):
    """Identity the server reports during ``initialize``."""

    name: str
    version: str
