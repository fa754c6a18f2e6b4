"""Schema builder — turns callable descriptors into MCP tool descriptors.

Runs once, before the stream loop starts. The resulting list is read-only
for the rest of the session.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from fnmcp.schema.descriptor import CallableDescriptor, Documentation, ParameterInfo, TypeTag
from fnmcp.schema.reflection import describe
from fnmcp.server.errors import DuplicateToolError
from fnmcp.server.models import InputSchema, PropertySchema, ToolDescriptor

logger = logging.getLogger(__name__)

NO_SYNOPSIS = "NO SYNOPSIS AVAILABLE FOR THIS FUNCTION."
NO_DESCRIPTION = "NO DESCRIPTION AVAILABLE FOR THIS FUNCTION."
NO_PARAMETER_DESCRIPTION = "No description available for this parameter."

EXCLUDED_PARAMETER_NAMES = frozenset({"OutBuffer"})
EXCLUDED_TYPE_TAGS = frozenset({TypeTag.ACTION_PREFERENCE, TypeTag.SCRIPT_BLOCK, TypeTag.SWITCH})

# Anything not listed maps to "string".
JSON_TYPES: dict[TypeTag, str] = {
    TypeTag.STRING: "string",
    TypeTag.INT32: "integer",
    TypeTag.INT64: "integer",
    TypeTag.FLOAT: "number",
    TypeTag.DOUBLE: "number",
    TypeTag.DECIMAL: "number",
    TypeTag.BOOLEAN: "boolean",
}

_WHITESPACE_RE = re.compile(r"\s+")


def build_schemas(
    callables: Iterable[CallableDescriptor | Callable[..., Any]],
) -> list[ToolDescriptor]:
    """Build one :class:`ToolDescriptor` per callable, preserving order.

    Plain callables are described through :func:`fnmcp.schema.reflection.describe`.

    Raises:
        DuplicateToolError: If two callables resolve to the same tool name.
    """
    tools: list[ToolDescriptor] = []
    seen: set[str] = set()
    for item in callables:
        descriptor = item if isinstance(item, CallableDescriptor) else describe(item)
        if descriptor.name in seen:
            raise DuplicateToolError(descriptor.name)
        seen.add(descriptor.name)
        tools.append(build_tool(descriptor))

    logger.debug(
        "Built %d tool schema(s)",
        len(tools),
        extra={"fields": {"tools": [t.name for t in tools]}},
    )
    return tools


def build_tool(descriptor: CallableDescriptor) -> ToolDescriptor:
    """Build the :class:`ToolDescriptor` for a single callable."""
    annotations = descriptor.annotations
    return ToolDescriptor(
        name=descriptor.name,
        title=annotations.title if annotations is not None else None,
        description=tool_description(descriptor.documentation),
        input_schema=input_schema(descriptor.parameters),
        annotations=annotations,
        handler=descriptor.handler,
    )


def input_schema(parameters: Iterable[ParameterInfo]) -> InputSchema:
    properties: dict[str, PropertySchema] = {}
    required: list[str] = []
    for param in sorted(parameters, key=lambda p: p.position):
        if not is_exposed(param):
            continue
        properties[param.name] = PropertySchema(
            type=JSON_TYPES.get(param.type_tag, "string"),  # type: ignore[arg-type]
            description=parameter_description(param),
        )
        if param.mandatory:
            required.append(param.name)
    return InputSchema(properties=properties, required=required)


def is_exposed(param: ParameterInfo) -> bool:
    """Whether *param* belongs to the tool's user-facing interface."""
    return not (
        param.is_common
        or param.name in EXCLUDED_PARAMETER_NAMES
        or param.type_tag in EXCLUDED_TYPE_TAGS
    )


def parameter_description(param: ParameterInfo) -> str:
    for message in param.help_messages:
        if message and message.strip():
            return message.strip()
    return NO_PARAMETER_DESCRIPTION


def tool_description(doc: Documentation | None) -> str:
    """Join synopsis, description and role/functionality tags into one line."""
    if doc is None:
        doc = Documentation(synopsis=NO_SYNOPSIS, description=NO_DESCRIPTION)

    parts = [doc.synopsis, doc.description]
    if doc.functionality:
        parts.append(f"<functionality>{doc.functionality}</functionality>")
    if doc.role:
        parts.append(f"<role>{doc.role}</role>")

    text = " ".join(p for p in parts if p and p.strip())
    return _WHITESPACE_RE.sub(" ", text).strip()
