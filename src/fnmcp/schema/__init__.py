"""Tool schemas — callable descriptors, reflection and the schema builder."""

from fnmcp.schema.builder import build_schemas, build_tool
from fnmcp.schema.decorators import Common, Param, annotations, tool
from fnmcp.schema.descriptor import (
    ActionPreference,
    CallableDescriptor,
    Documentation,
    ParameterInfo,
    Switch,
    ToolAnnotations,
    ToolBuilder,
    TypeTag,
)
from fnmcp.schema.reflection import describe, discover

__all__ = [
    "ActionPreference",
    "CallableDescriptor",
    "Common",
    "Documentation",
    "Param",
    "ParameterInfo",
    "Switch",
    "ToolAnnotations",
    "ToolBuilder",
    "TypeTag",
    "annotations",
    "build_schemas",
    "build_tool",
    "describe",
    "discover",
    "tool",
]
