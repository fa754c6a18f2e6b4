"""Callable descriptors — the parameter manifest a tool is built from.

A :class:`CallableDescriptor` is everything the schema builder and the tool
invoker need to know about one exposed callable: its name, its declared
parameters, its documentation and optional display annotations, plus the
callable itself.

Descriptors come from two places:

- :func:`fnmcp.schema.reflection.describe`, which reads them off a Python
  function with :mod:`inspect`;
- :class:`ToolBuilder`, where the tool author spells out the manifest by hand.

Usage::

    descriptor = (
        ToolBuilder("get_greeting", handler)
        .synopsis("Greets someone.")
        .parameter("name", TypeTag.STRING, mandatory=True, help="Who to greet.")
        .build()
    )
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from fnmcp.server.models import ToolAnnotations

__all__ = [
    "ActionPreference",
    "CallableDescriptor",
    "Documentation",
    "ParameterInfo",
    "Switch",
    "ToolAnnotations",
    "ToolBuilder",
    "TypeTag",
]


# ---------------------------------------------------------------------------
# Parameter type tags
# ---------------------------------------------------------------------------


class TypeTag(str, Enum):
    """Declared type family of a parameter."""

    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    SWITCH = "switch"
    SCRIPT_BLOCK = "script_block"
    ACTION_PREFERENCE = "action_preference"
    OTHER = "other"


class Switch:
    """Presence-only flag parameter type.

    A switch is ``True`` when passed and ``False`` otherwise. Tool schemas
    have no representation for it, so switch parameters are never exposed.
    """

    def __init__(self, is_present: bool = False) -> None:
        self.is_present = bool(is_present)

    def __bool__(self) -> bool:
        return self.is_present

    def __repr__(self) -> str:
        return f"Switch({self.is_present})"


class ActionPreference(str, Enum):
    """How a callable should react to non-terminating problems."""

    CONTINUE = "Continue"
    STOP = "Stop"
    SILENTLY_CONTINUE = "SilentlyContinue"
    IGNORE = "Ignore"
    INQUIRE = "Inquire"


# ---------------------------------------------------------------------------
# Manifest models
# ---------------------------------------------------------------------------


class ParameterInfo(BaseModel):
    """One declared parameter of a callable."""

    name: str
    type_tag: TypeTag = TypeTag.OTHER
    mandatory: bool = False
    help_messages: list[str] = []
    position: int = 0
    is_common: bool = False


class Documentation(BaseModel):
    """Help metadata attached to a callable."""

    synopsis: str | None = None
    description: str | None = None
    role: str | None = None
    functionality: str | None = None


class CallableDescriptor(BaseModel):
    """A callable plus the manifest needed to expose it as a tool."""

    model_config = {"arbitrary_types_allowed": True}

    name: str
    parameters: list[ParameterInfo] = []
    documentation: Documentation | None = None
    annotations: ToolAnnotations | None = None
    handler: Callable[..., Any] = Field(exclude=True)


# ---------------------------------------------------------------------------
# Explicit registration
# ---------------------------------------------------------------------------


class ToolBuilder:
    """Fluent builder for a :class:`CallableDescriptor` without reflection."""

    def __init__(self, name: str, handler: Callable[..., Any]) -> None:
        self._name = name
        self._handler = handler
        self._parameters: list[ParameterInfo] = []
        self._doc: dict[str, str] = {}
        self._annotations: ToolAnnotations | None = None

    def synopsis(self, text: str) -> ToolBuilder:
        self._doc["synopsis"] = text
        return self

    def description(self, text: str) -> ToolBuilder:
        self._doc["description"] = text
        return self

    def role(self, text: str) -> ToolBuilder:
        self._doc["role"] = text
        return self

    def functionality(self, text: str) -> ToolBuilder:
        self._doc["functionality"] = text
        return self

    def parameter(
        self,
        name: str,
        type_tag: TypeTag = TypeTag.STRING,
        *,
        mandatory: bool = False,
        help: str | None = None,
    ) -> ToolBuilder:
        """Declare the next parameter; declaration order is schema order."""
        self._parameters.append(
            ParameterInfo(
                name=name,
                type_tag=type_tag,
                mandatory=mandatory,
                help_messages=[help] if help else [],
                position=len(self._parameters),
            )
        )
        return self

    def annotations(
        self,
        title: str,
        *,
        read_only_hint: bool = False,
        open_world_hint: bool = False,
    ) -> ToolBuilder:
        self._annotations = ToolAnnotations(
            title=title,
            read_only_hint=read_only_hint,
            open_world_hint=open_world_hint,
        )
        return self

    def build(self) -> CallableDescriptor:
        return CallableDescriptor(
            name=self._name,
            parameters=list(self._parameters),
            documentation=Documentation(**self._doc) if self._doc else None,
            annotations=self._annotations,
            handler=self._handler,
        )
