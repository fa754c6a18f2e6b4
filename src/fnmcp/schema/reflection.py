"""Reflection provider — reads a :class:`CallableDescriptor` off a Python function.

Parameter metadata comes from :func:`inspect.signature` and
``typing.get_type_hints(include_extras=True)``; documentation comes from the
function docstring, which is parsed loosely in Google style::

    Synopsis paragraph.

    Longer description paragraphs.

    Args:
        name: Help text for ``name``.

    Role: operator
    Functionality: greetings
"""

from __future__ import annotations

import inspect
import logging
import re
import types
import typing
from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin

from fnmcp.schema.decorators import (
    ANNOTATIONS_ATTR,
    TOOL_NAME_ATTR,
    Param,
    _CommonMarker,
    is_tool,
)
from fnmcp.schema.descriptor import (
    ActionPreference,
    CallableDescriptor,
    Documentation,
    ParameterInfo,
    Switch,
    ToolAnnotations,
    TypeTag,
)

logger = logging.getLogger(__name__)

_TYPE_TAGS: dict[Any, TypeTag] = {
    str: TypeTag.STRING,
    int: TypeTag.INT64,
    float: TypeTag.DOUBLE,
    Decimal: TypeTag.DECIMAL,
    bool: TypeTag.BOOLEAN,
    Switch: TypeTag.SWITCH,
    ActionPreference: TypeTag.ACTION_PREFERENCE,
}

_IMPLICIT_COMMON = frozenset({"self", "cls"})

_SECTIONS = "args|arguments|parameters|returns|return|raises|yields|examples|example|notes|note|role|functionality"
_SECTION_RE = re.compile(rf"^(?P<key>{_SECTIONS}):\s*(?P<rest>.*)$", re.IGNORECASE)
_ARG_RE = re.compile(r"^(?P<name>\*{0,2}\w+)(?:\s*\([^)]*\))?:\s*(?P<text>.*)$")


def describe(fn: Callable[..., Any]) -> CallableDescriptor:
    """Build a :class:`CallableDescriptor` for *fn*."""
    name = getattr(fn, TOOL_NAME_ATTR, None) or getattr(fn, "__name__", None) or type(fn).__name__
    doc = _parse_docstring(inspect.getdoc(fn))
    return CallableDescriptor(
        name=name,
        parameters=_parameters(fn, doc.args if doc else {}),
        documentation=doc.documentation if doc else None,
        annotations=_annotations_of(fn),
        handler=fn,
    )


def discover(module: types.ModuleType) -> list[Callable[..., Any]]:
    """Return the callables a module exposes, in definition order.

    Functions marked with ``@tool`` win. Without any, every public function
    defined in the module itself is exposed.
    """
    functions = [
        obj
        for obj in vars(module).values()
        if inspect.isfunction(obj) and getattr(obj, "__module__", None) == module.__name__
    ]
    functions.sort(key=lambda f: f.__code__.co_firstlineno)

    marked = [f for f in functions if is_tool(f)]
    if marked:
        return marked
    return [f for f in functions if not f.__name__.startswith("_")]


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def _parameters(fn: Callable[..., Any], doc_args: dict[str, str]) -> list[ParameterInfo]:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        logger.debug("No signature available for %r", fn)
        return []

    try:
        hints = typing.get_type_hints(fn, include_extras=True)
    except Exception:  # unresolved forward references and friends
        logger.debug("Could not resolve type hints for %r", fn, exc_info=True)
        hints = {}

    params: list[ParameterInfo] = []
    for position, (pname, param) in enumerate(signature.parameters.items()):
        annotation = hints.get(pname, param.annotation)
        base, metadata = _split_annotated(annotation)
        markers = [m for m in metadata if isinstance(m, Param)]

        mandatory = param.default is inspect.Parameter.empty
        for marker in markers:
            if marker.mandatory is not None:
                mandatory = marker.mandatory

        help_messages = [m.help for m in markers if m.help]
        if pname in doc_args:
            help_messages.append(doc_args[pname])

        is_common = (
            pname in _IMPLICIT_COMMON
            or param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
            or any(isinstance(m, _CommonMarker) for m in metadata)
        )

        params.append(
            ParameterInfo(
                name=pname,
                type_tag=_type_tag(base),
                mandatory=mandatory and not is_common,
                help_messages=help_messages,
                position=position,
                is_common=is_common,
            )
        )
    return params


def _split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        return base, tuple(metadata)
    return annotation, ()


def _type_tag(annotation: Any) -> TypeTag:
    if annotation is inspect.Parameter.empty:
        return TypeTag.OTHER

    base, _ = _split_annotated(_unwrap_optional(annotation))
    tag = _TYPE_TAGS.get(base)
    if tag is not None:
        return tag

    if base is Callable or get_origin(base) is Callable:
        return TypeTag.SCRIPT_BLOCK
    if isinstance(base, type) and get_origin(base) is None:
        if issubclass(base, ActionPreference):
            return TypeTag.ACTION_PREFERENCE
        if issubclass(base, Switch):
            return TypeTag.SWITCH
        if issubclass(base, Enum):
            return TypeTag.OTHER
        for cls in (bool, int, float, Decimal, str):
            if issubclass(base, cls):
                return _TYPE_TAGS[cls]
    return TypeTag.OTHER


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def _annotations_of(fn: Callable[..., Any]) -> ToolAnnotations | None:
    value = getattr(fn, ANNOTATIONS_ATTR, None)
    return value if isinstance(value, ToolAnnotations) else None


# ---------------------------------------------------------------------------
# Docstrings
# ---------------------------------------------------------------------------


class _ParsedDoc:
    __slots__ = ("args", "documentation")

    def __init__(self, documentation: Documentation, args: dict[str, str]) -> None:
        self.documentation = documentation
        self.args = args


def _parse_docstring(text: str | None) -> _ParsedDoc | None:
    if not text or not text.strip():
        return None

    paragraphs: list[list[str]] = [[]]
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None

    for raw in text.splitlines():
        line = raw.rstrip()
        stripped = line.strip()
        header = _SECTION_RE.match(line) if line and not line[0].isspace() else None

        if header is not None:
            current = sections.setdefault(header.group("key").lower(), [])
            if header.group("rest"):
                current.append(header.group("rest"))
            continue
        if current is not None:
            if stripped:
                current.append(line)
            continue
        if stripped:
            paragraphs[-1].append(stripped)
        elif paragraphs[-1]:
            paragraphs.append([])

    blocks = [" ".join(p) for p in paragraphs if p]
    synopsis = blocks[0] if blocks else None
    description = " ".join(blocks[1:]) or None

    documentation = Documentation(
        synopsis=synopsis,
        description=description,
        role=_section_text(sections.get("role")),
        functionality=_section_text(sections.get("functionality")),
    )
    args = _parse_args(sections.get("args") or sections.get("arguments") or sections.get("parameters"))
    return _ParsedDoc(documentation, args)


def _section_text(lines: list[str] | None) -> str | None:
    if not lines:
        return None
    return " ".join(line.strip() for line in lines) or None


def _parse_args(lines: list[str] | None) -> dict[str, str]:
    args: dict[str, str] = {}
    last: str | None = None
    for line in lines or []:
        match = _ARG_RE.match(line.strip())
        if match is not None:
            last = match.group("name").lstrip("*")
            args[last] = match.group("text").strip()
        elif last is not None:
            args[last] = f"{args[last]} {line.strip()}".strip()
    return args
