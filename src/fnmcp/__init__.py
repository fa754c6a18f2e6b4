"""fnmcp — expose Python functions as Model Context Protocol tools over stdio."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from fnmcp.schema.builder import build_schemas as build_schemas
    from fnmcp.schema.decorators import annotations as annotations
    from fnmcp.schema.decorators import tool as tool

_LAZY_EXPORTS = {
    "build_schemas": "fnmcp.schema.builder",
    "annotations": "fnmcp.schema.decorators",
    "tool": "fnmcp.schema.decorators",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'fnmcp' has no attribute {name!r}")
