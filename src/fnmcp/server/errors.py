"""Shared error types for fnmcp.

Only startup-time failures raise these. Once the stream loop is running,
per-request failures are turned into protocol responses instead.
"""


class FnMcpError(Exception):
    """Base error for all fnmcp failures."""


class ConfigError(FnMcpError):
    """Server settings could not be read or validated."""


class ToolLoadError(FnMcpError):
    """A serve target could not be resolved to a set of callables."""

    def __init__(self, target: str, detail: str = "") -> None:
        self.target = target
        self.detail = detail
        super().__init__(f"Cannot load tools from {target!r}" + (f": {detail}" if detail else ""))


class DuplicateToolError(FnMcpError):
    """Two callables resolved to the same tool name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Duplicate tool name: {name}")


class InvalidAnnotationsError(FnMcpError, ValueError):
    """Tool display annotations were declared with invalid values."""


class ToolTimeoutError(FnMcpError):
    """A tool call overran the configured timeout."""

    def __init__(self, name: str, timeout: float) -> None:
        self.name = name
        self.timeout = timeout
        super().__init__(f"Tool {name} timed out after {timeout}s")
