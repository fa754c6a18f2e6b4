"""Server settings — built once at startup and passed down explicitly.

Settings are read from an optional YAML file and then overridden by
``FNMCP_*`` environment variables::

    # fnmcp.yaml
    server_name: greetings
    log_level: DEBUG
    log_path: ${HOME}/.fnmcp/logs/greetings.log
    tool_timeout: 30

Nothing below the bootstrap reads the environment; request handling only ever
sees the :class:`ServerSettings` it was given.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from fnmcp import __version__
from fnmcp.server.errors import ConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ENV_OVERRIDES: dict[str, str] = {
    "FNMCP_SERVER_NAME": "server_name",
    "FNMCP_LOG_LEVEL": "log_level",
    "FNMCP_LOG_PATH": "log_path",
    "FNMCP_TOOL_TIMEOUT": "tool_timeout",
}


class ServerSettings(BaseModel):
    """Process-wide configuration for one server instance."""

    server_name: str = "fnmcp"
    server_version: str = __version__
    log_level: LogLevel = "INFO"
    log_path: Path | None = None
    log_max_bytes: int = Field(default=1_000_000, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_max_age_days: int = Field(default=7, ge=0)
    tool_timeout: float | None = Field(default=None, gt=0)
    telemetry: bool = False
    otlp_endpoint: str | None = None


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerSettings:
    """Read settings from *path* (if given) and *environ* overrides.

    Environment variables in the form ``${VAR}`` inside the YAML file are
    expanded before parsing.

    Raises:
        ConfigError: On unreadable files, YAML errors or invalid values.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        data.update(_read_yaml(path))

    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field] = value.upper() if field == "log_level" else value

    try:
        return ServerSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(os.path.expandvars(raw))
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Settings YAML must be a mapping")
    return data
