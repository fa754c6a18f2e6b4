"""Logging setup for the server process.

Modules log through ``logging.getLogger(__name__)`` and attach structured
fields with ``extra={"fields": {...}}``.  :func:`configure_logging` routes the
``fnmcp`` logger to either:

- a size-rotated JSON-lines file (``settings.log_path``), or
- stderr, when no path is configured.

Stdout is never a logging target: it carries the protocol stream.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fnmcp.config import ServerSettings

LOGGER_NAME = "fnmcp"

_HANDLER_ATTR = "_fnmcp_handler"


class JsonLineFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            entry.update(fields)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(settings: ServerSettings) -> logging.Handler:
    """Install the fnmcp log handler, replacing one installed earlier."""
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, _HANDLER_ATTR, False):
            logger.removeHandler(existing)
            existing.close()

    handler: logging.Handler
    if settings.log_path is not None:
        log_path = Path(settings.log_path).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        prune_old_logs(log_path, settings.log_max_age_days)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(JsonLineFormatter())
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    setattr(handler, _HANDLER_ATTR, True)
    logger.addHandler(handler)
    logger.setLevel(settings.log_level)
    logger.propagate = False
    return handler


def prune_old_logs(log_path: Path, max_age_days: int) -> list[Path]:
    """Delete rotated siblings of *log_path* older than *max_age_days*.

    ``max_age_days=0`` disables pruning. The active log file is kept.
    """
    if max_age_days <= 0 or not log_path.parent.is_dir():
        return []

    cutoff = time.time() - max_age_days * 86_400
    removed: list[Path] = []
    for candidate in log_path.parent.glob(f"{log_path.name}.*"):
        if candidate.is_file() and candidate.stat().st_mtime < cutoff:
            candidate.unlink()
            removed.append(candidate)
    return removed
