"""Structured logging for the game server.

Everything goes through structlog, rendered by stdlib handlers, so records
from plain ``logging.getLogger(__name__)`` loggers and structlog loggers end
up in the same stream with the same bound context (game_id, connection_id).

Output format is "console" (colored when attached to a terminal) or "json"
for log aggregation. Format and level normally come from server settings and
fall back to the LOG_FORMAT and LOG_LEVEL environment variables.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = ("console", "json")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Chatty third-party loggers, capped at WARNING
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _plain_value(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain_value(v) for v in value]
    return value


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render enum members (statuses, roles, event types) by value, nested payloads included."""
    for key, value in event_dict.items():
        event_dict[key] = _plain_value(value)
    return event_dict


def resolve_json_mode(log_format: str | None = None) -> bool:
    value = (log_format or os.environ.get("LOG_FORMAT") or "console").lower()
    if value not in _LOG_FORMATS:
        msg = f"Invalid log format {value!r}. Must be one of: {', '.join(_LOG_FORMATS)}."
        raise ValueError(msg)
    return value == "json"


def resolve_log_level(level: int | str | None = None) -> int:
    """Level number for a name or number; unset falls back to LOG_LEVEL, then INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    if name not in _LOG_LEVELS:
        msg = f"Invalid log level {name!r}. Must be one of: {', '.join(_LOG_LEVELS)}."
        raise ValueError(msg)
    return logging.getLevelNamesMapping()[name]


def _context_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _serialize_enums,
    ]


def _handler(handler: logging.Handler, *, json_mode: bool, colors: bool) -> logging.Handler:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # stdlib records skip the structlog chain, so give them the same context here
            foreign_pre_chain=_context_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        ),
    )
    return handler


def _open_log_file(log_dir: Path | str) -> Path:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"hideseek_{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | str | None = None,
    log_format: str | None = None,
) -> Path | None:
    """Route structlog and stdlib logging to stdout and, with log_dir, to a timestamped file.

    Safe to call repeatedly: existing root handlers are replaced. Returns the
    log file path when one was opened.
    """
    json_mode = resolve_json_mode(log_format)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_context_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
        existing.close()
    root.setLevel(resolve_log_level(level))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.addHandler(_handler(logging.StreamHandler(sys.stdout), json_mode=json_mode, colors=sys.stdout.isatty()))
    if log_dir is None:
        return None
    log_path = _open_log_file(log_dir)
    root.addHandler(_handler(logging.FileHandler(log_path), json_mode=json_mode, colors=False))
    return log_path
