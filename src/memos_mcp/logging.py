"""Logging configuration.

Everything is written to stderr: stdout belongs to the MCP stdio transport,
both for the in-process server and for a launched child binary.
"""
import datetime
import json
import logging
import sys
from typing import Any, List

import structlog
from structlog.types import EventDict, Processor

DEFAULT_LOG_LEVEL = "INFO"
NOISY_LOGGERS = [
    "mcp.server.lowlevel.server",
    "mcp.server.stdio",
    "aiohttp",
    "asyncio",
]

_min_level = logging.INFO


def add_timestamp(_, __, event_dict: EventDict) -> EventDict:
    """Add ISO timestamp to the event dict."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


def level_filter(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Drop events below the configured level."""
    level_no = getattr(logging, str(event_dict.get("level", "NOTSET")).upper(), None)
    if level_no is None or level_no >= _min_level:
        return event_dict
    raise structlog.DropEvent


class CompactJSONRenderer:
    """Single-line JSON renderer with minimal output."""

    def __call__(self, _: Any, __: str, event_dict: EventDict) -> str:
        items = {
            "ts": event_dict.pop("timestamp", None),
            "lvl": event_dict.pop("level", "???"),
            "msg": event_dict.pop("event", ""),
        }
        if event_dict:
            items["data"] = event_dict
        return json.dumps(items, separators=(",", ":"), default=str)


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structured logging for the application.

    Interactive terminals get colored console output, anything else gets
    compact JSON lines so that MCP hosts can capture them.
    """
    global _min_level

    _min_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=_min_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(_min_level, logging.WARNING))

    processors: List[Processor] = [
        structlog.stdlib.add_log_level,
        level_filter,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if sys.stderr.isatty():
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(CompactJSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
