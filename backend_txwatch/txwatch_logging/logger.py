"""
Structured logging for the watcher.

Every line carries timestamp, level, logger and event_type. Integer block
heights logged as block_number also get block_hex, the tag the node was
asked for, so log lines can be matched against RPC traffic.

Imports nothing from backend_txwatch so any module can import it first.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# json (default) or console
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def _add_block_hex(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    height = event_dict.get("block_number")
    if isinstance(height, int) and not isinstance(height, bool) and height >= 0:
        event_dict.setdefault("block_hex", hex(height))
    return event_dict


def configure_structlog(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog with the LOG_LEVEL / LOG_FORMAT defaults unless overridden."""
    level_value = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    fmt = (fmt or LOG_FORMAT).strip().lower()
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
        _add_block_hex,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger bound to the module name.

        logger = get_logger(__name__)
        logger.info("block_transactions_processed", block_number=19000000, saved=2)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_address(address: str) -> structlog.BoundLogger:
    """Logger with a subscribed address bound to every call."""
    return get_logger("backend_txwatch").bind(address=address)
