"""
Structured JSON logging: timestamp, event_type, wallet pubkey.

structlog with ISO timestamps, log level, and consistent keys. All modules use
get_logger() and pass event_type as the first argument. The last MAX_RECENT_LOGS
events are also kept in memory so a diagnostics screen can show them without
reading stdout.

Uses only Python stdlib logging and structlog; no ark_wallet_core imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any

import structlog

# Default log level from env
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# JSON output for production (LOG_FORMAT=json); human-readable for local
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

MAX_RECENT_LOGS = 200

_recent: deque[dict[str, Any]] = deque(maxlen=MAX_RECENT_LOGS)
_recent_lock = threading.Lock()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Ensure timestamp is always present (ISO 8601)."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type for consistency; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def _capture_recent(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Append a compact copy of the event to the in-memory ring buffer."""
    extras = {
        k: v
        for k, v in event_dict.items()
        if k not in ("event_type", "message", "timestamp", "level", "logger")
    }
    line = {
        "level": event_dict.get("level", method_name),
        "msg": event_dict.get("message", ""),
        "time": event_dict.get("timestamp"),
    }
    if extras:
        line["msg"] += " " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
    with _recent_lock:
        _recent.append(line)
    return event_dict


def configure_structlog() -> None:
    """Configure structlog once at import: JSON, timestamp, level, event_type."""
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
        _capture_recent,
    ]
    if LOG_FORMAT == "json":
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


# One-time configuration on first import
if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

    Log with event_type (first arg) and optional context:
        logger = get_logger(__name__)
        logger.info("reconcile_tick_done", vtxo_count=3, balance=21000)
    Output (JSON): {"event_type": "reconcile_tick_done", "vtxo_count": 3, "balance": 21000,
    "timestamp": "...", "level": "info", "logger": "module.name"}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(pubkey: str) -> structlog.BoundLogger:
    """Bind the wallet pubkey to all subsequent log calls in this context."""
    structlog.contextvars.bind_contextvars(wallet_pubkey=pubkey)
    return get_logger("ark_wallet_core")


def unbind_wallet() -> None:
    structlog.contextvars.unbind_contextvars("wallet_pubkey")


def get_recent_logs(level: str | None = None) -> list[dict[str, Any]]:
    """Return buffered log lines, oldest first; optionally only one level (e.g. "info")."""
    with _recent_lock:
        lines = list(_recent)
    if level is None:
        return lines
    return [line for line in lines if line["level"] == level]


def clear_recent_logs() -> None:
    """Drop buffered log lines. Best-effort: failures are logged, never raised."""
    try:
        with _recent_lock:
            _recent.clear()
    except Exception as e:
        get_logger(__name__).warning("recent_logs_clear_failed", error=str(e))
