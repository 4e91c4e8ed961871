"""
Structured logging configuration.

Provides:
    • JSON-formatted logs for production (machine-parseable)
    • Pretty console logs for development (human-readable)
    • Site-scoped context (site_id) set while a site is being processed

Usage:
    from damwatch.core.logging_config import setup_logging

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Batch complete", extra={"dropped_count": 0})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from damwatch.core.config import Settings, settings as default_settings

# ── Context variable for site-scoped data ──
# Each asyncio task gets its own copy, so concurrent sites in one chunk
# never see each other's context.
_site_context: ContextVar[Dict[str, Any]] = ContextVar(
    "site_context", default={}
)

# Extra record attributes promoted into JSON output
EXTRA_KEYS = (
    "site_id", "source", "duration_ms", "dropped_count", "batch_index",
    "chunk_size", "cache_hit", "status",
)


def set_site_context(**kwargs: Any) -> Token:
    """Set site-scoped log context. Returns a token for reset_site_context."""
    return _site_context.set(kwargs)


def reset_site_context(token: Token) -> None:
    _site_context.reset(token)


def get_site_context() -> Dict[str, Any]:
    """Get current site context."""
    return _site_context.get()


# ── JSON Formatter (Production) ──

class JSONFormatter(logging.Formatter):
    """Machine-parseable JSON log output for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        ctx = get_site_context()
        if ctx:
            log_entry["context"] = ctx

        for key in EXTRA_KEYS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(log_entry, default=str)


# ── Pretty Formatter (Development) ──

class PrettyFormatter(logging.Formatter):
    """Coloured human-readable format for local development."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        ts = self.formatTime(record, "%H:%M:%S")
        msg = record.getMessage()

        ctx = get_site_context()
        ctx_str = f" [{ctx['site_id']}]" if ctx.get("site_id") else ""

        formatted = (
            f"{color}{ts} {record.levelname:8s}{self.RESET}"
            f"{ctx_str} {record.name}: {msg}"
        )

        if record.exc_info and record.exc_info[1]:
            formatted += f"\n  {type(record.exc_info[1]).__name__}: {record.exc_info[1]}"

        return formatted


# ── Setup ──

def setup_logging(config: Optional[Settings] = None, stream: Optional[TextIO] = None) -> None:
    """Configure logging based on environment. Logs go to stdout unless a stream is given."""
    config = config or default_settings
    root = logging.getLogger()
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))

    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)

    if config.is_production:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(PrettyFormatter())

    root.addHandler(handler)

    # Quieten noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
