"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

# httpx logs every request at INFO, which is one line per tick.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO", fmt: str = "console") -> None:
    """Configure structured logging for the application.

    ``fmt`` is ``"console"`` for human-readable output or ``"json"`` for one
    JSON object per line. Logs go to stderr so command output on stdout stays
    clean.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def bind_symbol(symbol: str) -> None:
    """Attach ``symbol`` to every log line emitted from the current context."""
    structlog.contextvars.bind_contextvars(symbol=symbol)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named structured logger."""
    return structlog.get_logger(name)
