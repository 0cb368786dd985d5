"""
Structured logging for metis-ops scripts.

Every script calls ``configure_logging()`` once at startup and then logs
event-style messages with key/value context, so that a long migration run
can be grepped by dataset id, plugin type or run id afterwards.

Manifesto:
    - **Standardizes:** Same log format for every administrative script
    - **Structures:** JSON output when piped to a file or a collector
    - **Correlates:** run_id / dataset_id bound once, present on every line
    - **Flexes:** Coloured console output when running interactively

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="metis-ops")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars
          3. add_log_level, add_logger_name
          4. _add_service_metadata
          5. JSONRenderer (or ConsoleRenderer on a TTY)

Examples:
    >>> from metis_ops.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True)
    >>> logger = get_logger(__name__)
    >>> logger.info("skip_file.written", plugin="PREVIEW", count=42)

Tags:
    logging, structlog, observability, json-logging, metis-ops
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "metis-ops"


class _NamedPrintLogger(structlog.PrintLogger):
    """``PrintLogger`` that keeps the name it was requested under."""

    def __init__(self, file: TextIO, name: str | None = None):
        super().__init__(file)
        self.name = name


def _stderr_logger_factory(*args: Any) -> _NamedPrintLogger:
    # sys.stderr is looked up per call so redirected streams are honoured
    return _NamedPrintLogger(sys.stderr, args[0] if args else None)


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "metis-ops",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for a script run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    numeric_level = getattr(logging, level.upper())

    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    # stderr keeps report output on stdout clean
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``).

    The returned proxy resolves on every call, so module-level loggers pick up
    whatever ``configure_logging`` installs later. The name reaches the output
    as the ``logger`` key via the logger factory.
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(run_id="2018-08-13-170336"):
            logger.info("run.parsing")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> "LogContext":
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
