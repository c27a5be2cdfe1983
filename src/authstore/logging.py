"""
Structured logging for authstore.

Manifesto:
    The adapter sits between an authentication core and a database it does
    not own.  When a login fails because a statement failed, the log line has
    to name the table, the operation and the generated SQL, not just the
    driver's message.  structlog gives us key-value events for that.

    - **Standardizes:** Same processor chain for every service embedding authstore
    - **Structures:** JSON output for log aggregation, console for development
    - **Scopes:** Verbosity is chosen per adapter instance, not per process

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="authstore")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars
          3. add_log_level (logger name is bound by get_logger)
          4. service.name
          5. statement args masked (mask_args=True)
          6. ECS field names (JSON only)
          7. JSONRenderer / ConsoleRenderer

        get_logger(__name__)              → follows the global level
        get_logger(__name__, debug=True)  → own filter at DEBUG
        get_logger(__name__, debug=False) → own filter at ERROR

Examples:
    >>> from authstore.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True, service="auth-api")
    >>> logger = get_logger(__name__)
    >>> logger.info("adapter_ready", user_table='"auth_user"')

Tags:
    logging, structlog, observability, json-logging, authstore
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "authstore"

# Statement arguments carry hashed passwords and session ids.
MASK = "***"


def _tag_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _mask_statement_args(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Replace bound statement arguments with a mask of the same length."""
    args = event_dict.get("args")
    if isinstance(args, (list, tuple)):
        event_dict["args"] = [MASK] * len(args)
    return event_dict


def _ecs_field_names(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Rename timestamp and level to their ECS names."""
    for plain, ecs in (("timestamp", "@timestamp"), ("level", "log.level")):
        if plain in event_dict:
            event_dict[ecs] = event_dict.pop(plain)
    return event_dict


def _processors(json_format: bool, add_timestamp: bool, mask_args: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _tag_service,
    ]
    if mask_args:
        chain.append(_mask_statement_args)
    if json_format:
        chain += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=True))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "authstore",
    add_timestamp: bool = True,
    mask_args: bool = True,
) -> None:
    """Configure structured logging for the process.

    Args:
        level: Global level for loggers created without ``debug``
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Value of ``service.name`` on every event
        add_timestamp: Include ISO timestamp in logs
        mask_args: Replace the ``args`` of logged statements with ``***``
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    numeric_level = logging.getLevelName(level.upper())
    structlog.configure(
        processors=_processors(json_format, add_timestamp, mask_args),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None, *, debug: bool | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
        debug: ``None`` follows the level set by :func:`configure_logging`.
            ``True`` / ``False`` give the logger its own level filter
            (DEBUG / ERROR) without touching global configuration, so two
            adapters in one process can log at different verbosity.
    """
    initial = {"logger_name": name} if name else {}
    if debug is None:
        return structlog.get_logger(**initial)
    return structlog.wrap_logger(
        None,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.ERROR
        ),
        **initial,
    )


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
