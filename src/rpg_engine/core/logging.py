"""Structured logging for the encounter rules engine.

Logging goes through structlog. Development runs get a coloured console
renderer; production runs emit one JSON object per event. Engine modules
only ever call ``get_logger(__name__)`` and log key/value events, the host
application decides the output format once at startup.

Example:
    >>> from rpg_engine.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Actor scaled", actor_id="a1", cr=3)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from rpg_engine.core.config import Settings


ENGINE_NAME = "rpg_engine"
STDLIB_FORMAT = "%(asctime)s %(levelname)-8s %(name)s | %(message)s"


def tag_engine(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp each event with the engine name.

    Hosts that mix several services into one log stream filter on the
    ``app`` key.
    """
    event_dict.setdefault("app", ENGINE_NAME)
    return event_dict


def _processor_chain(json_format: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        tag_engine,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        chain += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        chain.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return chain


def _route_stdlib(numeric_level: int, log_file: str | None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        format=STDLIB_FORMAT,
        level=numeric_level,
        handlers=handlers,
        force=True,
    )
    # asyncio debug chatter drowns out queue events
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure engine-wide logging once at host startup.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        json_format: Render events as JSON lines instead of console text.
        log_file: Optional file that also receives standard library records.

    Example:
        >>> configure_logging(level="DEBUG", json_format=False)
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=_processor_chain(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _route_stdlib(numeric_level, log_file)


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from loaded settings.

    Production builds log JSON, debug builds log to the console.
    """
    configure_logging(level=settings.log_level, json_format=settings.is_production)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a structlog logger, typically for ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/values (session id, round) to every later event.

    Example:
        >>> bind_context(session_id="abc123")
        >>> logger.info("Combat started")  # carries session_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop every bound context variable."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def bound_context(**kwargs: Any) -> Iterator[None]:
    """Bind context variables for the duration of a block.

    Only the keys bound here are removed on exit, so an outer session
    binding survives a nested action binding.

    Example:
        >>> with bound_context(action_id="x1"):
        ...     logger.info("Resolving action")
    """
    structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*kwargs)


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "bound_context",
    "tag_engine",
]
