"""
Structured logging configuration using structlog.

Provides JSON-formatted logs with contextual information so that every line
written during a permission sync pass can be correlated.

Features:
- JSON structured logging for production
- Pretty console logging for development
- Sync pass ID tracking
- Context binding (menu_code, batch, etc.)
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor

from permsync.config import settings

# Context variable for sync pass tracking
sync_pass_id_ctx: ContextVar[str | None] = ContextVar("sync_pass_id", default=None)


def add_context_info(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the current sync pass ID to log records."""
    sync_pass_id = sync_pass_id_ctx.get(None)
    if sync_pass_id:
        event_dict["sync_pass_id"] = sync_pass_id

    return event_dict


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    In development: Pretty console output with colors
    Otherwise: JSON-formatted logs for aggregation
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.ENVIRONMENT == "development":
        processors: list[Processor] = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True)
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper()),
    )

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance

    Example:
        logger = get_logger(__name__)
        logger.info("permission_batch_applied", batch=1, size=100)
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


def set_sync_pass(sync_pass_id: str) -> None:
    """Tag all subsequent logs in this context with a sync pass ID."""
    sync_pass_id_ctx.set(sync_pass_id)


def clear_sync_pass() -> None:
    """Clear the sync pass ID after the pass completes."""
    sync_pass_id_ctx.set(None)


def bind_context(**kwargs: Any) -> None:
    """
    Bind additional context to all subsequent logs in this context.

    Args:
        **kwargs: Key-value pairs to add to log context

    Example:
        bind_context(policy="retain-on-missing")
        logger.info("permission_sync_started")  # Will include policy
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """
    Remove context variables.

    Args:
        *keys: Keys to remove from context
    """
    structlog.contextvars.unbind_contextvars(*keys)
