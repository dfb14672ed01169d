"""
Structured logging for Civic Sync.

Development renders colored console lines; other environments emit one
JSON object per event. Credentials never reach the output: values under
credential-like keys are masked before rendering.

Every API call runs inside ``request_context`` so the retry and failure
events of one logical request share a ``request_id``.
"""

import logging
import sys
import time
import uuid
from collections.abc import Awaitable, Callable, Iterator, MutableMapping
from contextlib import contextmanager
from functools import lru_cache, wraps
from typing import Any, TypeVar

import structlog
from structlog.types import Processor

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

REDACTED = "***"
SECRET_KEYS = frozenset({"authorization", "token", "authtoken", "password", "secret"})


def _is_development() -> bool:
    from .config import get_settings
    from .models.enums import Environment

    settings = get_settings()
    return settings.debug or settings.env == Environment.DEVELOPMENT


def _add_client_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    from . import __version__

    event_dict.setdefault("app", "civic_sync")
    event_dict.setdefault("client_version", __version__)
    return event_dict


def _redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask bearer tokens and passwords passed as log fields."""
    for key in list(event_dict):
        if key.lower() in SECRET_KEYS and event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def get_processors(development: bool) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_client_context,
        _redact_secrets,
    ]
    if development:
        return shared + [structlog.dev.ConsoleRenderer(colors=True)]
    return shared + [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


@lru_cache(maxsize=1)
def configure_logging(level: str = "INFO") -> None:
    """Configure structlog over the stdlib root logger. Safe to call repeatedly."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=get_processors(_is_development()),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Logger named ``civic_sync.<component>``, configuring logging on first use."""
    if not structlog.is_configured():
        from .config import get_settings

        configure_logging(get_settings().log_level)
    return structlog.get_logger(f"civic_sync.{component}")  # type: ignore[no-any-return]


@contextmanager
def request_context(method: str, endpoint: str) -> Iterator[str]:
    """Bind a fresh request id (plus method and endpoint) for one logical API call."""
    request_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(
        request_id=request_id, method=method, endpoint=endpoint
    ):
        yield request_id


def log_timing(operation: str) -> Callable[[F], F]:
    """
    Log the duration of a coroutine as ``operation_complete`` or ``operation_failed``.

    Usage:
        @log_timing("store_refresh")
        async def refresh(self):
            ...
    """

    def decorator(func: F) -> F:
        logger = get_logger(func.__module__.rsplit(".", 1)[-1])

        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "operation_failed",
                    operation=operation,
                    duration_seconds=round(time.perf_counter() - start, 3),
                    error=str(e),
                )
                raise
            logger.info(
                "operation_complete",
                operation=operation,
                duration_seconds=round(time.perf_counter() - start, 3),
            )
            return result

        return wrapper  # type: ignore

    return decorator


__all__ = ["configure_logging", "get_logger", "request_context", "log_timing"]
