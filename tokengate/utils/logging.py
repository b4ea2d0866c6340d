# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for tokengate.

structlog renders events as JSON outside development and as colored
console output in development or debug mode. Every event passes through
redact_secrets first, so credentials, tokens and hashes handed to a logger
by mistake are written as "[REDACTED]".

Example:
    >>> from tokengate.utils.logging import setup_logging, get_logger
    >>> setup_logging(settings)
    >>> log = get_logger(__name__)
    >>> log.info("login_succeeded", user_id=42, refresh_token=token)
    # refresh_token='[REDACTED]'
"""

import logging
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from tokengate.core.config.settings import Settings

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset({
    "password",
    "password_hash",
    "secret",
    "secret_hash",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
})

# Third-party loggers kept at WARNING regardless of LOG_LEVEL
NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy", "asyncio")


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    return value


def redact_secrets(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """structlog processor masking sensitive keys, including nested mappings."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _redact(event_dict[key])
    return event_dict


def build_processors(settings: "Settings") -> list[Processor]:
    """Processor chain for the given environment.

    Args:
        settings: Application settings (environment and debug flag).

    Returns:
        structlog processors, redaction first, renderer last.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.is_development or settings.debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    return processors


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the standard library root logger.

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    level = logging.getLevelName(settings.log_level)

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("tokengate").setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module (pass __name__)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind key-value pairs to every later event of the current request.

    Example:
        >>> bind_context(user_id=42)
        >>> log.info("profile_loaded")  # includes user_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound context; called at the start of each request."""
    structlog.contextvars.clear_contextvars()
