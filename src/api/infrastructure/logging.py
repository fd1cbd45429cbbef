"""Structlog configuration for the application.

Colored console output in development and JSON lines in production.
Credentials never reach the output: any event key that names a token,
secret or password is masked before rendering.
"""

import logging
import os
import sys
from typing import Any

import structlog

REDACTED = "[redacted]"

_SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "token",
        "password",
        "password_hash",
        "secret",
        "secret_key",
        "authorization",
    }
)


def redact_credentials(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask credential values in an event, including nested dicts."""
    return _redact(event_dict)


def _redact(values: dict[str, Any]) -> dict[str, Any]:
    redacted = {}
    for key, value in values.items():
        if key.lower() in _SENSITIVE_KEYS and value is not None:
            redacted[key] = REDACTED
        elif isinstance(value, dict):
            redacted[key] = _redact(value)
        else:
            redacted[key] = value
    return redacted


def _wants_colors() -> bool:
    # FORCE_COLOR=1 enables colors even without a TTY (e.g. in containers)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    return force_color or sys.stdout.isatty()


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name (e.g. "DEBUG", "INFO"); unknown names
            fall back to INFO.
    """
    min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_credentials,
        structlog.processors.StackInfoRenderer(),
    ]

    if _wants_colors():
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
