"""
Structured logging configuration using structlog.

JSON lines when LOG_FORMAT=json, pretty console output otherwise.
Logs go to stdout; the process manager handles persistence.
"""

import logging
import re
import sys

import structlog

from app.config import settings

# Fields that carry a live nonce or a signed artifact
SECRET_FIELDS = frozenset({"nonce", "token", "artifact"})
VISIBLE_PREFIX = 8

_COMPACT_JWS_RE = re.compile(r"[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")


def _truncate(value: str) -> str:
    if len(value) <= VISIBLE_PREFIX:
        return value
    return f"{value[:VISIBLE_PREFIX]}..."


def redact_secrets(logger, method_name, event_dict):
    """
    structlog processor that never lets a full nonce or JWS reach the output.

    Known secret fields are cut to a short prefix, and so is any other string
    value that looks like a compact JWS.
    """
    for key, value in event_dict.items():
        if not isinstance(value, str) or key == "event":
            continue
        if key in SECRET_FIELDS or _COMPACT_JWS_RE.search(value):
            event_dict[key] = _truncate(value)
    return event_dict


def setup_logging() -> None:
    """
    Configure structlog and stdlib logging integration.

    Call this once at application startup.
    """
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            # Pulls in the correlation ID bound by LoggingMiddleware
            structlog.contextvars.merge_contextvars,
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib loggers (uvicorn, slowapi) to the same stream
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

