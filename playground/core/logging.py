"""Structured logging configuration using structlog."""

import logging
import re
import sys
from typing import Any

import structlog

_EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")

# Event fields that must never reach a log sink
_SECRET_FIELDS = frozenset(
    {"password", "current_password", "new_password", "token", "access_token", "refresh_token", "api_key"}
)


def mask_email(value: str) -> str:
    """Mask the local part of e-mail addresses, keeping the domain."""
    return _EMAIL_PATTERN.sub(lambda m: f"***@{m.group(1)}", value)


def redact_secrets(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor dropping secrets and masking e-mails."""
    for key in list(event_dict):
        if key in _SECRET_FIELDS:
            event_dict[key] = "***"
        elif key == "email" and isinstance(event_dict[key], str):
            event_dict[key] = mask_email(event_dict[key])
    return event_dict


def _renderer(json_format: bool) -> list[Any]:
    if json_format:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """Route structlog through a single stdout handler on the root logger.

    Safe to call more than once; earlier handlers are replaced.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            redact_secrets,
            *_renderer(json_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)
