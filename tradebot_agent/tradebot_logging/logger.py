"""
Structured logging for the agent: one JSON object per event on stderr.

Every module does ``logger = get_logger(__name__)`` and logs an event name
plus keyword fields (user_id, token_address, error, ...). Fields whose names
mark them as secret are masked before rendering, so a private key passed by
mistake never reaches the log stream.

LOG_LEVEL (default INFO) and LOG_FORMAT (json | console) are read once, at
first import. No tradebot_agent imports here: everything else imports us.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

SECRET_FIELDS = frozenset({"private_key", "privateKey", "secret_key", "encryption_key", "key_material"})
REDACTED = "***"


def _level_from_env() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


def _format_from_env() -> str:
    return os.getenv("LOG_FORMAT", "json").strip().lower()


def _redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for field in SECRET_FIELDS.intersection(event_dict):
        event_dict[field] = REDACTED
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type, the key log queries filter on."""
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
        event_dict.setdefault("message", str(event))
    return event_dict


def configure_logging(level: int | None = None, fmt: str | None = None) -> None:
    """(Re)configure structlog. Called once on import with env values."""
    level = _level_from_env() if level is None else level
    fmt = _format_from_env() if fmt is None else fmt
    renderer: Any
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    else:
        renderer = structlog.processors.JSONRenderer(sort_keys=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.format_exc_info,
            _redact_secrets,
            _event_type,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger for one module.

        logger = get_logger(__name__)
        logger.info("record_saved", user_id="42")
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_user(user_id: str) -> structlog.BoundLogger:
    """Logger with user_id bound, for a block of work done on one user's behalf."""
    return get_logger("tradebot_agent.agent").bind(user_id=user_id)
