"""Structured logging for apibinding.

The library only emits events through ``get_logger``; it never configures
logging on import. Applications that want apibinding's own rendering call
``configure_logging`` once at startup.

Environment Variables:
    APIBINDING_LOG_FORMAT: "json" for JSON lines, "console" for colored output
    APIBINDING_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR
"""

from __future__ import annotations

import os
import sys
import logging
from typing import Any, MutableMapping

import structlog
from structlog.typing import Processor

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"

ENV_LOG_FORMAT = "APIBINDING_LOG_FORMAT"
ENV_LOG_LEVEL = "APIBINDING_LOG_LEVEL"

REDACTED_PLACEHOLDER = "***REDACTED***"

_SENSITIVE_KEY_PATTERNS = frozenset({"token", "secret", "password", "authorization"})

_logging_configured = False


def _is_sensitive_key(key: str) -> bool:
    lower = key.lower()
    return any(pattern in lower for pattern in _SENSITIVE_KEY_PATTERNS)


def redact_sensitive(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """structlog processor replacing credential-looking values with a placeholder."""
    for key in list(event_dict):
        if key != "event" and _is_sensitive_key(key):
            event_dict[key] = REDACTED_PLACEHOLDER
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_sensitive,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    force: bool = False,
) -> None:
    """Attach a structlog-rendering stdout handler to the ``apibinding`` logger.

    Args:
        log_format: "json" or "console". Defaults to ``APIBINDING_LOG_FORMAT`` or "console".
        log_level: Minimum level. Defaults to ``APIBINDING_LOG_LEVEL`` or "INFO".
        force: Reconfigure even if already configured.
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    log_format = (log_format or os.environ.get(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)).lower()
    log_level = (log_level or os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)).upper()

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("apibinding")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, log_level, logging.INFO))
    package_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger backed by the stdlib logger ``name``.

    Level filtering and output follow the stdlib logging tree, so an
    application that never configures logging sees nothing below WARNING.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )
