# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Structured logging configuration for the TeamMove API.

structlog renders JSON in production and a console format in development.
Request-scoped values (request_id, organization_id) travel through
contextvars. Secrets are redacted by key name, and participant email
addresses are partially masked wherever they appear as values.
"""

import logging
import re
import sys
from typing import Any, Literal
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor

from .config import settings

REDACTED = "[REDACTED]"
NOISY_LOGGERS = ("asyncio", "httpcore", "httpx", "sqlalchemy.engine", "uvicorn.access")

_EMAIL = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")


def mask_email(value: str) -> str:
    """``sam.martin@club.fr`` becomes ``s***@club.fr``."""
    return _EMAIL.sub(r"\1***@\2", value)


class SensitiveDataMasker:
    """structlog processor redacting secret keys and masking emails."""

    def __init__(self, key_patterns: list[str], mask_emails: bool = True):
        self.key_pattern = (
            re.compile("|".join(re.escape(p) for p in key_patterns), re.IGNORECASE)
            if key_patterns
            else None
        )
        self.mask_emails = mask_emails

    def __call__(self, logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        return {key: self._mask(key, value) for key, value in event_dict.items()}

    def _mask(self, key: str, value: Any) -> Any:
        if key != "event" and self.key_pattern and self.key_pattern.search(key):
            return REDACTED
        if isinstance(value, dict):
            return {k: self._mask(k, v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._mask(key, v) for v in value]
        if self.mask_emails and isinstance(value, str) and "@" in value:
            return mask_email(value)
        return value


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.environment)
    event_dict.setdefault("version", settings.version)
    return event_dict


def configure_logging(
    log_level: str | None = None,
    log_format: Literal["json", "text"] | None = None,
) -> None:
    """Configure stdlib logging and structlog.

    Args:
        log_level: Root level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" for production, "text" for development
    """
    level = (log_level or settings.log_level).upper()
    fmt = log_format or settings.log_format

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # LOG_COMPONENTS="teammove.services=DEBUG,sqlalchemy.engine=INFO"
    for name, component_level in settings.log_components_dict.items():
        logging.getLogger(name).setLevel(component_level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_app_context,
    ]
    if settings.log_masking_enabled:
        processors.append(
            SensitiveDataMasker(settings.log_masking_patterns_list, settings.log_mask_emails)
        )
    processors.append(
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind values to every log line emitted in the current request or task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def bind_request_context(request_id: str | None = None) -> str:
    """Start a fresh log context for a request and return its id."""
    request_id = request_id or str(uuid4())
    clear_context()
    bind_context(request_id=request_id)
    return request_id
