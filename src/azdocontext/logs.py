"""structlog configuration.

JSON output renders exceptions as structured ``exception`` lists; the console
renderer formats tracebacks itself. Credential-bearing keys are masked before
rendering in both modes.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from azdocontext.config import LoggingSettings

REDACTED = "***"
SECRET_KEYS = frozenset({"authorization", "personal_access_token", "pat", "password"})


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask the values of credential-bearing keys."""
    for key in event_dict.keys() & SECRET_KEYS:
        event_dict[key] = REDACTED
    return event_dict


def setup_logging(settings: LoggingSettings, *, stream: TextIO | None = None) -> None:
    """Configure structlog. Called once at startup before any log statements.

    Output goes to ``stream``, stderr by default.
    """
    log_level = logging.getLevelNamesMapping()[settings.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    if settings.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )
