"""Domain services over the Azure DevOps REST API.

Each service owns its own TTL cache and retry policy. List and search
operations never raise on remote failure; they log and return an empty
list. Single-entity fetches raise ``DETAILS_FETCH_FAILED``.
"""

from __future__ import annotations

from typing import Any

import structlog

from azdocontext.errors import is_timeout

log = structlog.get_logger()


def log_list_failure(event: str, exc: Exception, **context: Any) -> None:
    """Log a failure that a list or search operation turns into ``[]``."""
    log.warning(event, error=str(exc), **context)
    if is_timeout(exc):
        log.warning("request_timeout_hint", suggestion=getattr(exc, "suggestion", ""))
