from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from azdocontext.cache import Cache
from azdocontext.errors import AzdoContextError, details_error
from azdocontext.retry import RetryPolicy

if TYPE_CHECKING:
    from azdocontext.protocols import ApiClientProtocol
    from azdocontext.config import Settings

log = structlog.get_logger()

_CACHE_KEY = "projects"


class ProjectsService:
    """Projects visible to the configured access token."""

    def __init__(self, api: ApiClientProtocol, *, cache: Cache[Any], retry: RetryPolicy) -> None:
        self._api = api
        self._cache = cache
        self._retry = retry

    @classmethod
    def from_settings(cls, api: ApiClientProtocol, settings: Settings) -> ProjectsService:
        return cls(
            api,
            cache=Cache(settings.cache.ttl_seconds),
            retry=RetryPolicy(
                max_delay=settings.retry.projects_max_delay_seconds,
                base_delay=settings.retry.base_delay_seconds,
                max_attempts=settings.retry.max_attempts,
            ),
        )

    async def list_projects(self) -> list[dict[str, Any]]:
        """Raises ``DETAILS_FETCH_FAILED``: without projects nothing else is usable."""
        cached = self._cache.get(_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            data = await self._retry.execute(
                lambda: self._api.get("/_apis/projects"), label="list_projects"
            )
        except AzdoContextError as exc:
            log.warning("list_projects_failed", error=exc.message)
            raise details_error("projects", exc) from exc

        projects = data.get("value") or []
        log.info("projects_listed", count=len(projects))
        self._cache.set(_CACHE_KEY, projects)
        return projects

    def clear_cache(self) -> None:
        self._cache.clear()
