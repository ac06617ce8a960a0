"""Work item queries via WIQL."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from azdocontext.cache import Cache
from azdocontext.client import segment
from azdocontext.errors import AzdoContextError, details_error
from azdocontext.retry import RetryPolicy
from azdocontext.services import log_list_failure

if TYPE_CHECKING:
    from azdocontext.protocols import ApiClientProtocol
    from azdocontext.config import Settings

log = structlog.get_logger()

# Upper bound on ids accepted by the work items batch endpoint
MAX_WORK_ITEMS_PER_FETCH = 100

_SELECT = (
    "SELECT [System.Id], [System.Title], [System.WorkItemType], "
    "[System.State], [System.AssignedTo] FROM WorkItems"
)


def wiql_literal(value: str) -> str:
    """Quote ``value`` as a WIQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def default_query(project: str) -> str:
    return (
        f"{_SELECT} WHERE [System.TeamProject] = {wiql_literal(project)} "
        "AND [System.State] <> 'Closed' ORDER BY [System.ChangedDate] DESC"
    )


def search_query(project: str, search_text: str, work_item_type: str | None = None) -> str:
    term = wiql_literal(search_text)
    query = (
        f"{_SELECT} WHERE [System.TeamProject] = {wiql_literal(project)} "
        f"AND ([System.Title] CONTAINS {term} OR [System.Description] CONTAINS {term})"
    )
    if work_item_type:
        query += f" AND [System.WorkItemType] = {wiql_literal(work_item_type)}"
    return query + " ORDER BY [System.ChangedDate] DESC"


class WorkItemService:
    """Runs WIQL queries and resolves the matching work items."""

    def __init__(self, api: ApiClientProtocol, *, cache: Cache[Any], retry: RetryPolicy) -> None:
        self._api = api
        self._cache = cache
        self._retry = retry

    @classmethod
    def from_settings(cls, api: ApiClientProtocol, settings: Settings) -> WorkItemService:
        return cls(
            api,
            cache=Cache(settings.cache.ttl_seconds),
            retry=RetryPolicy(
                max_delay=settings.retry.work_item_max_delay_seconds,
                base_delay=settings.retry.base_delay_seconds,
                max_attempts=settings.retry.max_attempts,
            ),
        )

    async def list_work_items(self, project: str, wiql: str | None = None) -> list[dict[str, Any]]:
        """Work items returned by ``wiql``, or open items when no query is given.

        At most ``MAX_WORK_ITEMS_PER_FETCH`` items are resolved. Empty list on
        failure.
        """
        cache_key = f"work_items_{project}_{wiql or 'default'}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            log.debug("cache_hit", key=cache_key)
            return cached

        query = wiql or default_query(project)
        try:
            result = await self._retry.execute(
                lambda: self._api.post(f"/{segment(project)}/_apis/wit/wiql", {"query": query}),
                label=f"query_work_items:{project}",
            )
            ids = [ref["id"] for ref in result.get("workItems") or [] if "id" in ref]
            if not ids:
                self._cache.set(cache_key, [])
                return []

            id_list = ",".join(str(i) for i in ids[:MAX_WORK_ITEMS_PER_FETCH])
            data = await self._retry.execute(
                lambda: self._api.get(
                    f"/{segment(project)}/_apis/wit/workitems",
                    params={"ids": id_list, "$expand": "relations"},
                ),
                label=f"get_work_items:{project}",
            )
        except AzdoContextError as exc:
            log_list_failure("list_work_items_failed", exc, project=project)
            return []

        work_items = data.get("value") or []
        log.info(
            "work_items_listed",
            project=project,
            matched=len(ids),
            count=len(work_items),
        )
        self._cache.set(cache_key, work_items)
        return work_items

    async def get_work_item(self, project: str, work_item_id: int) -> dict[str, Any]:
        """One work item with relations. Raises ``DETAILS_FETCH_FAILED``."""
        cache_key = f"work_item_{project}_{work_item_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            log.debug("cache_hit", key=cache_key)
            return cached

        try:
            work_item = await self._retry.execute(
                lambda: self._api.get(
                    f"/{segment(project)}/_apis/wit/workitems/{segment(work_item_id)}",
                    params={"$expand": "relations"},
                ),
                label=f"get_work_item:{work_item_id}",
            )
        except AzdoContextError as exc:
            raise details_error(f"work item {work_item_id}", exc) from exc

        self._cache.set(cache_key, work_item)
        return work_item

    async def search_work_items(
        self, project: str, search_text: str, work_item_type: str | None = None
    ) -> list[dict[str, Any]]:
        """Work items whose title or description contains ``search_text``."""
        if not search_text:
            return []
        return await self.list_work_items(
            project, search_query(project, search_text, work_item_type)
        )

    def clear_cache(self) -> None:
        self._cache.clear()
        log.info("cache_cleared", domain="work_items")
