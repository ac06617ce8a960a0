"""Application state container.

AppState is built once by ``open_app_state`` and holds the shared httpx
client, the API client and one instance of every domain service. Each
service owns its own cache; nothing is shared between them.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from azdocontext import __version__
from azdocontext.client import ApiClient, build_http_client
from azdocontext.config import Settings
from azdocontext.logs import setup_logging
from azdocontext.services.cross_reference import CrossReferenceService
from azdocontext.services.projects import ProjectsService
from azdocontext.services.test_plans import TestPlanService
from azdocontext.services.wiki import WikiService
from azdocontext.services.work_items import WorkItemService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx

    from azdocontext.protocols import ApiClientProtocol

log = structlog.get_logger()


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    http_client: httpx.AsyncClient
    api: ApiClientProtocol
    projects: ProjectsService
    wiki: WikiService
    test_plans: TestPlanService
    work_items: WorkItemService
    cross_reference: CrossReferenceService


def build_app_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire every service around ``http_client``. No I/O."""
    api = ApiClient(http_client)
    wiki = WikiService.from_settings(api, settings)
    test_plans = TestPlanService.from_settings(api, settings)
    work_items = WorkItemService.from_settings(api, settings)
    return AppState(
        settings=settings,
        http_client=http_client,
        api=api,
        projects=ProjectsService.from_settings(api, settings),
        wiki=wiki,
        test_plans=test_plans,
        work_items=work_items,
        cross_reference=CrossReferenceService(wiki, test_plans, work_items),
    )


@asynccontextmanager
async def open_app_state(settings: Settings | None = None) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources."""
    settings = settings or Settings()
    setup_logging(settings.logging)
    settings.require_credentials()

    log.info(
        "client_starting",
        version=__version__,
        organization_url=settings.azure.organization_url,
        http_timeout_seconds=settings.azure.http_timeout_seconds,
    )

    http_client = build_http_client(settings.azure)
    try:
        yield build_app_state(settings, http_client)
    finally:
        await http_client.aclose()
        log.info("client_stopped")


def clear_caches(state: AppState) -> None:
    """Drop every cached response in every domain service."""
    state.projects.clear_cache()
    state.wiki.clear_cache()
    state.test_plans.clear_cache()
    state.work_items.clear_cache()
