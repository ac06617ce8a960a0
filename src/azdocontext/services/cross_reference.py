"""Cross-domain search over wikis, test plans and work items.

The three domain searches run concurrently and are always joined as a
group: a failing domain contributes an empty list and never cancels or
fails the others.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar

import structlog

from azdocontext.models.cross_reference import CrossReferenceResult

if TYPE_CHECKING:
    from azdocontext.services.test_plans import TestPlanService
    from azdocontext.services.wiki import WikiService
    from azdocontext.services.work_items import WorkItemService

log = structlog.get_logger()

T = TypeVar("T")


def settled(domain: str, outcome: list[T] | BaseException) -> list[T]:
    """Unwrap one branch of a ``gather(..., return_exceptions=True)`` join."""
    if isinstance(outcome, Exception):
        log.warning(
            "cross_reference_domain_failed",
            domain=domain,
            error=str(outcome),
            error_type=type(outcome).__name__,
        )
        return []
    if isinstance(outcome, BaseException):
        raise outcome
    return outcome


class CrossReferenceService:
    def __init__(
        self,
        wiki: WikiService,
        test_plans: TestPlanService,
        work_items: WorkItemService,
    ) -> None:
        self._wiki = wiki
        self._test_plans = test_plans
        self._work_items = work_items

    async def find_related_items(self, project: str, search_text: str) -> CrossReferenceResult:
        """Search every domain for ``search_text``. Never raises on domain failure."""
        if not search_text:
            return CrossReferenceResult()

        branches: tuple[Awaitable[list], Awaitable[list], Awaitable[list]] = (
            self._wiki.search_content(project, search_text),
            self._test_plans.search_test_plans(project, search_text),
            self._work_items.search_work_items(project, search_text),
        )
        wiki_outcome, plans_outcome, items_outcome = await asyncio.gather(
            *branches, return_exceptions=True
        )

        result = CrossReferenceResult.from_results(
            wiki_pages=settled("wiki", wiki_outcome),
            test_plans=settled("test_plans", plans_outcome),
            work_items=settled("work_items", items_outcome),
        )
        log.info(
            "cross_reference_complete",
            project=project,
            query=search_text,
            wiki_pages=result.summary.total_wiki_pages,
            test_plans=result.summary.total_test_plans,
            work_items=result.summary.total_work_items,
        )
        return result

    async def search_by_feature(self, project: str, feature_name: str) -> CrossReferenceResult:
        return await self.find_related_items(project, feature_name)
