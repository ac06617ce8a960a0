"""Wiki listing, page content and two-phase search.

Name search runs over cached page metadata only. Content search fetches
every page's Markdown in fixed-size concurrent batches with a pause between
batches, then merges: name matches first, followed by content matches whose
path was not already matched by name.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from azdocontext.cache import Cache
from azdocontext.client import segment
from azdocontext.content import (
    contains_search_term,
    extract_sections,
    extract_summary,
    find_relevant_sections,
)
from azdocontext.errors import AzdoContextError, details_error
from azdocontext.models.wiki import (
    SectionLookup,
    SectionOutline,
    WikiPage,
    WikiPageDetail,
    WikiSearchHit,
)
from azdocontext.page_tree import flatten_page_tree, parse_page_tree
from azdocontext.retry import RetryPolicy
from azdocontext.services import log_list_failure

if TYPE_CHECKING:
    from azdocontext.protocols import ApiClientProtocol
    from azdocontext.config import Settings

log = structlog.get_logger()

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_SECONDS = 0.1
DEFAULT_MAX_CONTENT_LENGTH = 2000


class WikiService:
    """Wikis of a project, their flattened page trees and page content."""

    def __init__(
        self,
        api: ApiClientProtocol,
        *,
        cache: Cache[Any],
        retry: RetryPolicy,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api = api
        self._cache = cache
        self._retry = retry
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._max_content_length = max_content_length
        self._sleep = sleep

    @classmethod
    def from_settings(cls, api: ApiClientProtocol, settings: Settings) -> WikiService:
        return cls(
            api,
            cache=Cache(settings.cache.ttl_seconds),
            retry=RetryPolicy(
                max_delay=settings.retry.wiki_max_delay_seconds,
                base_delay=settings.retry.base_delay_seconds,
                max_attempts=settings.retry.max_attempts,
            ),
            batch_size=settings.search.batch_size,
            batch_delay=settings.search.batch_delay_seconds,
            max_content_length=settings.search.max_content_length,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_wikis(self, project: str) -> list[dict[str, Any]]:
        """Wikis defined in ``project``. Empty list on failure."""
        cache_key = f"wikis_{project}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            log.debug("cache_hit", key=cache_key)
            return cached

        try:
            data = await self._retry.execute(
                lambda: self._api.get(f"/{segment(project)}/_apis/wiki/wikis"),
                label=f"list_wikis:{project}",
            )
        except AzdoContextError as exc:
            log_list_failure("list_wikis_failed", exc, project=project)
            return []

        wikis = data.get("value") or []
        log.info("wikis_listed", project=project, count=len(wikis))
        self._cache.set(cache_key, wikis)
        return wikis

    async def get_all_pages(self, project: str, wiki_id: str) -> list[WikiPage]:
        """Flattened page metadata (no content) for one wiki."""
        cache_key = f"all_wiki_pages_{project}_{wiki_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            log.debug("cache_hit", key=cache_key)
            return cached

        try:
            data = await self._retry.execute(
                lambda: self._api.get(
                    f"/{segment(project)}/_apis/wiki/wikis/{segment(wiki_id)}/pages",
                    params={"path": "/", "recursionLevel": "full"},
                ),
                label=f"get_all_pages:{project}/{wiki_id}",
            )
            pages = flatten_page_tree(parse_page_tree(data))
        except (AzdoContextError, ValidationError) as exc:
            log_list_failure("get_all_pages_failed", exc, project=project, wiki_id=wiki_id)
            return []

        log.info("wiki_pages_listed", project=project, wiki_id=wiki_id, count=len(pages))
        self._cache.set(cache_key, pages)
        return pages

    async def list_all_pages(self, project: str) -> list[WikiPage]:
        """Pages of every wiki in ``project``, tagged with their wiki."""
        wikis = await self.list_wikis(project)
        if not wikis:
            log.info("no_wikis_found", project=project)
            return []

        results: list[WikiPage] = []
        for wiki in wikis:
            wiki_id = str(wiki.get("id", ""))
            pages = await self.get_all_pages(project, wiki_id)
            results.extend(
                page.model_copy(
                    update={
                        "wiki_id": wiki_id,
                        "wiki_name": wiki.get("name"),
                        "wiki_type": wiki.get("type") or "unknown",
                    }
                )
                for page in pages
            )

        log.info("all_wiki_pages_listed", project=project, count=len(results))
        return results

    # ------------------------------------------------------------------
    # Page content
    # ------------------------------------------------------------------

    async def get_page_content(self, project: str, wiki_id: str, path: str) -> str:
        """Raw Markdown of one page. Raises ``DETAILS_FETCH_FAILED``."""
        cache_key = f"wiki_content_{project}_{wiki_id}_{path}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            log.debug("cache_hit", key=cache_key)
            return cached

        try:
            data = await self._retry.execute(
                lambda: self._api.get(
                    f"/{segment(project)}/_apis/wiki/wikis/{segment(wiki_id)}/pages",
                    params={"path": path, "includeContent": "true"},
                ),
                label=f"get_page_content:{path}",
            )
        except AzdoContextError as exc:
            raise details_error(f"wiki page {path}", exc) from exc

        content = data.get("content") or ""
        log.info("wiki_content_fetched", path=path, content_length=len(content))
        self._cache.set(cache_key, content)
        return content

    async def get_page(self, project: str, wiki_id: str, path: str) -> WikiPageDetail:
        content = await self.get_page_content(project, wiki_id, path)
        return WikiPageDetail(
            project=project,
            wiki_id=wiki_id,
            path=path,
            content=content,
            summary=extract_summary(content),
            sections=[
                SectionOutline(title=section.title, level=section.level)
                for section in extract_sections(content)
            ],
            content_length=len(content),
        )

    async def get_section(
        self, project: str, wiki_id: str, path: str, section_title: str
    ) -> SectionLookup:
        """First section whose title contains ``section_title``."""
        try:
            content = await self.get_page_content(project, wiki_id, path)
        except AzdoContextError as exc:
            log.warning("get_section_failed", path=path, section=section_title, error=exc.message)
            return SectionLookup(found=False)

        for section in extract_sections(content):
            if contains_search_term(section.title, section_title):
                return SectionLookup(found=True, content=f"## {section.title}\n{section.body}")
        return SectionLookup(found=False)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_pages(self, project: str, search_text: str) -> list[WikiSearchHit]:
        """Pages whose name or path contains ``search_text``."""
        if not search_text or not project:
            return []

        pages = await self.list_all_pages(project)
        matches = [
            WikiSearchHit(**page.model_dump(), match_type="name")
            for page in pages
            if contains_search_term(page.name, search_text)
            or contains_search_term(page.path, search_text)
        ]
        log.info("wiki_name_search_complete", query=search_text, count=len(matches))
        return matches

    async def search_content(self, project: str, search_text: str) -> list[WikiSearchHit]:
        """Name matches followed by pages whose content mentions ``search_text``."""
        if not search_text or not project:
            return []

        name_matches = await self.search_pages(project, search_text)
        pages = await self.list_all_pages(project)

        content_matches: list[WikiSearchHit] = []
        for start in range(0, len(pages), self._batch_size):
            batch = pages[start : start + self._batch_size]
            hits = await asyncio.gather(
                *(self._match_content(project, page, search_text) for page in batch)
            )
            content_matches.extend(hit for hit in hits if hit is not None)

            if start + self._batch_size < len(pages):
                await self._sleep(self._batch_delay)

        name_paths = {hit.path for hit in name_matches}
        unique_content = [hit for hit in content_matches if hit.path not in name_paths]

        log.info(
            "wiki_content_search_complete",
            query=search_text,
            total=len(name_matches) + len(unique_content),
            name_matches=len(name_matches),
            content_matches=len(unique_content),
        )
        return [*name_matches, *unique_content]

    async def _match_content(
        self, project: str, page: WikiPage, search_text: str
    ) -> WikiSearchHit | None:
        try:
            content = await self.get_page_content(project, page.wiki_id or "", page.path)
        except Exception:
            log.warning("content_search_page_failed", path=page.path, exc_info=True)
            return None

        if not contains_search_term(content, search_text):
            return None
        return WikiSearchHit(
            **page.model_dump(),
            match_type="content",
            content=find_relevant_sections(content, search_text),
            summary=extract_summary(content, self._max_content_length),
        )

    def clear_cache(self) -> None:
        self._cache.clear()
        log.info("cache_cleared", domain="wiki")

