from __future__ import annotations

from azdocontext.models.cache import CacheEntry
from azdocontext.models.cross_reference import CrossReferenceResult, CrossReferenceSummary
from azdocontext.models.wiki import (
    MatchType,
    PageNode,
    Section,
    SectionLookup,
    SectionOutline,
    WikiPage,
    WikiPageDetail,
    WikiSearchHit,
)

__all__ = [
    # cache
    "CacheEntry",
    # wiki
    "MatchType",
    "PageNode",
    "Section",
    "SectionLookup",
    "SectionOutline",
    "WikiPage",
    "WikiPageDetail",
    "WikiSearchHit",
    # cross reference
    "CrossReferenceResult",
    "CrossReferenceSummary",
]
