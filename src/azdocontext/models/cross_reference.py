from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from azdocontext.models.wiki import WikiSearchHit


class CrossReferenceSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_wiki_pages: int = 0
    total_test_plans: int = 0
    total_work_items: int = 0


class CrossReferenceResult(BaseModel):
    """Merged search results across wikis, test plans and work items.

    Always fully populated: a domain that failed contributes an empty list
    and a zero count.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    wiki_pages: list[WikiSearchHit] = Field(default_factory=list)
    test_plans: list[dict[str, Any]] = Field(default_factory=list)
    work_items: list[dict[str, Any]] = Field(default_factory=list)
    summary: CrossReferenceSummary = Field(default_factory=CrossReferenceSummary)

    @classmethod
    def from_results(
        cls,
        wiki_pages: list[WikiSearchHit],
        test_plans: list[dict[str, Any]],
        work_items: list[dict[str, Any]],
    ) -> CrossReferenceResult:
        return cls(
            wiki_pages=wiki_pages,
            test_plans=test_plans,
            work_items=work_items,
            summary=CrossReferenceSummary(
                total_wiki_pages=len(wiki_pages),
                total_test_plans=len(test_plans),
                total_work_items=len(work_items),
            ),
        )

    def describe(self) -> str:
        return (
            f"Found {self.summary.total_wiki_pages} wiki pages, "
            f"{self.summary.total_test_plans} test plans, "
            f"and {self.summary.total_work_items} work items"
        )
