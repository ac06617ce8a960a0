from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MatchType = Literal["name", "content"]


class _CamelModel(BaseModel):
    """Accepts and emits the camelCase field names used by the REST API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageNode(_CamelModel):
    """One node of the recursive page tree returned with ``recursionLevel=full``.

    The root node has path ``"/"`` and is synthetic.
    """

    path: str = ""
    git_item_path: str | None = None
    order: int | None = None
    is_parent_page: bool | None = None
    url: str | None = None
    remote_url: str | None = None
    children: list[PageNode] = Field(default_factory=list, alias="subPages")

    @field_validator("children", mode="before")
    @classmethod
    def _null_children(cls, v: Any) -> Any:
        return [] if v is None else v


class WikiPage(_CamelModel):
    """Flattened page metadata, without content."""

    path: str
    name: str
    git_item_path: str | None = None
    order: int | None = None
    is_parent_page: bool = False
    url: str | None = None
    remote_url: str | None = None
    # Filled in once the owning wiki is known
    wiki_id: str | None = None
    wiki_name: str | None = None
    wiki_type: str | None = None


class WikiSearchHit(WikiPage):
    """A page returned by name or content search."""

    match_type: MatchType
    summary: str | None = None
    content: str | None = None  # Relevant sections, content matches only


class Section(BaseModel):
    """A heading and the text under it, up to the next heading."""

    title: str
    level: int = Field(ge=1, le=6)
    body: str = ""


class SectionOutline(BaseModel):
    title: str
    level: int


class WikiPageDetail(_CamelModel):
    project: str
    wiki_id: str
    path: str
    content: str
    summary: str
    sections: list[SectionOutline]
    content_length: int


class SectionLookup(_CamelModel):
    found: bool
    content: str | None = None
