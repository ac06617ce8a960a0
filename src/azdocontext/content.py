"""Markdown helpers for wiki search results.

Plain functions over page text: a markup-stripping summariser, a heading
based section splitter, and case-insensitive term matching. All of them
accept ``None`` or empty input and return an empty result.
"""

from __future__ import annotations

import re

from azdocontext.models.wiki import Section

DEFAULT_SUMMARY_LENGTH = 500
CODE_BLOCK_PLACEHOLDER = "[Code Block]"

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")

# Applied in order by extract_summary
_SUMMARY_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"#+\s"), ""),  # heading markers
    (re.compile(r"<[^>]*>"), ""),  # HTML tags
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),  # bold
    (re.compile(r"\*(.*?)\*"), r"\1"),  # italic
    (re.compile(r"\[(.*?)\]\(.*?\)"), r"\1"),  # links
    (re.compile(r"```[\s\S]*?```"), CODE_BLOCK_PLACEHOLDER),
    (re.compile(r"`([^`]+)`"), r"\1"),  # inline code
]


def extract_summary(content: str | None, max_length: int = DEFAULT_SUMMARY_LENGTH) -> str:
    """Strip Markdown structure and shorten to ``max_length`` characters.

    Truncation prefers the last full stop past the half-way mark; otherwise
    the text is cut hard at ``max_length``. Both paths append ``...``.
    """
    if not content:
        return ""

    cleaned = content
    for pattern, replacement in _SUMMARY_RULES:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = cleaned.strip()

    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[:max_length]
    last_period = truncated.rfind(".")
    if last_period > max_length * 0.5:
        return truncated[: last_period + 1] + "..."

    return truncated + "..."


def extract_sections(content: str | None) -> list[Section]:
    """Split Markdown into sections at H1 to H6 heading lines.

    Text before the first heading is dropped. Each body keeps its lines with
    a trailing newline apiece.
    """
    if not content:
        return []

    sections: list[Section] = []
    title = ""
    level = 0
    body: list[str] = []

    for line in content.splitlines():
        match = _HEADING_RE.match(line)
        if match:
            if title:
                sections.append(Section(title=title, level=level, body="".join(body)))
            title = match.group(2)
            level = len(match.group(1))
            body = []
        else:
            body.append(line + "\n")

    if title:
        sections.append(Section(title=title, level=level, body="".join(body)))

    return sections


def render_section(section: Section) -> str:
    return f"## {section.title}\n{section.body.strip()}"


def find_relevant_sections(content: str | None, query: str | None) -> str:
    """Return the sections mentioning ``query``, or a summary if none do."""
    if not content or not query:
        return ""

    relevant = [
        section
        for section in extract_sections(content)
        if contains_search_term(section.title, query) or contains_search_term(section.body, query)
    ]
    if not relevant:
        return extract_summary(content)

    return "\n\n".join(render_section(section) for section in relevant)


def contains_search_term(text: str | None, term: str | None) -> bool:
    if not text or not term:
        return False
    return term.lower() in text.lower()
