"""Wiki page tree parsing and flattening.

The pages endpoint with ``recursionLevel=full`` returns a single root node
(path ``"/"``) whose ``subPages`` nest arbitrarily deep. The tree is parsed
once into ``PageNode`` and then walked pre-order into a flat page list.
"""

from __future__ import annotations

from typing import Any

from azdocontext.models.wiki import PageNode, WikiPage

ROOT_PATH = "/"


def parse_page_tree(raw: dict[str, Any]) -> PageNode:
    """Validate the raw pages payload into a ``PageNode`` tree."""
    return PageNode.model_validate(raw)


def page_name(path: str | None) -> str:
    """Display name for a page path.

    ``"/Folder/Release-Notes"`` → ``"Release Notes"``.
    """
    if not path:
        return ""
    parts = [part for part in path.split("/") if part]
    if not parts:
        return ""
    return parts[-1].replace("-", " ").replace("%20", " ").strip()


def flatten_page_tree(root: PageNode) -> list[WikiPage]:
    """Return every page under ``root`` in pre-order, excluding the root itself.

    Duplicate paths are kept as separate entries.
    """
    pages: list[WikiPage] = []
    # Explicit stack so deep wikis cannot hit the recursion limit
    stack = [root]
    while stack:
        node = stack.pop()
        if node.path and node.path != ROOT_PATH:
            pages.append(
                WikiPage(
                    path=node.path,
                    name=page_name(node.path),
                    git_item_path=node.git_item_path,
                    order=node.order,
                    is_parent_page=bool(node.is_parent_page),
                    url=node.url,
                    remote_url=node.remote_url,
                )
            )
        stack.extend(reversed(node.children))
    return pages
