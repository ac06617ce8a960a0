"""Protocol interfaces for swappable components.

Domain services reference these protocols, not the concrete httpx-backed
client, so tests can hand them lightweight in-memory implementations.
"""

from __future__ import annotations

from typing import Any, Protocol


class ApiClientProtocol(Protocol):
    """JSON request client for the Azure DevOps REST API.

    Paths are relative to the organization URL. Failures surface as
    ``AzdoContextError`` carrying a code and, for HTTP failures, the status.
    """

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]: ...

    async def post(
        self, path: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]: ...
