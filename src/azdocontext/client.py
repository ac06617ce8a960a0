"""HTTP access to the Azure DevOps REST API.

All network I/O goes through a single ApiClient shared by the domain
services. The ApiClient receives an httpx.AsyncClient via constructor
injection; whoever builds the AppState owns the client lifecycle.

Every failure leaves this module as a classified AzdoContextError so the
retry policy can decide what to retry from the code and status alone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
import structlog

from azdocontext import USER_AGENT
from azdocontext.errors import AzdoContextError, ErrorCode

if TYPE_CHECKING:
    from azdocontext.config import AzureSettings

log = structlog.get_logger()

_TIMEOUT_SUGGESTION = (
    "The request timed out. Try increasing AZDOCONTEXT__AZURE__HTTP_TIMEOUT_SECONDS."
)


def build_http_client(settings: AzureSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        base_url=settings.organization_url,
        auth=httpx.BasicAuth("", settings.personal_access_token.get_secret_value()),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        params={"api-version": settings.api_version},
        headers={
            "Content-Type": "application/json",
            "Accept": f"application/json;api-version={settings.api_version}",
            "User-Agent": USER_AGENT,
        },
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def segment(value: object) -> str:
    """Percent-encode one URL path segment (project name, wiki id, ...)."""
    return quote(str(value), safe="")


def _status_error(response: httpx.Response, method: str, path: str) -> AzdoContextError:
    status = response.status_code
    message = f"HTTP {status} on {method} {path}"

    if status in (401, 403):
        return AzdoContextError(
            code=ErrorCode.AUTH_FAILED,
            message=message,
            suggestion="Check that the personal access token is valid and has the required scopes.",
            recoverable=False,
            status_code=status,
        )
    if status == 408:
        return AzdoContextError(
            code=ErrorCode.REQUEST_TIMEOUT,
            message=message,
            suggestion=_TIMEOUT_SUGGESTION,
            recoverable=True,
            status_code=status,
        )
    if 400 <= status < 500:
        return AzdoContextError(
            code=ErrorCode.CLIENT_ERROR,
            message=message,
            suggestion="Check the project, wiki, plan or work item identifiers.",
            recoverable=False,
            status_code=status,
        )
    return AzdoContextError(
        code=ErrorCode.REMOTE_UNAVAILABLE,
        message=message,
        suggestion="Azure DevOps may be temporarily unavailable.",
        recoverable=True,
        status_code=status,
    )


class ApiClient:
    """Thin JSON request client over httpx with classified errors."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("GET", path, params=params)

    async def post(
        self, path: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self._request("POST", path, params=params, json=body)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            # Surfaced as a connection-aborted condition, retried like a 5xx
            raise AzdoContextError(
                code=ErrorCode.REQUEST_TIMEOUT,
                message=f"Timed out on {method} {path}: {exc}",
                suggestion=_TIMEOUT_SUGGESTION,
                recoverable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise AzdoContextError(
                code=ErrorCode.REMOTE_UNAVAILABLE,
                message=f"Network error on {method} {path}: {exc}",
                suggestion="Azure DevOps may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise _status_error(response, method, path)

        log.debug(
            "request_complete",
            method=method,
            path=path,
            status_code=response.status_code,
            content_length=len(response.content),
        )

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise AzdoContextError(
                code=ErrorCode.INVALID_RESPONSE,
                message=f"Non-JSON response on {method} {path}",
                suggestion="The organization URL may point at a sign-in page instead of the API.",
                recoverable=False,
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            return {"value": data}
        return data
