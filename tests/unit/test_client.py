"""Unit tests for azdocontext.client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from azdocontext.client import ApiClient, build_http_client, segment
from azdocontext.config import AzureSettings
from azdocontext.errors import AzdoContextError, ErrorCode

BASE = "https://dev.azure.com/fabrikam"


@pytest.fixture()
def azure_settings() -> AzureSettings:
    return AzureSettings(
        organization_url=BASE,
        personal_access_token="secret-pat",
        http_timeout_seconds=30.0,
    )


class TestSegment:
    def test_spaces_and_slashes_encoded(self) -> None:
        assert segment("My Project/Sub") == "My%20Project%2FSub"

    def test_numbers(self) -> None:
        assert segment(42) == "42"


class TestBuildHttpClient:
    def test_client_configuration(self, azure_settings: AzureSettings) -> None:
        client = build_http_client(azure_settings)
        assert isinstance(client, httpx.AsyncClient)
        assert str(client.base_url) == BASE + "/"
        assert client.timeout.read == 30.0
        assert client.headers["accept"] == "application/json;api-version=7.1"
        assert client.params["api-version"] == "7.1"

    @respx.mock
    async def test_basic_auth_with_pat(self, azure_settings: AzureSettings) -> None:
        route = respx.get(path="/fabrikam/_apis/projects").mock(
            return_value=httpx.Response(200, json={"value": []})
        )
        async with build_http_client(azure_settings) as client:
            await ApiClient(client).get("/_apis/projects")

        request = route.calls.last.request
        # base64(":secret-pat")
        assert request.headers["authorization"] == "Basic OnNlY3JldC1wYXQ="
        assert request.url.params["api-version"] == "7.1"


class TestApiClient:
    async def test_get_returns_json(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/Fabrikam/_apis/wiki/wikis").mock(
                return_value=httpx.Response(200, json={"value": [{"id": "w1"}]})
            )
            async with httpx.AsyncClient(base_url=BASE) as client:
                data = await ApiClient(client).get("/Fabrikam/_apis/wiki/wikis")
        assert data == {"value": [{"id": "w1"}]}

    async def test_get_passes_params(self) -> None:
        with respx.mock:
            route = respx.get(path="/fabrikam/p/_apis/wiki/wikis/w/pages").mock(
                return_value=httpx.Response(200, json={"path": "/"})
            )
            async with httpx.AsyncClient(base_url=BASE) as client:
                await ApiClient(client).get(
                    "/p/_apis/wiki/wikis/w/pages", params={"path": "/", "recursionLevel": "full"}
                )
        params = route.calls.last.request.url.params
        assert params["path"] == "/"
        assert params["recursionLevel"] == "full"

    async def test_post_sends_json_body(self) -> None:
        with respx.mock:
            route = respx.post(f"{BASE}/p/_apis/wit/wiql").mock(
                return_value=httpx.Response(200, json={"workItems": []})
            )
            async with httpx.AsyncClient(base_url=BASE) as client:
                data = await ApiClient(client).post("/p/_apis/wit/wiql", {"query": "SELECT"})
        assert data == {"workItems": []}
        assert json.loads(route.calls.last.request.content) == {"query": "SELECT"}

    async def test_empty_body_returns_empty_dict(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/empty").mock(return_value=httpx.Response(204))
            async with httpx.AsyncClient(base_url=BASE) as client:
                assert await ApiClient(client).get("/empty") == {}

    async def test_list_body_wrapped(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/list").mock(return_value=httpx.Response(200, json=[1, 2]))
            async with httpx.AsyncClient(base_url=BASE) as client:
                assert await ApiClient(client).get("/list") == {"value": [1, 2]}

    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failure(self, status: int) -> None:
        with respx.mock:
            respx.get(f"{BASE}/x").mock(return_value=httpx.Response(status))
            async with httpx.AsyncClient(base_url=BASE) as client:
                with pytest.raises(AzdoContextError) as exc_info:
                    await ApiClient(client).get("/x")
        assert exc_info.value.code == ErrorCode.AUTH_FAILED
        assert exc_info.value.status_code == status
        assert exc_info.value.recoverable is False

    async def test_not_found_is_client_error(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/x").mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient(base_url=BASE) as client:
                with pytest.raises(AzdoContextError) as exc_info:
                    await ApiClient(client).get("/x")
        assert exc_info.value.code == ErrorCode.CLIENT_ERROR
        assert exc_info.value.status_code == 404

    async def test_408_is_timeout(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/x").mock(return_value=httpx.Response(408))
            async with httpx.AsyncClient(base_url=BASE) as client:
                with pytest.raises(AzdoContextError) as exc_info:
                    await ApiClient(client).get("/x")
        assert exc_info.value.code == ErrorCode.REQUEST_TIMEOUT
        assert exc_info.value.recoverable is True

    async def test_server_error_is_recoverable(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/x").mock(return_value=httpx.Response(503))
            async with httpx.AsyncClient(base_url=BASE) as client:
                with pytest.raises(AzdoContextError) as exc_info:
                    await ApiClient(client).get("/x")
        assert exc_info.value.code == ErrorCode.REMOTE_UNAVAILABLE
        assert exc_info.value.status_code == 503
        assert exc_info.value.recoverable is True

    async def test_timeout_is_connection_aborted(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/x").mock(side_effect=httpx.ReadTimeout("timed out"))
            async with httpx.AsyncClient(base_url=BASE) as client:
                with pytest.raises(AzdoContextError) as exc_info:
                    await ApiClient(client).get("/x")
        assert exc_info.value.code == ErrorCode.REQUEST_TIMEOUT
        assert exc_info.value.status_code is None
        assert "HTTP_TIMEOUT_SECONDS" in exc_info.value.suggestion

    async def test_network_error(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/x").mock(side_effect=httpx.ConnectError("Connection refused"))
            async with httpx.AsyncClient(base_url=BASE) as client:
                with pytest.raises(AzdoContextError) as exc_info:
                    await ApiClient(client).get("/x")
        assert exc_info.value.code == ErrorCode.REMOTE_UNAVAILABLE
        assert exc_info.value.recoverable is True

    async def test_non_json_body(self) -> None:
        with respx.mock:
            respx.get(f"{BASE}/x").mock(
                return_value=httpx.Response(200, text="<html>Sign in</html>")
            )
            async with httpx.AsyncClient(base_url=BASE) as client:
                with pytest.raises(AzdoContextError) as exc_info:
                    await ApiClient(client).get("/x")
        assert exc_info.value.code == ErrorCode.INVALID_RESPONSE
