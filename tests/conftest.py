"""Shared test fixtures for the azdocontext test suite."""

from __future__ import annotations

from typing import Any

import pytest

from azdocontext.cache import Cache
from azdocontext.errors import AzdoContextError, ErrorCode
from azdocontext.retry import RetryPolicy
from azdocontext.services.test_plans import TestPlanService
from azdocontext.services.wiki import WikiService
from azdocontext.services.work_items import WorkItemService


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeApi:
    """In-memory ApiClient keyed on (method, path, params).

    Each route holds a list of responses consumed in order; the last one
    repeats. A response that is an exception is raised instead of returned.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple, list[Any]] = {}
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self.bodies: list[dict[str, Any]] = []

    @staticmethod
    def _key(method: str, path: str, params: dict[str, Any] | None) -> tuple:
        return (method, path, tuple(sorted((params or {}).items())))

    def on_get(self, path: str, *responses: Any, params: dict[str, Any] | None = None) -> None:
        self.routes[self._key("GET", path, params)] = list(responses)

    def on_post(self, path: str, *responses: Any) -> None:
        self.routes[self._key("POST", path, None)] = list(responses)

    def calls_to(self, path: str) -> int:
        return sum(1 for _, called, _ in self.calls if called == path)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self._respond("GET", path, params)

    async def post(
        self, path: str, body: dict[str, Any], params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        self.bodies.append(body)
        return self._respond("POST", path, None)

    def _respond(self, method: str, path: str, params: dict[str, Any] | None) -> dict[str, Any]:
        self.calls.append((method, path, params))
        responses = self.routes.get(self._key(method, path, params))
        if not responses:
            raise AzdoContextError(
                code=ErrorCode.CLIENT_ERROR,
                message=f"HTTP 404 on {method} {path}",
                suggestion="",
                status_code=404,
            )
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture()
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


def make_retry(sleep: RecordingSleep, max_delay: float = 5.0) -> RetryPolicy:
    return RetryPolicy(max_delay=max_delay, sleep=sleep)


@pytest.fixture()
def wiki_service(api: FakeApi, sleep: RecordingSleep) -> WikiService:
    return WikiService(
        api,
        cache=Cache(300),
        retry=make_retry(sleep, max_delay=5.0),
        sleep=sleep,
    )


@pytest.fixture()
def test_plan_service(api: FakeApi, sleep: RecordingSleep) -> TestPlanService:
    return TestPlanService(
        api,
        cache=Cache(300),
        retry=make_retry(sleep, max_delay=10.0),
    )


@pytest.fixture()
def work_item_service(api: FakeApi, sleep: RecordingSleep) -> WorkItemService:
    return WorkItemService(
        api,
        cache=Cache(300),
        retry=make_retry(sleep, max_delay=10.0),
    )
