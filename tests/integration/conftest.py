"""Integration test fixtures.

Provides a fully wired AppState around a real httpx client. HTTP is mocked
per test with respx; backoff and batch pauses are configured to zero so
retries run without waiting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from azdocontext.config import Settings
from azdocontext.state import build_app_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from azdocontext.state import AppState

BASE_URL = "https://dev.azure.com/fabrikam"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        azure={"organization_url": BASE_URL, "personal_access_token": "test-pat"},
        retry={"base_delay_seconds": 0.0},
        search={"batch_delay_seconds": 0.0},
    )


@pytest.fixture()
async def app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    async with httpx.AsyncClient(base_url=BASE_URL) as client:
        yield build_app_state(settings, client)
