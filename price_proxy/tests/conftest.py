from __future__ import annotations

from typing import Callable

import httpx
import pytest

from price_proxy.services.backoff import RetryPolicy


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested wait."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def policy(sleeps) -> RetryPolicy:
    return RetryPolicy(retries=3, backoff_ms=1000, sleep=sleeps)


@pytest.fixture()
def mock_client():
    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
