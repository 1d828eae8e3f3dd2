"""Pytest fixtures for onefichier_sdk tests."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from helpers import FakeRemote

from onefichier_sdk.executor import RequestExecutor
from onefichier_sdk.ratelimit import IntervalGuard, RateLimiter


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials from the developer's shell out of the tests."""
    monkeypatch.delenv("ONEFICHIER_API_KEY", raising=False)
    monkeypatch.delenv("ONEFICHIER_PROXY", raising=False)


@pytest.fixture
def limiter() -> RateLimiter:
    """Isolated limiter roomy enough that unit tests never wait."""
    return RateLimiter(max_operations=10_000, window=1.0)


@pytest.fixture
def guard() -> IntervalGuard:
    return IntervalGuard()


@pytest.fixture
def executor(limiter: RateLimiter) -> RequestExecutor:
    """Executor with an API key whose HTTP layer is mocked."""
    executor = RequestExecutor(api_key="test_key", rate_limiter=limiter)
    executor._send = AsyncMock(return_value='{"status": "OK"}')
    return executor


@pytest.fixture
def anonymous_executor(limiter: RateLimiter) -> RequestExecutor:
    """Executor without an API key whose HTTP layer is mocked."""
    executor = RequestExecutor(rate_limiter=limiter)
    executor._send = AsyncMock(return_value='{"status": "OK"}')
    return executor


@pytest.fixture
def remote() -> FakeRemote:
    """Folder tree: /docs (10) holding /docs/drafts (11)."""
    remote = FakeRemote()
    remote.add_folder("docs", 0, folder_id=10)
    remote.add_folder("drafts", 10, folder_id=11)
    return remote
