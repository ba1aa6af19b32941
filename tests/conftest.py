"""Pytest fixtures and shared test configuration.

Fixtures:
    - fake_provider_factory: Builds scripted providers for controller tests
    - provider_config: OpenAI-style config with a test key
    - async_client: HTTPX client for API testing
"""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator, Callable

import pytest
from httpx import ASGITransport, AsyncClient

from delfin_chat.api.app import create_app
from delfin_chat.llm import CancellationToken, LLMMessage, LLMProvider, ProviderConfig


class FakeProvider(LLMProvider):
    """Scripted provider yielding fixed fragments.

    Args:
        fragments: Text fragments to yield in order.
        error: Raised after ``fail_after`` fragments when set.
        fail_after: Number of fragments yielded before ``error``.
        gate: If set, the provider waits on it before each fragment after the first.
    """

    name = "fake"

    def __init__(
        self,
        fragments: list[str] | None = None,
        error: Exception | None = None,
        fail_after: int = 0,
        gate: asyncio.Event | None = None,
        configured: bool = True,
    ) -> None:
        self.fragments = fragments or []
        self.error = error
        self.fail_after = fail_after
        self.gate = gate
        self.configured = configured
        self.calls: list[list[LLMMessage]] = []

    def is_configured(self) -> bool:
        return self.configured

    async def generate_streaming_response(
        self,
        messages: list[LLMMessage],
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        self.calls.append(list(messages))
        for index, fragment in enumerate(self.fragments):
            if self.error is not None and index == self.fail_after:
                raise self.error
            if self.gate is not None and index > 0:
                await self.gate.wait()
                self.gate.clear()
            yield fragment
        if self.error is not None and self.fail_after >= len(self.fragments):
            raise self.error


@pytest.fixture
def fake_provider_factory() -> Callable[..., FakeProvider]:
    """Return the FakeProvider class for building scripted providers."""
    return FakeProvider


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Config with a test key and default OpenAI settings."""
    return ProviderConfig(api_key="sk-test-key", model="gpt-4o-mini")


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
