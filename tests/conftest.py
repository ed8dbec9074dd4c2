"""Shared test fixtures for the MotoNomad AI Gateway."""

import httpx
import pytest
from fastapi.testclient import TestClient

from nomad_gateway.core.utils.config import OpenRouterSettings
from nomad_gateway.infrastructure.llm.openrouter_client import OpenRouterClient
from nomad_gateway.main import app

BASE_URL = "https://openrouter.test/api/v1"

COMPLETION_PAYLOAD = {
    "id": "gen-123",
    "object": "chat.completion",
    "created": 1730000000,
    "model": "openai/gpt-4o-mini",
    "choices": [{
        "index": 0,
        "message": {"role": "assistant", "content": "Hello!"},
        "finish_reason": "stop"
    }],
    "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15}
}


@pytest.fixture
def client():
    """Synchronous test client."""
    return TestClient(app)


@pytest.fixture
def settings_kwargs():
    """Direct-mode settings with pacing disabled."""
    return {
        "api_key": "sk-or-test-key",
        "base_url": BASE_URL,
        "use_proxy": False,
        "max_retries": 3,
        "max_concurrent_requests": 5,
        "min_request_delay_ms": 0,
    }


@pytest.fixture
def sleeps():
    """Backoff delays requested by the client under test."""
    return []


@pytest.fixture
def make_client(settings_kwargs, sleeps):
    """Build an OpenRouterClient whose transport is `handler`."""

    async def fake_sleep(delay):
        sleeps.append(delay)

    def _make(handler, **overrides):
        settings = OpenRouterSettings(**{**settings_kwargs, **overrides})
        return OpenRouterClient(
            settings,
            transport=httpx.MockTransport(handler),
            sleep=fake_sleep,
        )

    return _make


@pytest.fixture
def calls():
    """Requests seen by a recording handler."""
    return []


@pytest.fixture
def completion_handler(calls):
    """Handler that records the request and answers with COMPLETION_PAYLOAD."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=COMPLETION_PAYLOAD)

    return handler
