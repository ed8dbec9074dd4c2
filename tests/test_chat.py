"""Tests for chat, model and trip endpoints."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from nomad_gateway.core.exceptions import (
    GatewayAuthError,
    GatewayRateLimitError,
    GatewayServerError,
    GatewayValidationError,
)
from nomad_gateway.infrastructure.llm.schemas import CompletionChunk, CompletionResponse, ModelInfo
from nomad_gateway.services.trip_planner import TripSuggestion

from tests.conftest import COMPLETION_PAYLOAD

CHAT_BODY = {
    "model": "openai/gpt-4o-mini",
    "messages": [{"role": "user", "content": "Hello, how are you?"}],
    "max_tokens": 100,
    "temperature": 0.7
}


def stream_of(*chunks, error=None):
    async def generator(request):
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error
    return generator


def chunk(content):
    return CompletionChunk.model_validate({
        "id": "gen-s", "model": "m", "created": 1,
        "choices": [{"index": 0, "delta": {"content": content}}],
    })


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_success(mock_get_client, client):
    mock_client = AsyncMock()
    mock_client.send_completion.return_value = CompletionResponse.model_validate(COMPLETION_PAYLOAD)
    mock_get_client.return_value = mock_client

    response = client.post("/api/v1/chat/completions", json=CHAT_BODY)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "gen-123"
    assert data["choices"][0]["message"]["content"] == "Hello!"

    sent = mock_client.send_completion.await_args.args[0]
    assert sent.max_tokens == 100


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_validation_error(mock_get_client, client):
    mock_client = AsyncMock()
    mock_client.send_completion.side_effect = GatewayValidationError("At least one message is required")
    mock_get_client.return_value = mock_client

    response = client.post("/api/v1/chat/completions", json={"model": "m", "messages": []})
    assert response.status_code == 422
    assert response.json() == {
        "error": "GatewayValidationError",
        "detail": "At least one message is required",
    }


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_rate_limited(mock_get_client, client):
    mock_client = AsyncMock()
    mock_client.send_completion.side_effect = GatewayRateLimitError(
        "Rate limit exceeded.", retry_after=timedelta(seconds=30)
    )
    mock_get_client.return_value = mock_client

    response = client.post("/api/v1/chat/completions", json=CHAT_BODY)
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"
    assert response.json()["retry_after_seconds"] == 30.0


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_auth_and_server_errors(mock_get_client, client):
    mock_client = AsyncMock()
    mock_get_client.return_value = mock_client

    mock_client.send_completion.side_effect = GatewayAuthError("OpenRouter API key is not configured.")
    assert client.post("/api/v1/chat/completions", json=CHAT_BODY).status_code == 401

    mock_client.send_completion.side_effect = GatewayServerError("OpenRouter server error.")
    assert client.post("/api/v1/chat/completions", json=CHAT_BODY).status_code == 503


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_streaming(mock_get_client, client):
    mock_client = MagicMock()
    mock_client.stream_completion = stream_of(chunk("Hel"), chunk("lo"))
    mock_get_client.return_value = mock_client

    response = client.post("/api/v1/chat/completions", json={**CHAT_BODY, "stream": True})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    frames = [line for line in response.text.split("\n") if line]
    assert len(frames) == 3
    assert '"content":"Hel"' in frames[0]
    assert frames[-1] == "data: [DONE]"


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_streaming_setup_error(mock_get_client, client):
    mock_client = MagicMock()
    mock_client.stream_completion = stream_of(error=GatewayAuthError("Invalid API key."))
    mock_get_client.return_value = mock_client

    response = client.post("/api/v1/chat/completions", json={**CHAT_BODY, "stream": True})
    assert response.status_code == 401


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_streaming_midway_error(mock_get_client, client):
    mock_client = MagicMock()
    mock_client.stream_completion = stream_of(chunk("Hel"), error=GatewayServerError("boom"))
    mock_get_client.return_value = mock_client

    response = client.post("/api/v1/chat/completions", json={**CHAT_BODY, "stream": True})
    assert response.status_code == 200
    assert '"error": "GatewayServerError"' in response.text
    assert response.text.rstrip().endswith("data: [DONE]")


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_list_models(mock_get_client, client):
    mock_client = AsyncMock()
    mock_client.get_available_models.return_value = [ModelInfo(id="openai/gpt-4o-mini", name="GPT-4o mini")]
    mock_get_client.return_value = mock_client

    response = client.get("/api/v1/models")
    assert response.status_code == 200
    assert response.json()[0]["id"] == "openai/gpt-4o-mini"


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_validate_key(mock_get_client, client):
    mock_client = AsyncMock()
    mock_client.validate_api_key.return_value = False
    mock_get_client.return_value = mock_client

    response = client.post("/api/v1/models/validate-key", json={"api_key": "sk-or-bad"})
    assert response.status_code == 200
    assert response.json() == {"valid": False}
    mock_client.validate_api_key.assert_awaited_once_with("sk-or-bad")


@patch('nomad_gateway.api.routes.trips.get_trip_planner')
def test_trip_suggestions(mock_get_planner, client):
    planner = AsyncMock()
    planner.generate_trip_suggestion.return_value = TripSuggestion(
        suggested_description="Trasa przez Alpy.",
        highlights=["Stelvio", "Grossglockner"],
    )
    mock_get_planner.return_value = planner

    response = client.post("/api/v1/trips/suggestions", json={
        "trip_name": "Alpy 2025",
        "start_date": "2025-06-01",
        "end_date": "2025-06-07",
        "transport_type": "motocyklową"
    })
    assert response.status_code == 200
    assert response.json() == {
        "suggested_description": "Trasa przez Alpy.",
        "highlights": ["Stelvio", "Grossglockner"],
    }


def test_trip_suggestions_rejects_inverted_dates(client):
    response = client.post("/api/v1/trips/suggestions", json={
        "trip_name": "Alpy 2025",
        "start_date": "2025-06-07",
        "end_date": "2025-06-01"
    })
    assert response.status_code == 422


@patch('nomad_gateway.api.routes.chat.get_openrouter_client')
def test_chat_completions_streaming_connection_failure(mock_get_client, client, make_client):
    def handler(request):
        raise httpx.ConnectError("connection refused")

    mock_get_client.return_value = make_client(handler)

    response = client.post("/api/v1/chat/completions", json={**CHAT_BODY, "stream": True})
    assert response.status_code == 502
    assert response.json()["error"] == "GatewayError"
