"""Chat completion and model catalogue endpoints."""

import json
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from nomad_gateway.api.schemas import ValidateKeyRequest, ValidateKeyResponse
from nomad_gateway.core.exceptions import GatewayError
from nomad_gateway.core.utils.logging import get_logger_with_context
from nomad_gateway.infrastructure.llm.openrouter_client import get_openrouter_client
from nomad_gateway.infrastructure.llm.schemas import (
    CompletionChunk,
    CompletionRequest,
    CompletionResponse,
    ModelInfo,
)

router = APIRouter(prefix="/api/v1", tags=["Chat"])
logger = get_logger_with_context(module="chat")


@router.get("/status")
async def api_status():
    """API status endpoint."""
    return {
        "status": "operational",
        "version": "1.0.0",
        "service": "MotoNomad AI Gateway"
    }


@router.post("/chat/completions", response_model=CompletionResponse)
async def chat_completions(request: CompletionRequest):
    """
    Forward a completion to OpenRouter.
    Gateway errors are mapped to HTTP statuses by the app-level handler.
    """
    client = get_openrouter_client()

    if request.stream:
        chunks = client.stream_completion(request)
        # Pull the first chunk here so setup failures still get a proper status
        try:
            first = await chunks.__anext__()
        except StopAsyncIteration:
            first = None
        return StreamingResponse(
            _sse_frames(first, chunks),
            media_type="text/event-stream"
        )

    return await client.send_completion(request)


async def _sse_frames(
    first: Optional[CompletionChunk],
    chunks: AsyncIterator[CompletionChunk],
) -> AsyncIterator[str]:
    """Re-emit gateway chunks as server-sent events."""
    if first is None:
        yield "data: [DONE]\n\n"
        return

    yield f"data: {first.model_dump_json(exclude_none=True)}\n\n"
    try:
        async for chunk in chunks:
            yield f"data: {chunk.model_dump_json(exclude_none=True)}\n\n"
    except GatewayError as e:
        # Headers are already sent; report in-band
        logger.error(f"Streaming completion failed: {e}")
        yield f"data: {json.dumps({'error': type(e).__name__, 'detail': e.message})}\n\n"
    yield "data: [DONE]\n\n"


@router.get("/models", response_model=List[ModelInfo])
async def list_models():
    """Models available through the gateway."""
    client = get_openrouter_client()
    return await client.get_available_models()


@router.post("/models/validate-key", response_model=ValidateKeyResponse)
async def validate_key(body: ValidateKeyRequest):
    """Probe an OpenRouter API key without touching the configured client."""
    client = get_openrouter_client()
    valid = await client.validate_api_key(body.api_key)
    return ValidateKeyResponse(valid=valid)
