"""MotoNomad AI Gateway - LLM Infrastructure"""

from nomad_gateway.infrastructure.llm.openrouter_client import (
    OpenRouterClient,
    close_openrouter_client,
    get_openrouter_client,
)
from nomad_gateway.infrastructure.llm.schemas import (
    CompletionChunk,
    CompletionRequest,
    CompletionResponse,
    JsonSchemaObject,
    JsonSchemaProperty,
    Message,
    ModelInfo,
    ResponseFormat,
)

__all__ = [
    "CompletionChunk",
    "CompletionRequest",
    "CompletionResponse",
    "JsonSchemaObject",
    "JsonSchemaProperty",
    "Message",
    "ModelInfo",
    "OpenRouterClient",
    "ResponseFormat",
    "close_openrouter_client",
    "get_openrouter_client",
]
