"""
MotoNomad AI Gateway - OpenRouter Wire Models
Chat completion request/response shapes as sent to and received from OpenRouter.

Request models are deliberately unconstrained: shape checks live in
`validation.validate_request` so a bad request surfaces as a
GatewayValidationError from the client, not as a pydantic error at
construction time.
"""

import json
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

T = TypeVar("T")


# ============================================
# Request
# ============================================

class Message(BaseModel):
    """Single chat message."""
    role: str
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role="assistant", content=content)


class JsonSchemaProperty(BaseModel):
    """Property node of a structured-output schema."""
    type: str
    description: Optional[str] = None
    items: Optional["JsonSchemaProperty"] = None
    enum: Optional[List[str]] = None
    minimum: Optional[int] = None
    maximum: Optional[int] = None


class JsonSchemaObject(BaseModel):
    """Root node of a structured-output schema."""
    model_config = ConfigDict(populate_by_name=True)

    type: str
    properties: Optional[Dict[str, JsonSchemaProperty]] = None
    required: Optional[List[str]] = None
    additional_properties: Optional[bool] = Field(default=None, alias="additionalProperties")
    items: Optional[JsonSchemaProperty] = None
    description: Optional[str] = None


class JsonSchemaDefinition(BaseModel):
    """Named schema wrapper sent under response_format.json_schema."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    strict: bool = True
    schema_: JsonSchemaObject = Field(alias="schema")


class ResponseFormat(BaseModel):
    """Structured-output request block."""
    type: str
    json_schema: JsonSchemaDefinition

    @classmethod
    def json_schema_format(cls, schema_name: str, schema: JsonSchemaObject) -> "ResponseFormat":
        """Build a strict `json_schema` response format."""
        return cls(
            type="json_schema",
            json_schema=JsonSchemaDefinition(name=schema_name, strict=True, schema=schema),
        )


class CompletionRequest(BaseModel):
    """OpenRouter chat completion request."""
    model: str
    messages: List[Message]
    response_format: Optional[ResponseFormat] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stream: Optional[bool] = None
    route: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """JSON body for the gateway; unset fields are omitted, not sent as null."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================
# Response
# ============================================

class Usage(BaseModel):
    """Token usage statistics."""
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Choice(BaseModel):
    """Single completion choice."""
    model_config = ConfigDict(frozen=True)

    index: int = 0
    message: Optional[Message] = None
    finish_reason: Optional[str] = None


class CompletionResponse(BaseModel):
    """OpenRouter chat completion response."""
    model_config = ConfigDict(frozen=True)

    id: str
    model: str
    created: int = 0
    choices: List[Choice]
    usage: Optional[Usage] = None

    def get_content(self) -> str:
        """First choice's message content, or an empty string."""
        if not self.choices or self.choices[0].message is None:
            return ""
        return self.choices[0].message.content or ""

    def get_structured_content(self, model_type: Type[T]) -> Optional[T]:
        """Parse the content as `model_type`; None when there is no content."""
        content = self.get_content()
        if not content.strip():
            return None
        return TypeAdapter(model_type).validate_json(content)


# ============================================
# Streaming
# ============================================

class Delta(BaseModel):
    """Incremental message content. `role` only appears on the first chunk."""
    model_config = ConfigDict(frozen=True)

    role: Optional[str] = None
    content: Optional[str] = None


class StreamingChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = 0
    delta: Optional[Delta] = None
    finish_reason: Optional[str] = None


class CompletionChunk(BaseModel):
    """One `data:` frame of a streamed completion."""
    model_config = ConfigDict(frozen=True)

    id: str
    model: str
    created: int = 0
    choices: List[StreamingChoice]

    def get_content(self) -> str:
        if not self.choices or self.choices[0].delta is None:
            return ""
        return self.choices[0].delta.content or ""


# ============================================
# Models catalogue
# ============================================

class ModelPricing(BaseModel):
    prompt: Optional[str] = None
    completion: Optional[str] = None


class TopProvider(BaseModel):
    max_completion_tokens: Optional[int] = None
    is_moderated: Optional[bool] = None


class ModelInfo(BaseModel):
    """Entry of the /models catalogue."""
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    context_length: Optional[int] = None
    pricing: Optional[ModelPricing] = None
    top_provider: Optional[TopProvider] = None


class ModelsResponse(BaseModel):
    data: Optional[List[ModelInfo]] = None


def schema_to_json(schema: JsonSchemaObject) -> str:
    """Serialise a schema for diagnostics."""
    return json.dumps(schema.model_dump(by_alias=True, exclude_none=True))
