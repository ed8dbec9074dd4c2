"""Local request checks run before any network I/O or rate-limit wait."""

import re
from typing import Optional

from nomad_gateway.core.exceptions import GatewayValidationError
from nomad_gateway.infrastructure.llm.schemas import CompletionRequest, ResponseFormat

VALID_ROLES = frozenset({"system", "user", "assistant"})
SCHEMA_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
PLACEHOLDER_KEY = "your-api-key-here"


def is_placeholder_key(key: Optional[str]) -> bool:
    """True for a missing, blank, or sample-config API key."""
    if key is None or not key.strip():
        return True
    return key == PLACEHOLDER_KEY or key.startswith("your-")


def validate_request(request: CompletionRequest) -> None:
    """
    Reject malformed completion requests.

    Stops at the first violation. Raises:
        GatewayValidationError: describing the offending field
    """
    if request is None:
        raise GatewayValidationError("Request is required")

    if not request.model or not request.model.strip():
        raise GatewayValidationError("Model name is required")

    if not request.messages:
        raise GatewayValidationError("At least one message is required")

    for message in request.messages:
        if message.role not in VALID_ROLES:
            raise GatewayValidationError(f"Invalid message role: {message.role}")
        if not message.content or not message.content.strip():
            raise GatewayValidationError("Message content cannot be empty")

    if request.temperature is not None and not 0 <= request.temperature <= 2:
        raise GatewayValidationError("Temperature must be between 0 and 2")

    if request.max_tokens is not None and request.max_tokens <= 0:
        raise GatewayValidationError("MaxTokens must be positive")

    if request.top_p is not None and not 0 <= request.top_p <= 1:
        raise GatewayValidationError("TopP must be between 0 and 1")

    if request.frequency_penalty is not None and not -2 <= request.frequency_penalty <= 2:
        raise GatewayValidationError("FrequencyPenalty must be between -2 and 2")

    if request.presence_penalty is not None and not -2 <= request.presence_penalty <= 2:
        raise GatewayValidationError("PresencePenalty must be between -2 and 2")

    if request.response_format is not None:
        validate_response_format(request.response_format)


def validate_response_format(response_format: ResponseFormat) -> None:
    if response_format.type != "json_schema":
        raise GatewayValidationError("Response format type must be 'json_schema'")

    definition = response_format.json_schema
    if definition is None:
        raise GatewayValidationError("JsonSchema definition is required")

    if not definition.name or not definition.name.strip():
        raise GatewayValidationError("Schema name is required")

    if not SCHEMA_NAME_PATTERN.match(definition.name):
        raise GatewayValidationError(
            "Schema name must contain only letters, numbers, underscores, and dashes"
        )

    if definition.schema_ is None:
        raise GatewayValidationError("Schema object is required")

    if definition.schema_.type != "object":
        raise GatewayValidationError("Root schema type must be 'object'")
