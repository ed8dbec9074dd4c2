"""
MotoNomad AI Gateway - OpenRouter HTTP Client
Sends chat completions to OpenRouter, either directly or through a trusted proxy
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from nomad_gateway.core.exceptions import (
    GatewayAuthError,
    GatewayError,
    GatewayResponseValidationError,
    GatewayValidationError,
    classify_http_error,
)
from nomad_gateway.core.utils.config import OpenRouterSettings, get_settings
from nomad_gateway.core.utils.logging import get_logger_with_context, mask_secret, truncate_for_log
from nomad_gateway.infrastructure.llm.rate_limiter import RequestPacer
from nomad_gateway.infrastructure.llm.retry import RetryPolicy
from nomad_gateway.infrastructure.llm.schemas import (
    CompletionChunk,
    CompletionRequest,
    CompletionResponse,
    Message,
    ModelInfo,
    ModelsResponse,
    schema_to_json,
)
from nomad_gateway.infrastructure.llm.streaming import DONE, parse_stream_line
from nomad_gateway.infrastructure.llm.validation import is_placeholder_key, validate_request

logger = get_logger_with_context(module="openrouter_client")

T = TypeVar("T")


class OpenRouterClient:
    """
    HTTP client for the OpenRouter chat completion API.

    Direct mode talks to `base_url` with the provider key. Proxy mode posts
    to the proxy root and presents `proxy_auth_key` instead; the proxy holds
    the provider key. A misconfigured client still constructs so the rest of
    the app can start; every call then fails with GatewayAuthError.
    """

    def __init__(
        self,
        settings: Optional[OpenRouterSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings().openrouter
        self._transport = transport
        self.timeout = httpx.Timeout(float(self.settings.timeout_seconds))

        headers = {
            "HTTP-Referer": self.settings.http_referer,
            "X-Title": self.settings.app_title,
            "Content-Type": "application/json",
        }

        if self.settings.use_proxy:
            base_url = self.settings.proxy_url or ""
            if self.settings.proxy_auth_key:
                headers["Authorization"] = f"Bearer {self.settings.proxy_auth_key}"
            if base_url:
                logger.info(f"OpenRouter configured to use proxy at: {base_url}")
            else:
                logger.warning("Proxy mode is enabled but no proxy URL is configured. AI features will not work.")
        else:
            base_url = self.settings.base_url
            if is_placeholder_key(self.settings.api_key):
                logger.warning("OpenRouter API key is not configured properly. AI features will not work.")
                logger.warning("Please set OPENROUTER__API_KEY to a valid key")
            else:
                headers["Authorization"] = f"Bearer {self.settings.api_key}"
                logger.info(
                    f"OpenRouter configured for direct API access at {base_url} "
                    f"(key {mask_secret(self.settings.api_key)})"
                )

        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=self.timeout,
            transport=transport,
        )
        self._pacer = RequestPacer(
            max_concurrent=self.settings.max_concurrent_requests,
            min_delay_ms=self.settings.min_request_delay_ms,
            sleep=sleep,
        )
        self._retry = RetryPolicy(self.settings.max_retries, sleep=sleep)

    @property
    def mode(self) -> str:
        return self.settings.mode

    @property
    def completions_endpoint(self) -> str:
        # The proxy accepts POST on its root path
        return "" if self.settings.use_proxy else "chat/completions"

    @property
    def is_configured(self) -> bool:
        if self.settings.use_proxy:
            return self.settings.proxy_url is not None
        return not is_placeholder_key(self.settings.api_key)

    @property
    def consecutive_errors(self) -> int:
        """Retryable failures since the last successful attempt."""
        return self._retry.consecutive_errors

    def describe(self) -> Dict[str, Any]:
        """Configuration summary for health checks. No network I/O."""
        return {
            "mode": self.mode,
            "configured": self.is_configured,
            "endpoint": str(self._client.base_url) if self.is_configured else None,
            "consecutive_errors": self.consecutive_errors,
        }

    def _ensure_configured(self) -> None:
        """Checked per call so configuration can be fixed without a restart."""
        if self.settings.use_proxy:
            if self.settings.proxy_url is None:
                raise GatewayAuthError(
                    "Proxy URL not configured. Please set OPENROUTER__PROXY_URL."
                )
        elif is_placeholder_key(self.settings.api_key):
            raise GatewayAuthError(
                "OpenRouter API key is not configured. Please set OPENROUTER__API_KEY. "
                "Get your free API key at: https://openrouter.ai/keys"
            )

    def _http_error(self, response: httpx.Response) -> GatewayError:
        body = response.text
        logger.error(
            f"OpenRouter API error: Status={response.status_code}, Content={truncate_for_log(body)}"
        )
        return classify_http_error(response.status_code, body, response.headers)

    async def send_completion(self, request: CompletionRequest) -> CompletionResponse:
        """
        Send a chat completion and return the complete response.

        Args:
            request: Completion request; validated before any network I/O

        Returns:
            Parsed completion response

        Raises:
            GatewayError: or one of its subclasses, per failure kind
        """
        self._ensure_configured()

        try:
            validate_request(request)
            await self._pacer.acquire()
            return await self._retry.run(lambda: self._post_completion(request))
        except asyncio.CancelledError:
            logger.info("Request cancelled by caller")
            raise
        except GatewayError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in send_completion: {e}")
            raise GatewayError("An unexpected error occurred") from e

    async def _post_completion(self, request: CompletionRequest) -> CompletionResponse:
        """One attempt. Raises classified errors so the retry policy can filter them."""
        logger.info(f"Sending chat completion request to model {request.model} (via {self.mode})")

        response = await self._client.post(self.completions_endpoint, json=request.to_wire())
        if not response.is_success:
            raise self._http_error(response)

        content_type = response.headers.get("content-type")
        logger.debug(f"Response Content-Type: {content_type}")

        if content_type is not None and "application/json" not in content_type:
            raw = response.text
            logger.error(f"Received non-JSON response: {truncate_for_log(raw)}")
            raise GatewayResponseValidationError(
                f"Received non-JSON response (Content-Type: {content_type}). "
                "This usually indicates an authentication or configuration error.",
                actual_response=raw,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise GatewayResponseValidationError(
                "Response body is not valid JSON",
                actual_response=response.text,
                status_code=response.status_code,
            ) from e

        if not payload:
            raise GatewayResponseValidationError(
                "Received null response from API",
                actual_response=response.text,
                status_code=response.status_code,
            )

        try:
            result = CompletionResponse.model_validate(payload)
        except ValidationError as e:
            raise GatewayResponseValidationError(
                "Response does not match the chat completion format",
                actual_response=response.text,
                status_code=response.status_code,
            ) from e

        total_tokens = result.usage.total_tokens if result.usage else 0
        logger.info(f"Successfully received response: Tokens={total_tokens}")
        return result

    async def send_structured_completion(self, request: CompletionRequest, model_type: Type[T]) -> T:
        """
        Send a completion constrained by `request.response_format` and parse
        the first choice's content as `model_type`.
        """
        if request.response_format is None:
            raise GatewayValidationError("ResponseFormat is required for structured completions")

        response = await self.send_completion(request)
        content = response.get_content()

        if not content.strip():
            raise GatewayResponseValidationError("Received empty response content")

        try:
            result = TypeAdapter(model_type).validate_json(content)
        except ValidationError as e:
            logger.error(f"Failed to deserialize structured response: {e}")
            raise GatewayResponseValidationError(
                "Response does not match expected JSON schema",
                expected_schema=schema_to_json(request.response_format.json_schema.schema_),
                actual_response=content,
            ) from e

        if result is None:
            raise GatewayResponseValidationError(
                "Failed to deserialize response to requested type",
                actual_response=content,
            )
        return result

    async def stream_completion(self, request: CompletionRequest) -> AsyncIterator[CompletionChunk]:
        """
        Stream a completion chunk by chunk.

        Not retried: an interrupted stream can only be recovered by issuing
        the whole request again, which is the caller's call. Malformed frames
        are logged and skipped. Connection failures and timeouts raise a plain
        GatewayError. Closing the generator or cancelling the
        consuming task aborts the HTTP exchange.
        """
        self._ensure_configured()
        validate_request(request)

        streaming_request = request.model_copy(update={"stream": True})
        await self._pacer.acquire()

        logger.info(f"Streaming chat completion from model {request.model} (via {self.mode})")

        try:
            async with self._client.stream(
                "POST",
                self.completions_endpoint,
                json=streaming_request.to_wire(),
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise self._http_error(response)

                async for line in response.aiter_lines():
                    parsed = parse_stream_line(line)
                    if parsed is DONE:
                        break
                    if parsed is not None:
                        yield parsed
        except asyncio.CancelledError:
            logger.info("Stream cancelled by caller")
            raise
        except httpx.TransportError as e:
            logger.error(f"Streaming request failed: {e}")
            raise GatewayError("Streaming request failed") from e

    async def get_available_models(self) -> List[ModelInfo]:
        """List models from the gateway catalogue. Missing `data` gives an empty list."""
        try:
            response = await self._client.get("models")
            if not response.is_success:
                raise self._http_error(response)

            result = ModelsResponse.model_validate(response.json() or {})
            return result.data or []
        except GatewayError:
            raise
        except Exception as e:
            logger.error(f"Error fetching available models: {e}")
            raise GatewayError("Failed to fetch available models") from e

    async def validate_api_key(self, api_key: str) -> bool:
        """
        Check a key with a 1-token completion on a separate short-timeout client.

        Any failure means False; this is a convenience check, not a diagnostic.
        """
        if not api_key or not api_key.strip():
            return False

        probe = CompletionRequest(
            model=self.settings.validation_model,
            messages=[Message.user("test")],
            max_tokens=1,
        )

        try:
            async with httpx.AsyncClient(
                base_url=self.settings.base_url,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=float(self.settings.validation_timeout_seconds),
                transport=self._transport,
            ) as probe_client:
                response = await probe_client.post("chat/completions", json=probe.to_wire())
            return response.is_success
        except Exception as e:
            logger.debug(f"API key probe failed: {e}")
            return False

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenRouterClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


# Singleton instance
_openrouter_client: Optional[OpenRouterClient] = None


def get_openrouter_client() -> OpenRouterClient:
    """Get or create OpenRouter client singleton."""
    global _openrouter_client
    if _openrouter_client is None:
        _openrouter_client = OpenRouterClient()
    return _openrouter_client


async def close_openrouter_client() -> None:
    """Close and drop the singleton, if one was created."""
    global _openrouter_client
    if _openrouter_client is not None:
        await _openrouter_client.aclose()
        _openrouter_client = None
