"""
MotoNomad AI Gateway - Gateway Error Taxonomy

Every failure the OpenRouter client surfaces is a GatewayError subclass,
so callers can pick per-kind behaviour (ask for a new key on auth errors,
show the wait hint on rate limits, and so on).
"""

from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional


class GatewayError(Exception):
    """Base gateway error; raised directly for unclassified failures."""

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_text = response_text


class GatewayValidationError(GatewayError):
    """Request is malformed. Raised before any network I/O, or on HTTP 400."""


class GatewayAuthError(GatewayError):
    """Credential is missing, a placeholder, or rejected by the gateway."""


class GatewayRateLimitError(GatewayError):
    """Gateway returned 429. Not retried here; `retry_after` is the server's hint."""

    def __init__(self, message: str, retry_after: Optional[timedelta] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class GatewayModelNotFoundError(GatewayError):
    """Requested model does not exist."""


class GatewayInsufficientCreditsError(GatewayError):
    """Account has run out of credits."""


class GatewayServerError(GatewayError):
    """Gateway-side failure (500/502/503)."""

    retryable = True


class GatewayResponseValidationError(GatewayError):
    """Transport succeeded but the payload is unusable."""

    def __init__(
        self,
        message: str,
        expected_schema: Optional[str] = None,
        actual_response: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.expected_schema = expected_schema
        self.actual_response = actual_response


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[timedelta]:
    """
    Parse a Retry-After header.

    Accepts delta-seconds ("30") or an HTTP-date. Dates in the past give a
    zero wait. Anything unparseable gives None.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    if value.isdigit():
        return timedelta(seconds=int(value))

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    return max(when - now, timedelta(0))


def classify_http_error(
    status_code: int,
    body: str,
    headers: Optional[Mapping[str, str]] = None,
) -> GatewayError:
    """
    Map a non-success HTTP status to the matching gateway error.

    Returns the exception instead of raising it so the caller decides
    where it propagates (inside the retried operation for completions).
    """
    headers = headers or {}
    retry_after = next(
        (value for key, value in headers.items() if key.lower() == "retry-after"),
        None,
    )

    if status_code == 401:
        return GatewayAuthError(
            "Invalid API key. Please check your OpenRouter configuration.",
            status_code=status_code,
            response_text=body,
        )
    if status_code == 402:
        return GatewayInsufficientCreditsError(
            "Insufficient credits in OpenRouter account. Please add credits to continue.",
            status_code=status_code,
            response_text=body,
        )
    if status_code == 404:
        return GatewayModelNotFoundError(
            "Model not found. Please check the model name and try again.",
            status_code=status_code,
            response_text=body,
        )
    if status_code == 429:
        return GatewayRateLimitError(
            "Rate limit exceeded. Please wait before making more requests.",
            retry_after=parse_retry_after(retry_after),
            status_code=status_code,
            response_text=body,
        )
    if status_code == 400:
        return GatewayValidationError(
            f"Invalid request: {body}",
            status_code=status_code,
            response_text=body,
        )
    if status_code in (500, 502, 503):
        return GatewayServerError(
            "OpenRouter server error. Please try again later.",
            status_code=status_code,
            response_text=body,
        )
    return GatewayError(
        f"Unexpected error from OpenRouter: {status_code} - {body}",
        status_code=status_code,
        response_text=body,
    )
