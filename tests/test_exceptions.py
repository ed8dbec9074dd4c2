"""Tests for HTTP status classification and Retry-After parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from nomad_gateway.core.exceptions import (
    GatewayAuthError,
    GatewayError,
    GatewayInsufficientCreditsError,
    GatewayModelNotFoundError,
    GatewayRateLimitError,
    GatewayServerError,
    GatewayValidationError,
    classify_http_error,
    parse_retry_after,
)


@pytest.mark.parametrize("status,error_type", [
    (400, GatewayValidationError),
    (401, GatewayAuthError),
    (402, GatewayInsufficientCreditsError),
    (404, GatewayModelNotFoundError),
    (429, GatewayRateLimitError),
    (500, GatewayServerError),
    (502, GatewayServerError),
    (503, GatewayServerError),
])
def test_status_mapping(status, error_type):
    error = classify_http_error(status, "body")
    assert type(error) is error_type
    assert error.status_code == status
    assert error.response_text == "body"


@pytest.mark.parametrize("status", [403, 408, 418, 504])
def test_other_statuses_are_generic(status):
    error = classify_http_error(status, "oops")
    assert type(error) is GatewayError
    assert str(error) == f"Unexpected error from OpenRouter: {status} - oops"


def test_only_server_errors_are_retryable():
    assert classify_http_error(503, "").retryable is True
    assert classify_http_error(429, "").retryable is False
    assert classify_http_error(418, "").retryable is False


def test_bad_request_message_contains_body():
    error = classify_http_error(400, '{"error": "max_tokens too large"}')
    assert "max_tokens too large" in str(error)


def test_rate_limit_header_is_case_insensitive():
    error = classify_http_error(429, "", {"Retry-After": "12"})
    assert error.retry_after == timedelta(seconds=12)


def test_rate_limit_without_header():
    error = classify_http_error(429, "")
    assert error.retry_after is None


class TestParseRetryAfter:
    def test_delta_seconds(self):
        assert parse_retry_after("30") == timedelta(seconds=30)

    def test_http_date(self):
        now = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert parse_retry_after("Sun, 01 Jun 2025 12:01:30 GMT", now=now) == timedelta(seconds=90)

    def test_past_date_is_zero(self):
        now = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert parse_retry_after("Sun, 01 Jun 2025 11:00:00 GMT", now=now) == timedelta(0)

    @pytest.mark.parametrize("value", [None, "", "  ", "soon", "-5"])
    def test_unparseable(self, value):
        assert parse_retry_after(value) is None
