import openai
import pytest

from tests.conftest import connection_error, status_error, timeout_error
from xquery.services.errors import (
    AuthenticationError,
    CircuitOpenError,
    ErrorKind,
    RateLimitError,
    RequestTimeoutError,
    SchemaValidationError,
    ServiceError,
    classify_error,
)


@pytest.mark.parametrize(
    "exc, expected_cls, transient",
    [
        (status_error(openai.AuthenticationError, 401), AuthenticationError, False),
        (status_error(openai.PermissionDeniedError, 403), AuthenticationError, False),
        (status_error(openai.RateLimitError, 429), RateLimitError, False),
        (timeout_error(), RequestTimeoutError, True),
        (status_error(openai.InternalServerError, 500), ServiceError, True),
        (connection_error(), ServiceError, True),
        (RuntimeError("boom"), ServiceError, True),
    ],
)
def test_classification(exc, expected_cls, transient):
    error = classify_error(exc)
    assert type(error) is expected_cls
    assert error.is_transient is transient


def test_classification_is_idempotent():
    original = CircuitOpenError("grok", 3.0)
    assert classify_error(original) is original


def test_rate_limit_retry_after_header():
    exc = status_error(openai.RateLimitError, 429, headers={"retry-after": "7"})
    error = classify_error(exc)
    assert isinstance(error, RateLimitError)
    assert error.retry_after == 7.0
    assert "Retry after 7s" in str(error)


def test_rate_limit_without_or_bad_header():
    for headers in (None, {"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"}):
        error = classify_error(status_error(openai.RateLimitError, 429, headers=headers))
        assert error.retry_after is None
        assert "Try again in a few seconds" in str(error)


def test_generic_error_preserves_message():
    error = classify_error(status_error(openai.InternalServerError, 503))
    assert error.kind is ErrorKind.GENERIC
    assert "503" in str(error)
    assert classify_error(ValueError("socket closed")).message == "socket closed"


def test_kinds_are_distinct():
    kinds = {
        AuthenticationError().kind,
        RateLimitError().kind,
        CircuitOpenError("grok", 1.0).kind,
        RequestTimeoutError("grok", 60).kind,
        SchemaValidationError("tweet", []).kind,
        ServiceError("x").kind,
    }
    assert len(kinds) == 6


def test_circuit_open_message():
    error = CircuitOpenError("grok", 12.34)
    assert error.reset_after_seconds == 12.34
    assert "retry after 12.3s" in str(error)
