"""
Service layer exceptions.

Every failure of the Grok upstream surfaces as exactly one of the classes
below. The ``kind`` tag drives logging in the tool layer and decides whether
the circuit breaker is informed (``is_transient``).
"""

from enum import Enum
from typing import Any

import openai

GROK_SERVICE_ID = "grok"


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    CIRCUIT_OPEN = "circuit_open"
    TIMEOUT = "timeout"
    RESPONSE = "response"
    SCHEMA = "schema"
    GENERIC = "generic"


class ServiceError(Exception):
    """Base exception for service layer errors (unclassified upstream failure)."""

    kind: ErrorKind = ErrorKind.GENERIC
    is_transient: bool = True

    def __init__(self, message: str, service_id: str | None = GROK_SERVICE_ID):
        self.service_id = service_id
        self.message = message
        super().__init__(message)


class AuthenticationError(ServiceError):
    """Credential is invalid or revoked. Never retried."""

    kind = ErrorKind.AUTH
    is_transient = False

    def __init__(self, service_id: str = GROK_SERVICE_ID):
        super().__init__(
            "Grok authentication failed. Verify that XAI_API_KEY is set and valid.",
            service_id=service_id,
        )


class RateLimitError(ServiceError):
    """Rate limit exceeded after the transport exhausted its retries."""

    kind = ErrorKind.RATE_LIMIT
    is_transient = False

    def __init__(
        self, service_id: str = GROK_SERVICE_ID, retry_after: float | None = None
    ):
        self.retry_after = retry_after
        msg = "Grok rate limit exceeded."
        if retry_after:
            msg += f" Retry after {retry_after:g}s."
        else:
            msg += " Try again in a few seconds."
        super().__init__(msg, service_id=service_id)


class CircuitOpenError(ServiceError):
    """Circuit breaker is open, request blocked."""

    kind = ErrorKind.CIRCUIT_OPEN
    is_transient = False

    def __init__(self, service_id: str, reset_after_seconds: float):
        self.reset_after_seconds = reset_after_seconds
        super().__init__(
            f"Circuit breaker open for service '{service_id}', "
            f"retry after {reset_after_seconds:.1f}s",
            service_id=service_id,
        )


class RequestTimeoutError(ServiceError):
    """Request timed out."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, service_id: str, timeout: float | None = None):
        self.timeout = timeout
        msg = f"Request to service '{service_id}' timed out"
        if timeout:
            msg += f" after {timeout}s"
        super().__init__(msg, service_id=service_id)


class ResponseFormatError(ServiceError):
    """Upstream answered, but the payload is empty or not valid JSON."""

    kind = ErrorKind.RESPONSE


class SchemaValidationError(ResponseFormatError):
    """Upstream JSON does not match the requested schema."""

    kind = ErrorKind.SCHEMA

    def __init__(
        self,
        schema_name: str,
        errors: list[dict[str, Any]],
        service_id: str = GROK_SERVICE_ID,
    ):
        self.schema_name = schema_name
        self.errors = errors
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ())) or '<root>'}: {err.get('msg')}"
            for err in errors[:5]
        )
        super().__init__(
            f"Grok response does not match schema '{schema_name}': {details}",
            service_id=service_id,
        )


def _parse_retry_after(response: Any) -> float | None:
    """Read a numeric ``retry-after`` header (seconds) from an httpx response."""
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds > 0 else None


def classify_error(
    exc: BaseException,
    service_id: str = GROK_SERVICE_ID,
    timeout: float | None = None,
) -> ServiceError:
    """
    Map a transport exception onto the taxonomy.

    Already-classified errors are returned unchanged so classification
    happens exactly once.
    """
    if isinstance(exc, ServiceError):
        return exc

    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return AuthenticationError(service_id)

    if isinstance(exc, openai.RateLimitError):
        return RateLimitError(service_id, _parse_retry_after(exc.response))

    # APITimeoutError subclasses APIConnectionError, check it first
    if isinstance(exc, openai.APITimeoutError):
        return RequestTimeoutError(service_id, timeout)

    if isinstance(exc, openai.APIStatusError):
        return ServiceError(
            f"HTTP {exc.status_code}: {str(exc.message)[:200]}", service_id=service_id
        )

    if isinstance(exc, openai.APIConnectionError):
        return ServiceError(f"Connection error: {exc}", service_id=service_id)

    return ServiceError(str(exc) or type(exc).__name__, service_id=service_id)
