"""
Service layer infrastructure - resilience around the Grok upstream.

Provides:
- Error taxonomy: one exception class per failure kind
- CircuitBreaker: Fails fast while Grok is down
- TtlCache / PersistentTtlCache: Dedupe repeated reads of slow-changing data
- GrokClient: Structured query client combining all of the above
"""

from xquery.services.errors import (
    AuthenticationError,
    CircuitOpenError,
    ErrorKind,
    RateLimitError,
    RequestTimeoutError,
    ResponseFormatError,
    SchemaValidationError,
    ServiceError,
    classify_error,
)
from xquery.services.cache import PersistentTtlCache, TtlCache, make_key
from xquery.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from xquery.services.client import GrokClient, XSearchParams, to_json_schema

__all__ = [
    # Errors
    "AuthenticationError",
    "CircuitOpenError",
    "ErrorKind",
    "RateLimitError",
    "RequestTimeoutError",
    "ResponseFormatError",
    "SchemaValidationError",
    "ServiceError",
    "classify_error",
    # Cache
    "PersistentTtlCache",
    "TtlCache",
    "make_key",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    # Client
    "GrokClient",
    "XSearchParams",
    "to_json_schema",
]
