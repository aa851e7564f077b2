"""
CircuitBreaker - Isolates the server from a failing upstream.

States:
- CLOSED: Normal operation, requests pass through
- OPEN: Upstream is failing, requests are rejected locally
- HALF_OPEN: Probing whether the upstream has recovered

Transitions:
- CLOSED → OPEN: When failure_threshold transient failures accumulate
- OPEN → HALF_OPEN: On the first check() after retry_timeout expires
- HALF_OPEN → CLOSED: On success
- HALF_OPEN → OPEN: On failure (fresh retry window)

Only transient failures may be reported through on_failure(). Auth and
rate-limit errors say nothing about upstream health and must be skipped.
"""

import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Callable

from loguru import logger

from xquery.services.errors import GROK_SERVICE_ID, CircuitOpenError


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    failure_threshold: int = 5  # Transient failures before opening
    retry_timeout: timedelta = timedelta(seconds=30)  # Time before half-open


class CircuitBreaker:
    """
    Three-state circuit breaker shared by every call to one upstream.

    Usage:
        cb = CircuitBreaker("grok")

        cb.check()  # raises CircuitOpenError while open
        try:
            result = await make_request()
        except Exception as e:
            error = classify_error(e)
            if error.is_transient:
                cb.on_failure()
            raise error
        cb.on_success()
    """

    def __init__(
        self,
        service_id: str = GROK_SERVICE_ID,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.service_id = service_id
        self.config = config or CircuitBreakerConfig()
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._next_attempt_at = 0.0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def check(self) -> None:
        """
        Gate a request.

        Raises CircuitOpenError while the retry window is running. Once the
        window has elapsed the circuit moves to HALF_OPEN and the call is let
        through as the probe.
        """
        with self._lock:
            if self._state != CircuitState.OPEN:
                return

            now = self._clock()
            if now >= self._next_attempt_at:
                self._state = CircuitState.HALF_OPEN
                logger.info(
                    f"Circuit breaker '{self.service_id}' transitioned to HALF_OPEN"
                )
                return

            remaining = self._next_attempt_at - now

        raise CircuitOpenError(self.service_id, remaining)

    def on_success(self) -> None:
        """Record a successful request."""
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info(f"Circuit breaker '{self.service_id}' CLOSED (recovered)")

    def on_failure(self) -> None:
        """Record a transient failure."""
        with self._lock:
            self._failure_count += 1
            if (
                self._state == CircuitState.HALF_OPEN
                or self._failure_count >= self.config.failure_threshold
            ):
                self._open()

    def _open(self) -> None:
        """Transition to OPEN state. Caller holds the lock."""
        failures = self._failure_count
        self._state = CircuitState.OPEN
        self._next_attempt_at = (
            self._clock() + self.config.retry_timeout.total_seconds()
        )
        self._failure_count = 0
        logger.warning(
            f"Circuit breaker '{self.service_id}' OPENED after {failures} failures, "
            f"next probe in {self.config.retry_timeout.total_seconds():.0f}s"
        )

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._next_attempt_at = 0.0
        logger.info(f"Circuit breaker '{self.service_id}' manually reset")

    def time_until_retry(self) -> float | None:
        """Get seconds until circuit transitions to half-open."""
        if self._state != CircuitState.OPEN:
            return None
        return max(0.0, self._next_attempt_at - self._clock())

    def get_status(self) -> dict[str, Any]:
        """Get current status as dictionary."""
        return {
            "service_id": self.service_id,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.config.failure_threshold,
            "time_until_retry": self.time_until_retry(),
        }
