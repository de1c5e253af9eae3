"""
Async circuit breaker for provider calls.

A provider that keeps failing is given a rest: after ``failure_threshold``
consecutive failures the breaker opens and every call fails fast with
CircuitOpen. Once ``recovery_timeout`` seconds have passed the circuit is
half-open and calls go through again: the first success closes it and the
first failure re-opens it for another full timeout.
"""

from __future__ import annotations

import functools
import logging
import time
from enum import Enum

from core.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitOpen(ExternalServiceException):
    """A call was refused without reaching the provider."""

    def __init__(self, service: str, resets_in: float) -> None:
        super().__init__(
            f"{service} is temporarily unavailable (retry in {resets_in:.0f}s)",
            {"service": service, "resets_in": resets_in},
        )
        self.service = service
        self.resets_in = resets_in


class CircuitBreaker:
    def __init__(
        self,
        service: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
    ) -> None:
        self.service = service
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.reset()

    def reset(self) -> None:
        self.failures = 0
        self._opened_at: float | None = None

    def _elapsed(self) -> float:
        if self._opened_at is None:
            return 0.0
        return time.monotonic() - self._opened_at

    @property
    def state(self) -> CircuitState:
        if self._opened_at is None:
            return CircuitState.CLOSED
        if self._elapsed() >= self.recovery_timeout:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def check(self) -> None:
        """Raise CircuitOpen unless a call may go through."""
        if self.state is CircuitState.OPEN:
            raise CircuitOpen(self.service, max(0.0, self.recovery_timeout - self._elapsed()))

    def record_success(self) -> None:
        if self._opened_at is not None:
            logger.info("%s recovered; circuit closed", self.service)
        self.reset()

    def record_failure(self) -> None:
        self.failures += 1
        if self.state is CircuitState.HALF_OPEN:
            self._opened_at = time.monotonic()
            logger.warning("%s failed while half-open; circuit open again", self.service)
        elif self._opened_at is None and self.failures >= self.failure_threshold:
            self._opened_at = time.monotonic()
            logger.warning(
                "%s failed %d times in a row; circuit open for %.0fs",
                self.service,
                self.failures,
                self.recovery_timeout,
            )


nominatim_breaker = CircuitBreaker("Nominatim")
valhalla_breaker = CircuitBreaker("Valhalla")
google_breaker = CircuitBreaker("Google Maps")


def with_circuit_breaker(breaker: CircuitBreaker):
    """Guard an async provider call with ``breaker``."""

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            breaker.check()
            try:
                result = await fn(*args, **kwargs)
            except CircuitOpen:
                raise
            except Exception:
                breaker.record_failure()
                raise
            breaker.record_success()
            return result

        return wrapper

    return decorator
