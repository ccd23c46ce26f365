"""
Fail-fast guard for the places provider.

After ``failure_threshold`` consecutive provider failures the breaker opens
and every call is refused until ``recovery_timeout`` has passed. The next
calls are then let through as probes; ``probe_successes`` good answers close
it again, any failure reopens it. Nothing is retried here.

The breaker is shared by all requests in the process and only touched from
the event loop thread, so it keeps no lock.

Usage:
    breaker = get_circuit_breaker("google_places")

    breaker.before_call()        # raises CircuitBreakerOpenError while open
    try:
        response = await send()
    except httpx.HTTPError:
        breaker.record_failure()
        raise
    breaker.record_success()
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import structlog

from biteboard.core.exceptions import CircuitBreakerOpenError

logger = structlog.get_logger(__name__)


class CircuitState(str, Enum):
    """Breaker position."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Consecutive-failure breaker for one upstream service."""

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    probe_successes: int = 2

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failures: int = field(default=0, init=False)
    _probe_count: int = field(default=0, init=False)
    _opened_at: Optional[float] = field(default=None, init=False)

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self.time_until_recovery() == 0.0:
            self._state = CircuitState.HALF_OPEN
            self._probe_count = 0
            logger.info("circuit_breaker_half_open", name=self.name)
        return self._state

    @property
    def is_open(self) -> bool:
        return self.state is CircuitState.OPEN

    def time_until_recovery(self) -> float:
        """Seconds left before probes are allowed; 0 when not open."""
        if self._state is not CircuitState.OPEN or self._opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (time.monotonic() - self._opened_at))

    def before_call(self) -> None:
        """Refuse the call while the breaker is open.

        Raises:
            CircuitBreakerOpenError: With the remaining recovery time.
        """
        if self.is_open:
            raise CircuitBreakerOpenError(self.name, self.time_until_recovery())

    def record_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            self._probe_count += 1
            if self._probe_count < self.probe_successes:
                return
            self._state = CircuitState.CLOSED
            logger.info("circuit_breaker_closed", name=self.name)
        self._failures = 0

    def record_failure(self) -> None:
        self._failures += 1
        if self._state is CircuitState.HALF_OPEN:
            self._trip("circuit_breaker_reopened")
        elif self._state is CircuitState.CLOSED and self._failures >= self.failure_threshold:
            self._trip("circuit_breaker_opened")

    def _trip(self, event: str) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = time.monotonic()
        logger.warning(
            event,
            name=self.name,
            failures=self._failures,
            recovery_timeout=self.recovery_timeout,
        )

    def reset(self) -> None:
        """Close the breaker and forget past failures."""
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._probe_count = 0
        self._opened_at = None

    def snapshot(self) -> dict[str, Any]:
        """State summary for health reporting."""
        return {
            "state": self.state.value,
            "consecutive_failures": self._failures,
            "seconds_until_recovery": round(self.time_until_recovery(), 1),
        }


# =============================================================================
# Registry
# =============================================================================


_breakers: dict[str, CircuitBreaker] = {}


def get_circuit_breaker(
    name: str,
    failure_threshold: int = 5,
    recovery_timeout: float = 60.0,
) -> CircuitBreaker:
    """Return the process-wide breaker for name, creating it on first use."""
    breaker = _breakers.get(name)
    if breaker is None:
        breaker = _breakers[name] = CircuitBreaker(
            name=name,
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
        )
    return breaker


def get_all_circuit_breakers() -> dict[str, CircuitBreaker]:
    return dict(_breakers)


def reset_all_circuit_breakers() -> None:
    for breaker in _breakers.values():
        breaker.reset()
