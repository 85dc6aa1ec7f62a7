"""
CircuitBreaker - Stops calling an endpoint that keeps failing.

States:
- CLOSED: Normal operation, requests pass through
- OPEN: Endpoint is failing, requests are rejected without a network call
- HALF_OPEN: One trial request tests whether the endpoint has recovered

Transitions:
- CLOSED → OPEN: When failure_threshold consecutive transient failures are reached
- OPEN → HALF_OPEN: On the first request after reset_timeout has elapsed
- HALF_OPEN → CLOSED: When the trial request reaches the endpoint
- HALF_OPEN → OPEN: When the trial request fails transiently

The breaker counts request outcomes, not individual retry attempts.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from weather_client.services.clock import Clock, MonotonicClock


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"  # Normal operation
    OPEN = "OPEN"  # Blocking requests
    HALF_OPEN = "HALF_OPEN"  # Testing recovery


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    failure_threshold: int = 10  # Consecutive failed requests before opening
    reset_timeout: float = 60.0  # Seconds in OPEN before a trial is allowed


@dataclass(frozen=True)
class Permit:
    """
    Admission ticket returned by CircuitBreaker.try_acquire.

    ``generation`` changes every time the circuit opens or is reset, so
    a permit issued before that point is recognised as stale.
    """

    generation: int
    is_trial: bool = False


class CircuitBreaker:
    """
    Circuit breaker for a single endpoint.

    Usage:
        cb = CircuitBreaker("weather")

        permit = cb.try_acquire()
        if permit is None:
            return FetchResult.fail(CircuitOpenError(...))

        result = await retry.run(...)
        if result.is_transient:
            cb.record_failure(permit)
        elif result.is_success:
            cb.record_success(permit)
        else:
            cb.record_permanent(permit)

    Only the half-open trial's permit can move the breaker out of
    HALF_OPEN. Outcomes of stale permits only adjust the failure count.
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        clock: Clock | None = None,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        if self.config.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self._clock = clock or MonotonicClock()

        self._state = CircuitState.CLOSED
        self._generation = 0
        self._consecutive_failures = 0
        self._opened_at: float | None = None
        self._last_failure_time: float | None = None
        self._trial_in_flight = False
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        """Current state. OPEN stays OPEN until a request arrives after cooldown."""
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def opened_at(self) -> float | None:
        return self._opened_at

    def try_acquire(self) -> Permit | None:
        """
        Ask permission to send a request.

        A permit must be handed back through exactly one of
        record_success, record_failure, record_permanent or release.
        """
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return Permit(self._generation)

            if self._state == CircuitState.OPEN:
                if not self._cooldown_elapsed():
                    return None
                self._state = CircuitState.HALF_OPEN
                self._trial_in_flight = False
                logger.info(f"Circuit breaker '{self.name}' transitioned to HALF_OPEN")

            # HALF_OPEN: a single trial at a time
            if self._trial_in_flight:
                return None
            self._trial_in_flight = True
            return Permit(self._generation, is_trial=True)

    def record_success(self, permit: Permit) -> None:
        """Record a request that got a successful response."""
        with self._lock:
            if self._is_active_trial(permit):
                self._close()
            else:
                self._consecutive_failures = 0

    def record_failure(self, permit: Permit) -> None:
        """Record a request that failed transiently after all retries."""
        with self._lock:
            self._consecutive_failures += 1
            self._last_failure_time = self._clock.now()

            if self._is_active_trial(permit):
                self._open()
            elif (
                self._state == CircuitState.CLOSED
                and permit.generation == self._generation
                and self._consecutive_failures >= self.config.failure_threshold
            ):
                self._open()

    def record_permanent(self, permit: Permit) -> None:
        """
        Record a request that reached the endpoint but failed permanently.

        Not evidence of an outage: the failure count is left alone. A
        half-open trial that gets this far proves the endpoint reachable.
        """
        with self._lock:
            if self._is_active_trial(permit):
                self._close()

    def release(self, permit: Permit) -> None:
        """Give back a permit whose request ended without an outcome."""
        with self._lock:
            if self._is_active_trial(permit):
                self._trial_in_flight = False

    def _is_active_trial(self, permit: Permit) -> bool:
        return (
            permit.is_trial
            and permit.generation == self._generation
            and self._state == CircuitState.HALF_OPEN
        )

    def _cooldown_elapsed(self) -> bool:
        return (
            self._opened_at is not None
            and self._clock.now() - self._opened_at >= self.config.reset_timeout
        )

    def _open(self) -> None:
        """Transition to OPEN state. Caller holds the lock."""
        self._state = CircuitState.OPEN
        self._generation += 1
        self._opened_at = self._clock.now()
        self._trial_in_flight = False
        logger.warning(
            f"Circuit breaker '{self.name}' OPENED after "
            f"{self._consecutive_failures} failures"
        )

    def _close(self) -> None:
        """Transition to CLOSED state. Caller holds the lock."""
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = None
        self._trial_in_flight = False
        logger.info(f"Circuit breaker '{self.name}' CLOSED (recovered)")

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._generation += 1
            self._consecutive_failures = 0
            self._opened_at = None
            self._last_failure_time = None
            self._trial_in_flight = False
        logger.info(f"Circuit breaker '{self.name}' manually reset")

    def get_time_until_reset(self) -> float | None:
        """Get seconds until circuit admits a trial request."""
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return None

        remaining = self._opened_at + self.config.reset_timeout - self._clock.now()
        return max(0.0, remaining)

    def get_status(self) -> dict[str, Any]:
        """Get current status as dictionary."""
        return {
            "name": self.name,
            "state": self._state.value,
            "consecutive_failures": self._consecutive_failures,
            "failure_threshold": self.config.failure_threshold,
            "last_failure": self._last_failure_time,
            "opened_at": self._opened_at,
            "time_until_reset": self.get_time_until_reset(),
            "trial_in_flight": self._trial_in_flight,
            "generation": self._generation,
        }
