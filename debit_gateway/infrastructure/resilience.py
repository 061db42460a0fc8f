"""Circuit breaker, retry and timeout wrapper for downstream service calls"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from debit_gateway.domain.exceptions import (
    ServiceUnavailableError,
    UpstreamServiceError,
    is_domain_outcome,
)
from debit_gateway.infrastructure.observability.metrics import (
    circuit_rejection_counter,
    downstream_failure_counter,
    downstream_latency_histogram,
    downstream_retry_counter,
    record_circuit_state,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


_STATE_VALUES = {
    CircuitState.CLOSED: 0,
    CircuitState.OPEN: 1,
    CircuitState.HALF_OPEN: 2,
}


class CircuitOpenError(Exception):
    """Call was not attempted because the circuit is open"""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Circuit breaker for {service} is open")


@dataclass(frozen=True)
class CircuitSnapshot:
    state: CircuitState
    consecutive_failures: int
    opened_at: Optional[float]


class CircuitBreaker:
    """
    Three-state circuit breaker for a single downstream service.

    CLOSED:    calls pass through; consecutive infrastructure failures are
               counted and reaching failure_threshold opens the circuit.
    OPEN:      calls are rejected until cooldown_seconds have elapsed since
               opened_at, then the circuit becomes HALF_OPEN.
    HALF_OPEN: exactly one trial call is admitted. Success closes the
               circuit, failure re-opens it with a fresh opened_at.

    All state lives behind one lock so concurrent requests never lose a
    failure count or interleave a transition.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        cooldown_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False
        record_circuit_state(name, _STATE_VALUES[self._state])

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._check_cooldown()
            return self._state

    def snapshot(self) -> CircuitSnapshot:
        with self._lock:
            self._check_cooldown()
            return CircuitSnapshot(self._state, self._consecutive_failures, self._opened_at)

    def try_acquire(self) -> Optional[CircuitState]:
        """Return the state the call was admitted under, or None if rejected"""
        with self._lock:
            self._check_cooldown()
            if self._state is CircuitState.CLOSED:
                return CircuitState.CLOSED
            if self._state is CircuitState.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                return CircuitState.HALF_OPEN
            return None

    def record_success(self, trial: bool = False) -> None:
        with self._lock:
            if trial:
                self._trial_in_flight = False
                if self._state is CircuitState.HALF_OPEN:
                    self._transition(CircuitState.CLOSED)
            elif self._state is CircuitState.CLOSED:
                self._consecutive_failures = 0

    def record_failure(self, trial: bool = False) -> None:
        with self._lock:
            if trial:
                self._trial_in_flight = False
                if self._state is CircuitState.HALF_OPEN:
                    self._open()
                return
            # Late results from calls admitted before the circuit opened are ignored
            if self._state is not CircuitState.CLOSED:
                return
            self._consecutive_failures += 1
            if self._consecutive_failures >= self.failure_threshold:
                self._open()

    def release(self) -> None:
        """Hand back a half-open trial slot without changing state"""
        with self._lock:
            self._trial_in_flight = False

    def reset(self) -> None:
        with self._lock:
            self._trial_in_flight = False
            self._transition(CircuitState.CLOSED)

    def _check_cooldown(self) -> None:
        if (
            self._state is CircuitState.OPEN
            and self._clock() - self._opened_at >= self.cooldown_seconds
        ):
            self._transition(CircuitState.HALF_OPEN)

    def _open(self) -> None:
        self._opened_at = self._clock()
        self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        if new_state is CircuitState.CLOSED:
            self._consecutive_failures = 0
            self._opened_at = None
        if old_state is not new_state:
            logger.warning(
                "Circuit state change",
                extra={
                    "downstream": self.name,
                    "from_state": old_state.value,
                    "to_state": new_state.value,
                    "consecutive_failures": self._consecutive_failures,
                },
            )
            record_circuit_state(self.name, _STATE_VALUES[new_state])


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with exponential backoff: base, 2*base, 4*base, ..."""

    max_attempts: int = 3
    backoff_base: float = 0.2

    def backoff(self, attempt: int) -> float:
        return self.backoff_base * (2 ** (attempt - 1))


def is_transient_failure(error: BaseException) -> bool:
    """Default retry predicate: timeouts, network errors and 5xx responses"""
    if isinstance(error, (asyncio.TimeoutError, httpx.TransportError)):
        return True
    return isinstance(error, UpstreamServiceError) and error.retryable


class ResilientCaller:
    """
    Runs one outbound call under timeout, retry, circuit breaker and fallback.

    Domain outcomes (not found, insufficient funds, ...) raised by the
    operation skip retries and breaker accounting and propagate unchanged.
    Every other exception is an infrastructure failure: retried while
    is_retryable allows and attempts remain, then counted once against the
    breaker and handed to the fallback.
    """

    def __init__(
        self,
        breaker: CircuitBreaker,
        retry: RetryPolicy | None = None,
        timeout_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.breaker = breaker
        self.retry = retry or RetryPolicy()
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep

    @property
    def name(self) -> str:
        return self.breaker.name

    def default_fallback(self, error: Exception):
        if is_domain_outcome(error):
            raise error
        raise ServiceUnavailableError(self.name) from error

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        is_retryable: Callable[[BaseException], bool] | None = None,
        fallback: Callable[[Exception], T] | None = None,
    ) -> T:
        is_retryable = is_retryable or is_transient_failure
        fallback = fallback or self.default_fallback

        admitted = self.breaker.try_acquire()
        if admitted is None:
            circuit_rejection_counter.labels(service=self.name).inc()
            logger.warning("Circuit open, using fallback", extra={"downstream": self.name})
            return fallback(CircuitOpenError(self.name))

        # A half-open trial is exactly one network call
        trial = admitted is CircuitState.HALF_OPEN
        max_attempts = 1 if trial else self.retry.max_attempts

        attempt = 0
        while True:
            attempt += 1
            try:
                with downstream_latency_histogram.labels(service=self.name).time():
                    result = await asyncio.wait_for(operation(), timeout=self.timeout_seconds)
            except Exception as error:
                if is_domain_outcome(error):
                    if trial:
                        self.breaker.release()
                    raise

                if attempt < max_attempts and is_retryable(error):
                    downstream_retry_counter.labels(service=self.name).inc()
                    backoff = self.retry.backoff(attempt)
                    logger.info(
                        "Retrying downstream call",
                        extra={
                            "downstream": self.name,
                            "attempt": attempt,
                            "backoff_seconds": backoff,
                            "error": repr(error),
                        },
                    )
                    await self._sleep(backoff)
                    continue

                downstream_failure_counter.labels(service=self.name).inc()
                logger.error(
                    "Downstream call failed",
                    extra={"downstream": self.name, "attempts": attempt, "error": repr(error)},
                )
                self.breaker.record_failure(trial=trial)
                return fallback(error)
            except BaseException:
                # Cancelled mid-call: no verdict on the downstream, free the trial slot
                if trial:
                    self.breaker.release()
                raise

            self.breaker.record_success(trial=trial)
            return result
