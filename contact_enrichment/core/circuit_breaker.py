"""Circuit breaker protecting calls to the language model."""

import enum
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised instead of calling a provider whose circuit is open."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        super().__init__(f"Circuit breaker is open for {service_name}")


class CircuitBreaker:
    """Stops calling a provider after repeated failures.

    The circuit opens after ``failure_threshold`` consecutive failures and
    lets one trial call through once ``recovery_timeout`` seconds have
    passed. A failed trial re-opens it for another full timeout.
    """

    def __init__(
        self,
        service_name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.service_name = service_name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._failures = 0
        self._opened_at: float | None = None
        self._lock = threading.Lock()

    def _current_state(self) -> CircuitState:
        if self._opened_at is None:
            return CircuitState.CLOSED
        if self._clock() - self._opened_at >= self.recovery_timeout:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._current_state()

    def record_success(self) -> None:
        with self._lock:
            if self._opened_at is not None:
                logger.warning("Circuit breaker CLOSED for %s (recovered)", self.service_name)
            self._failures = 0
            self._opened_at = None

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            state = self._current_state()
            if state is CircuitState.HALF_OPEN or self._failures >= self.failure_threshold:
                if state is not CircuitState.OPEN:
                    logger.warning(
                        "Circuit breaker OPEN for %s after %d consecutive failures",
                        self.service_name,
                        self._failures,
                    )
                self._opened_at = self._clock()

    async def call(self, func: Callable[..., Awaitable[T]], **kwargs: Any) -> T:
        """Await ``func(**kwargs)`` unless the circuit is open.

        Raises:
            CircuitBreakerOpen: If the circuit is open; ``func`` is not called.
        """
        if self.state is CircuitState.OPEN:
            raise CircuitBreakerOpen(self.service_name)
        try:
            result = await func(**kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result
