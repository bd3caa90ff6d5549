"""Shared backoff window for the research provider."""

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimitGate:
    """Holds a single "blocked until" timestamp.

    One gate is owned by one ``ResearchAdapter``; every request that shares
    the adapter observes the same window. Safe to use from several threads
    and tasks at once.

    Args:
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._blocked_until: float = 0.0
        self._lock = threading.Lock()

    def is_blocked(self) -> bool:
        """True while the backoff window is open."""
        with self._lock:
            return self._clock() < self._blocked_until

    def remaining(self) -> float:
        """Seconds left in the backoff window (0 when not blocked)."""
        with self._lock:
            return max(0.0, self._blocked_until - self._clock())

    def block_for(self, seconds: float) -> float:
        """Block for ``seconds`` from now unless a later block is already set.

        Returns:
            The effective "blocked until" timestamp.
        """
        with self._lock:
            candidate = self._clock() + seconds
            if candidate > self._blocked_until:
                self._blocked_until = candidate
                logger.warning("Research provider backoff active for %.0fs", seconds)
            return self._blocked_until

    def reset(self) -> None:
        """Clear any active block."""
        with self._lock:
            self._blocked_until = 0.0
