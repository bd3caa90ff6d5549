"""Per-client request quotas for the enrichment endpoint.

In-memory sliding window keyed by client address. This is independent of
the research provider backoff in ``contact_enrichment.research.gate``: it
limits how often a caller may start an enrichment, not how often the
pipeline talks to its providers.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request


@dataclass(frozen=True)
class RateLimitConfig:
    """Configuration for rate limiting.

    Attributes:
        requests: Maximum number of requests allowed in the time window.
        window_seconds: Time window in seconds.
    """

    requests: int = 50
    window_seconds: int = 3600


@dataclass(frozen=True)
class RateLimitStatus:
    """Outcome of a quota check, used to populate ``X-RateLimit-*`` headers."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int = 0

    def headers(self) -> dict[str, str]:
        """Render the status as response headers."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }


class RateLimitTracker:
    """Tracks request timestamps per identifier in a sliding window.

    Not distributed: each worker process keeps its own counters. Clients
    with no request inside the window are swept out at most once per window,
    so the map holds only clients seen in roughly the last two windows.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._requests: dict[str, list[float]] = {}
        self._last_sweep: float | None = None
        self._lock = threading.Lock()

    def _sweep(self, window_start: float) -> None:
        # Timestamps are appended in order, so the last one is the newest
        expired = [
            identifier
            for identifier, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for identifier in expired:
            del self._requests[identifier]

    def _prune(self, identifier: str, window_start: float) -> list[float]:
        timestamps = [ts for ts in self._requests.get(identifier, ()) if ts > window_start]
        self._requests[identifier] = timestamps
        return timestamps

    def hit(self, identifier: str, config: RateLimitConfig) -> RateLimitStatus:
        """Record a request if allowed and report the resulting quota state.

        Args:
            identifier: Client key (usually an IP address).
            config: Rate limit configuration.

        Returns:
            RateLimitStatus describing whether the request may proceed.
        """
        with self._lock:
            now = self._clock()
            window_start = now - config.window_seconds
            if self._last_sweep is None or now - self._last_sweep >= config.window_seconds:
                self._sweep(window_start)
                self._last_sweep = now
            timestamps = self._prune(identifier, window_start)

            if len(timestamps) < config.requests:
                timestamps.append(now)
                return RateLimitStatus(
                    allowed=True,
                    limit=config.requests,
                    remaining=config.requests - len(timestamps),
                    reset_at=timestamps[0] + config.window_seconds,
                )

            reset_at = timestamps[0] + config.window_seconds
            return RateLimitStatus(
                allowed=False,
                limit=config.requests,
                remaining=0,
                reset_at=reset_at,
                retry_after=max(0, int(reset_at - now)),
            )


def client_identifier(request: Request) -> str:
    """Derive the quota key for a request.

    Uses the first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the
    socket peer address.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    client = request.client
    return client[0] if client else "unknown"


# Global rate limit tracker instance
_global_tracker = RateLimitTracker()


def get_rate_limit_tracker() -> RateLimitTracker:
    """Return the process-wide tracker."""
    return _global_tracker


__all__ = [
    "RateLimitConfig",
    "RateLimitStatus",
    "RateLimitTracker",
    "client_identifier",
    "get_rate_limit_tracker",
]
