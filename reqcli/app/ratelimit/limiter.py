"""Token bucket rate limiter for outbound requests.

The bucket holds up to ``burst`` tokens and refills continuously at
``limit`` tokens per second. Each admitted request consumes one token.
The limiter can be reconfigured at runtime and offers both a non-blocking
check (``allow``) and a blocking one (``wait``).
"""

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from reqcli.app.core.logging import get_logger
from reqcli.app.exceptions import RateLimitExceededError, RateLimitWaitCancelled
from reqcli.app.ratelimit.parser import parse_rate

logger = get_logger(__name__)


@dataclass
class TokenBucket:
    """Token bucket state."""
    limit: float
    burst: int
    tokens: float = field(default_factory=float)
    last_update: float = field(default_factory=time.monotonic)

    def refill(self, now: float) -> None:
        """Add the tokens earned since ``last_update``, capped at ``burst``."""
        elapsed = max(0.0, now - self.last_update)
        self.tokens = min(float(self.burst), self.tokens + elapsed * self.limit)
        self.last_update = now

    def delay_for_one(self) -> float:
        """Seconds until one token is available at the current rate."""
        shortfall = 1.0 - self.tokens
        if shortfall <= 0:
            return 0.0
        return shortfall / self.limit


class RateLimiter:
    """Token bucket limiter with runtime reconfiguration.

    All bucket state is guarded by a single lock, so every admission check
    sees one consistent ``(limit, burst, tokens)`` triple. The lock is never
    held across an ``await``; ``allow`` is safe to call from plain
    synchronous code and from other threads.
    """

    # Upper bound on a single sleep inside wait(), so a set_rate() made
    # while a task is waiting is picked up.
    POLL_INTERVAL = 0.25

    def __init__(
        self,
        rate_spec: str = "",
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiter.

        Args:
            rate_spec: Rate like ``10/s`` or ``100/30s``; empty disables limiting
            clock: Monotonic time source in seconds

        Raises:
            InvalidRateFormatError: If the request count is malformed
            InvalidDurationError: If the duration is malformed or not positive
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._bucket: Optional[TokenBucket] = None
        self._enabled = False

        if rate_spec:
            limit, burst = parse_rate(rate_spec)
            self._bucket = TokenBucket(
                limit=limit, burst=burst, tokens=float(burst), last_update=clock()
            )
            self._enabled = True

    def allow(self) -> None:
        """Take one token without waiting.

        Raises:
            RateLimitExceededError: If no token is available right now
        """
        with self._lock:
            if not self._enabled:
                return
            bucket = self._bucket
            bucket.refill(self._clock())
            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return
            retry_after = bucket.delay_for_one()

        raise RateLimitExceededError(retry_after=retry_after)

    async def wait(self, timeout: Optional[float] = None) -> None:
        """Block until a token can be taken, then take it.

        Nothing is reserved while sleeping: if the deadline passes first or
        the task is cancelled, the bucket is left exactly as it would have
        been without this call.

        Args:
            timeout: Seconds to wait at most; ``None`` waits indefinitely

        Raises:
            RateLimitWaitCancelled: If a token cannot be had before the deadline
            asyncio.CancelledError: If the waiting task is cancelled
        """
        deadline = None if timeout is None else self._clock() + timeout

        while True:
            with self._lock:
                if not self._enabled:
                    return
                bucket = self._bucket
                now = self._clock()
                bucket.refill(now)
                if bucket.tokens >= 1.0:
                    bucket.tokens -= 1.0
                    return
                delay = bucket.delay_for_one()

            if deadline is not None and now + delay > deadline:
                raise RateLimitWaitCancelled(
                    f"rate limit wait of {delay:.3f}s would exceed the deadline"
                )

            logger.debug(f"Rate limited, waiting {delay:.3f}s for a token")
            await asyncio.sleep(min(delay, self.POLL_INTERVAL))

    def set_rate(self, rate_spec: str) -> None:
        """Replace the rate, or disable limiting with an empty spec.

        Tokens earned under the old rate are credited before the switch and
        then capped at the new burst.

        Raises:
            InvalidRateFormatError: If the request count is malformed
            InvalidDurationError: If the duration is malformed or not positive
        """
        if not rate_spec:
            with self._lock:
                self._enabled = False
            logger.debug("Rate limiting disabled")
            return

        limit, burst = parse_rate(rate_spec)

        with self._lock:
            now = self._clock()
            if self._bucket is None:
                self._bucket = TokenBucket(
                    limit=limit, burst=burst, tokens=float(burst), last_update=now
                )
            else:
                self._bucket.refill(now)
                self._bucket.limit = limit
                self._bucket.burst = burst
                self._bucket.tokens = min(float(burst), self._bucket.tokens)
            self._enabled = True

        logger.debug(f"Rate limit set to {rate_spec} (limit={limit:.4f}/s, burst={burst})")

    def is_enabled(self) -> bool:
        """Return whether rate limiting is enabled."""
        with self._lock:
            return self._enabled

    def stats(self) -> Dict[str, Any]:
        """Return a snapshot of the limiter state for debugging.

        Numeric fields are only present while the limiter is enabled.
        """
        with self._lock:
            stats: Dict[str, Any] = {"enabled": self._enabled}
            if self._enabled and self._bucket is not None:
                self._bucket.refill(self._clock())
                stats["limit"] = self._bucket.limit
                stats["burst"] = self._bucket.burst
                stats["tokens"] = self._bucket.tokens
            return stats
