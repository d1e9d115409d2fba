"""In-memory leaky-bucket rate limiter.

Each admission pours one unit into the bucket; the bucket drains
``leak_per_interval`` units per whole ``leak_interval_ms`` elapsed. Draining
is computed lazily on the calling thread, there is no background leak thread.

Notes:
- Leaking is discrete: nothing drains until a full interval has elapsed
  since the last leak, and idle time only catches up in whole intervals.
- Thread-safe: one lock covers the leak computation and the admission, so the
  level never leaves ``[0, threshold]``.
"""

from __future__ import annotations

import logging
import threading

from admission.adapters.rate_limit.base import (
    DEFAULT_CLOCK,
    Clock,
    LimiterStats,
    RateLimiter,
    now_ms,
)
from admission.core.errors import require_positive

logger = logging.getLogger(__name__)


class LeakyBucketRateLimiter(RateLimiter):
    """Admit while the bucket level is below capacity.

    Capacity and drain rate default to the same value, so one full interval
    of idleness empties a full bucket. Pass ``leak_per_interval`` to drain at
    a rate independent of the burst capacity.
    """

    algorithm = "leaky_bucket"

    def __init__(
        self,
        threshold: int,
        leak_interval_ms: int = 1000,
        *,
        leak_per_interval: int | None = None,
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        """Initialize the leaky-bucket limiter.

        Args:
            threshold: Bucket capacity (maximum level).
            leak_interval_ms: Time unit over which ``leak_per_interval`` units
                drain, in milliseconds.
            leak_per_interval: Units drained per interval. Defaults to
                ``threshold``.
            clock: Time source returning seconds as a float.

        Raises:
            InvalidConfigurationError: If any numeric parameter is not a
                positive integer.
        """
        self._threshold = require_positive(
            threshold, field="threshold", code="limiter_invalid_threshold"
        )
        self._leak_interval_ms = require_positive(
            leak_interval_ms, field="leak_interval_ms", code="limiter_invalid_interval"
        )
        if leak_per_interval is None:
            leak_per_interval = self._threshold
        self._leak_per_interval = require_positive(
            leak_per_interval, field="leak_per_interval", code="limiter_invalid_leak_rate"
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._level = 0
        self._last_leak_time = now_ms(clock)
        self._admitted = 0
        self._rejected = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"LeakyBucketRateLimiter(threshold={self._threshold}, "
            f"leak_interval_ms={self._leak_interval_ms}, "
            f"leak_per_interval={self._leak_per_interval})"
        )

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def leak_interval_ms(self) -> int:
        return self._leak_interval_ms

    @property
    def leak_per_interval(self) -> int:
        return self._leak_per_interval

    def try_acquire(self) -> bool:
        """Apply any pending leak, then pour one unit if there is room.

        Returns:
            True if the bucket was below capacity after leaking.
        """
        with self._lock:
            self._leak_locked(now_ms(self._clock))

            allowed = self._level < self._threshold
            if allowed:
                self._level += 1
                self._admitted += 1
            else:
                self._rejected += 1
            level = self._level

        logger.debug(
            "rate_limit.allowed" if allowed else "rate_limit.rejected",
            extra={
                "algorithm": self.algorithm,
                "limit": self._threshold,
                "bucket_level": level,
                "leak_interval_ms": self._leak_interval_ms,
            },
        )
        return allowed

    def stats(self) -> LimiterStats:
        with self._lock:
            return LimiterStats(
                algorithm=self.algorithm,
                threshold=self._threshold,
                interval_ms=self._leak_interval_ms,
                current=self._level,
                admitted=self._admitted,
                rejected=self._rejected,
            )

    def _leak_locked(self, now: int) -> None:
        elapsed = now - self._last_leak_time
        # A clock that moved backwards gives a negative amount: no leak
        leaked = (elapsed // self._leak_interval_ms) * self._leak_per_interval
        if leaked <= 0:
            return

        previous = self._level
        self._level = max(0, self._level - leaked)
        self._last_leak_time = now
        logger.debug(
            "rate_limit.leak",
            extra={
                "algorithm": self.algorithm,
                "leaked": leaked,
                "level_before": previous,
                "level_after": self._level,
            },
        )
