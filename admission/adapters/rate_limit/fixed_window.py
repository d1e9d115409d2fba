"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: every process (or worker) enforces its own limit.
- Thread-safe: one lock covers the rollover check, the reset and the
  increment, so a boundary is crossed exactly once however many threads
  observe it.
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


class FixedWindowRateLimiter(RateLimiter):
    """Admit up to ``threshold`` requests per fixed window of time.

    The first window starts at construction. A window expires once
    ``window_length_ms`` has elapsed since it started; the next call then
    opens a fresh window starting at that call's timestamp. Rejected calls
    still advance the counter but never affect later admissions, since the
    counter only resets at rollover.
    """

    algorithm = "fixed_window"

    def __init__(
        self,
        threshold: int,
        window_length_ms: int = 1000,
        *,
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        """Initialize the fixed-window limiter.

        Args:
            threshold: Maximum number of admissions per window.
            window_length_ms: Window length in milliseconds.
            clock: Time source returning seconds as a float.

        Raises:
            InvalidConfigurationError: If threshold or window_length_ms is not
                a positive integer.
        """
        self._threshold = require_positive(
            threshold, field="threshold", code="limiter_invalid_threshold"
        )
        self._window_length_ms = require_positive(
            window_length_ms, field="window_length_ms", code="limiter_invalid_interval"
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._window_start = now_ms(clock)
        self._count = 0
        self._admitted = 0
        self._rejected = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"FixedWindowRateLimiter(threshold={self._threshold}, "
            f"window_length_ms={self._window_length_ms})"
        )

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def window_length_ms(self) -> int:
        return self._window_length_ms

    def try_acquire(self) -> bool:
        """Count this request against the current window.

        Returns:
            True if the post-increment count is within the threshold.
        """
        with self._lock:
            now = now_ms(self._clock)
            # A clock that moved backwards gives a negative delta: no rollover
            if now - self._window_start >= self._window_length_ms:
                self._roll_over_locked(now)

            self._count += 1
            allowed = self._count <= self._threshold
            if allowed:
                self._admitted += 1
            else:
                self._rejected += 1
            count = self._count

        logger.debug(
            "rate_limit.allowed" if allowed else "rate_limit.rejected",
            extra={
                "algorithm": self.algorithm,
                "limit": self._threshold,
                "count": count,
                "window_ms": self._window_length_ms,
            },
        )
        return allowed

    def stats(self) -> LimiterStats:
        with self._lock:
            return LimiterStats(
                algorithm=self.algorithm,
                threshold=self._threshold,
                interval_ms=self._window_length_ms,
                current=self._count,
                admitted=self._admitted,
                rejected=self._rejected,
            )

    def _roll_over_locked(self, now: int) -> None:
        logger.debug(
            "rate_limit.window_rollover",
            extra={
                "algorithm": self.algorithm,
                "previous_count": self._count,
                "elapsed_ms": now - self._window_start,
            },
        )
        self._count = 0
        self._window_start = now
