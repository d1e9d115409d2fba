"""Rate limiter interfaces.

Callers depend on this abstraction (not the concrete implementation) so the
admission algorithm can be swapped at construction time without touching the
code that guards the protected resource.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

Clock = Callable[[], float]


@dataclass(frozen=True)
class LimiterStats:
    """Point-in-time snapshot of a limiter.

    Attributes:
        algorithm: Algorithm name ("fixed_window" or "leaky_bucket").
        threshold: Max admissions per window, or bucket capacity.
        interval_ms: Window length or leak interval in milliseconds.
        current: Current window count or bucket level.
        admitted: Total admissions since construction.
        rejected: Total rejections since construction.
    """

    algorithm: str
    threshold: int
    interval_ms: int
    current: int
    admitted: int
    rejected: int


class RateLimiter(ABC):
    """Interface for in-process rate limiters.

    Implementations must be safe to call concurrently from any number of
    threads and must return immediately with a definite decision.
    """

    @abstractmethod
    def try_acquire(self) -> bool:
        """Decide whether one request may proceed.

        Returns:
            True if the request is admitted, False if the caller must back off
            or reject it.
        """
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> LimiterStats:
        """Return a snapshot of the limiter state and decision counters."""
        raise NotImplementedError


def now_ms(clock: Clock) -> int:
    """Read a seconds-based clock and return the nearest whole millisecond."""
    return round(clock() * 1000)


DEFAULT_CLOCK: Clock = time.monotonic
