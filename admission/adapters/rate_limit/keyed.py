"""Per-key registry of independent limiters.

Hosts that guard several resources (or several clients of one resource) with
the same policy can use one ``KeyedRateLimiter`` instead of wiring a limiter
per key by hand. Each key gets its own limiter instance; no state is shared
between keys.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict
from typing import Callable

from admission.adapters.rate_limit.base import LimiterStats, RateLimiter
from admission.core.logging import bind_limiter_key, unbind_limiter_key

logger = logging.getLogger(__name__)


def hash_limiter_key(key: str) -> str:
    """Hash a limiter key for logging without exposing secrets."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class KeyedRateLimiter:
    """Lazily create and dispatch to one limiter per key.

    The registry lock only protects the key map. Decisions run under each
    limiter's own lock, so traffic for one key never waits on another key's
    decision.

    Without ``max_keys`` the registry keeps every key it has seen until
    ``reset()`` is called for it. For open-ended key spaces (client IPs,
    API keys) pass ``max_keys``: once the cap is reached the least recently
    used key is dropped, and its next request starts from a fresh limiter.
    """

    def __init__(
        self,
        factory: Callable[[], RateLimiter],
        *,
        max_keys: int | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            factory: Zero-argument callable returning a fresh limiter, e.g.
                ``lambda: FixedWindowRateLimiter(10)`` or
                ``create_rate_limiter``.
            max_keys: Maximum number of keys kept (None for unlimited).

        Raises:
            ValueError: If max_keys is < 1.
        """
        if max_keys is not None and max_keys < 1:
            raise ValueError("max_keys must be >= 1")

        self._factory = factory
        self._max_keys = max_keys
        self._lock = threading.Lock()
        self._limiters: OrderedDict[str, RateLimiter] = OrderedDict()
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._limiters)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._limiters

    @property
    def evictions(self) -> int:
        with self._lock:
            return self._evictions

    def get(self, key: str) -> RateLimiter:
        """Return the limiter for key, creating it on first use.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            limiter = self._limiters.get(key)
            if limiter is not None:
                self._limiters.move_to_end(key)
                return limiter

            limiter = self._factory()
            self._limiters[key] = limiter
            self._evict_if_over_capacity_locked()
            logger.debug(
                "rate_limit.key_registered",
                extra={"key_hash": hash_limiter_key(key), "keys": len(self._limiters)},
            )
            return limiter

    def try_acquire(self, key: str) -> bool:
        """Decide whether one request for key may proceed.

        Args:
            key: Unique identifier (e.g., resource name, client IP).

        Returns:
            The decision of the key's own limiter.

        Raises:
            ValueError: If key is empty.
        """
        limiter = self.get(key)
        token = bind_limiter_key(hash_limiter_key(key))
        try:
            return limiter.try_acquire()
        finally:
            unbind_limiter_key(token)

    def reset(self, key: str) -> None:
        """Forget the limiter for key; the next call starts from a fresh one."""
        with self._lock:
            self._limiters.pop(key, None)

    def stats(self) -> dict[str, LimiterStats]:
        with self._lock:
            limiters = dict(self._limiters)
        return {key: limiter.stats() for key, limiter in limiters.items()}

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_keys is None:
            return

        while len(self._limiters) > self._max_keys:
            # popitem(last=False) removes the least recently used key
            key, _ = self._limiters.popitem(last=False)
            self._evictions += 1
            logger.debug(
                "rate_limit.key_evicted",
                extra={"key_hash": hash_limiter_key(key), "keys": len(self._limiters)},
            )
