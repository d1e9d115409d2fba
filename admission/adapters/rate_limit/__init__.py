"""Rate limiting adapters.

Two interchangeable algorithms behind one decision interface. Callers pick a
variant at construction time and only ever call ``try_acquire()``.
"""

from admission.adapters.rate_limit.base import LimiterStats, RateLimiter
from admission.adapters.rate_limit.factory import create_rate_limiter
from admission.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from admission.adapters.rate_limit.keyed import KeyedRateLimiter
from admission.adapters.rate_limit.leaky_bucket import LeakyBucketRateLimiter

__all__ = [
    "FixedWindowRateLimiter",
    "KeyedRateLimiter",
    "LeakyBucketRateLimiter",
    "LimiterStats",
    "RateLimiter",
    "create_rate_limiter",
]
