"""In-process admission control: fixed-window and leaky-bucket rate limiters."""

from admission.adapters.rate_limit import (
    FixedWindowRateLimiter,
    KeyedRateLimiter,
    LeakyBucketRateLimiter,
    LimiterStats,
    RateLimiter,
    create_rate_limiter,
)
from admission.core.errors import AppError, InvalidConfigurationError

__all__ = [
    "AppError",
    "FixedWindowRateLimiter",
    "InvalidConfigurationError",
    "KeyedRateLimiter",
    "LeakyBucketRateLimiter",
    "LimiterStats",
    "RateLimiter",
    "create_rate_limiter",
]
