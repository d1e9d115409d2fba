"""Factory for creating rate limiter instances from settings."""

from __future__ import annotations

import logging

from admission.adapters.rate_limit.base import DEFAULT_CLOCK, Clock, RateLimiter
from admission.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from admission.adapters.rate_limit.leaky_bucket import LeakyBucketRateLimiter
from admission.core.config import LimiterSettings, get_settings
from admission.core.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ("fixed_window", "leaky_bucket")


def create_rate_limiter(
    limiter_settings: LimiterSettings | None = None,
    *,
    clock: Clock = DEFAULT_CLOCK,
) -> RateLimiter:
    """Instantiate a limiter for the configured algorithm.

    Reads configuration from admission.core.config.get_settings() unless explicit
    settings are passed. Every call returns a new, independent instance.

    Args:
        limiter_settings: Optional settings overriding the global ones.
        clock: Time source handed to the limiter.

    Returns:
        RateLimiter: Configured limiter instance.

    Raises:
        InvalidConfigurationError: If the algorithm is unknown, a numeric
            parameter is invalid, or leak_per_interval is set for the
            fixed_window algorithm.
    """
    cfg = limiter_settings or get_settings().limiter
    algorithm = cfg.algorithm.lower()

    if algorithm == "fixed_window":
        if cfg.leak_per_interval is not None:
            raise InvalidConfigurationError(
                code="limiter_invalid_leak_rate",
                message="leak_per_interval only applies to the leaky_bucket algorithm",
                details={"field": "leak_per_interval", "actual_value": cfg.leak_per_interval},
            )
        limiter: RateLimiter = FixedWindowRateLimiter(
            cfg.threshold,
            cfg.interval_ms,
            clock=clock,
        )
    elif algorithm == "leaky_bucket":
        limiter = LeakyBucketRateLimiter(
            cfg.threshold,
            cfg.interval_ms,
            leak_per_interval=cfg.leak_per_interval,
            clock=clock,
        )
    else:
        raise InvalidConfigurationError(
            code="limiter_unknown_algorithm",
            message=(
                f"Unknown rate limit algorithm: '{algorithm}'. "
                f"Supported algorithms: {', '.join(SUPPORTED_ALGORITHMS)}"
            ),
            details={"field": "algorithm", "actual_value": algorithm},
        )

    logger.info(
        "rate_limit.created",
        extra={
            "algorithm": algorithm,
            "limit": cfg.threshold,
            "interval_ms": cfg.interval_ms,
        },
    )
    return limiter
