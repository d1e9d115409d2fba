"""Unit tests for the leaky-bucket rate limiter."""

import threading

import pytest

from admission.adapters.rate_limit.leaky_bucket import LeakyBucketRateLimiter
from admission.core.errors import InvalidConfigurationError


class FakeClock:
    """Deterministic clock used to test leak timing."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_allows_up_to_capacity_without_elapsed_time(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=3, clock=clock)

    assert [limiter.try_acquire() for _ in range(4)] == [True, True, True, False]


def test_full_interval_leaks_full_capacity(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=2, clock=clock)

    assert [limiter.try_acquire() for _ in range(3)] == [True, True, False]

    clock.advance(1.0)
    assert [limiter.try_acquire() for _ in range(3)] == [True, True, False]


def test_partial_interval_does_not_leak(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=2, leak_interval_ms=1000, clock=clock)
    limiter.try_acquire()
    limiter.try_acquire()

    clock.advance(0.5)
    assert limiter.try_acquire() is False
    assert limiter.stats().current == 2


def test_leak_timer_restarts_at_leak_time(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=2, clock=clock)
    limiter.try_acquire()
    limiter.try_acquire()

    # One whole interval leaks; the leftover half interval is discarded
    clock.advance(1.5)
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is True

    clock.advance(0.5)
    assert limiter.try_acquire() is False


def test_long_idle_clamps_level_at_zero(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=3, clock=clock)
    limiter.try_acquire()

    clock.advance(3600.0)
    assert limiter.try_acquire() is True
    assert limiter.stats().current == 1

    assert [limiter.try_acquire() for _ in range(3)] == [True, True, False]


def test_decoupled_leak_rate(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=4, leak_per_interval=1, clock=clock)
    assert [limiter.try_acquire() for _ in range(5)] == [True] * 4 + [False]

    clock.advance(1.0)
    assert [limiter.try_acquire() for _ in range(2)] == [True, False]

    clock.advance(2.0)
    assert [limiter.try_acquire() for _ in range(3)] == [True, True, False]


def test_leak_per_interval_defaults_to_threshold() -> None:
    limiter = LeakyBucketRateLimiter(threshold=7)

    assert limiter.leak_per_interval == 7
    assert limiter.leak_interval_ms == 1000


def test_clock_moving_backwards_does_not_leak(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=1, clock=clock)
    assert limiter.try_acquire() is True

    clock.advance(-10.0)
    assert limiter.try_acquire() is False
    assert limiter.stats().current == 1


def test_stats_reports_counters(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=2, leak_interval_ms=250, clock=clock)
    for _ in range(5):
        limiter.try_acquire()

    stats = limiter.stats()
    assert stats.algorithm == "leaky_bucket"
    assert stats.threshold == 2
    assert stats.interval_ms == 250
    assert stats.current == 2
    assert stats.admitted == 2
    assert stats.rejected == 3


@pytest.mark.parametrize(
    ("kwargs", "code"),
    [
        ({"threshold": 0}, "limiter_invalid_threshold"),
        ({"threshold": -1}, "limiter_invalid_threshold"),
        ({"threshold": 2, "leak_interval_ms": 0}, "limiter_invalid_interval"),
        ({"threshold": 2, "leak_per_interval": 0}, "limiter_invalid_leak_rate"),
    ],
)
def test_invalid_constructor_args(kwargs: dict, code: str) -> None:
    with pytest.raises(InvalidConfigurationError) as exc_info:
        LeakyBucketRateLimiter(**kwargs)

    assert exc_info.value.code == code
    assert exc_info.value.details is not None


def test_level_never_exceeds_capacity_under_contention(clock: FakeClock) -> None:
    limiter = LeakyBucketRateLimiter(threshold=100, clock=clock)
    admitted = []
    admitted_lock = threading.Lock()

    def _worker() -> None:
        count = sum(1 for _ in range(20) if limiter.try_acquire())
        with admitted_lock:
            admitted.append(count)

    threads = [threading.Thread(target=_worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(admitted) == 100
    assert limiter.stats().current == 100
