from types import SimpleNamespace

import pytest

from core import rate_limit
from core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(rate_limit, "time", SimpleNamespace(monotonic=fake))
    return fake


@pytest.fixture
def limiter(clock, monkeypatch):
    limiter = RateLimiter()
    monkeypatch.setattr(limiter, "_allow_redis", lambda key, limit, window_seconds: None)
    return limiter


def test_memory_window_blocks_then_recovers(limiter, clock):
    assert limiter.allow(key="tickets:1", limit=2, window_seconds=60).allowed
    assert limiter.allow(key="tickets:1", limit=2, window_seconds=60).allowed

    blocked = limiter.allow(key="tickets:1", limit=2, window_seconds=60)
    assert not blocked.allowed
    assert blocked.retry_after_seconds == 60

    clock.now += 61
    assert limiter.allow(key="tickets:1", limit=2, window_seconds=60).allowed


def test_drained_keys_are_forgotten(limiter, clock):
    for user_id in range(50):
        limiter.allow(key=f"topup:{user_id}", limit=3, window_seconds=30)
    assert limiter.tracked_keys() == 50

    clock.now += RateLimiter.sweep_interval_seconds + 31
    limiter.allow(key="topup:new", limit=3, window_seconds=30)

    assert limiter.tracked_keys() == 1


def test_sweep_keeps_keys_still_inside_their_window(limiter, clock):
    limiter.allow(key="invest:long", limit=1, window_seconds=3600)
    limiter.allow(key="invest:short", limit=1, window_seconds=10)

    clock.now += RateLimiter.sweep_interval_seconds
    limiter.allow(key="invest:other", limit=1, window_seconds=10)

    assert limiter.tracked_keys() == 2
    assert not limiter.allow(key="invest:long", limit=1, window_seconds=3600).allowed
