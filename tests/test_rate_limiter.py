import threading

import pytest

from utils.rate_limiter import FixedWindowRateLimiter

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_then_blocks():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=10, window_seconds=3600, clock=clock)

    decisions = [limiter.hit("vendor-1") for _ in range(10)]
    assert all(d.allowed for d in decisions)
    assert decisions[-1].remaining == 0

    blocked = limiter.hit("vendor-1")
    assert not blocked.allowed
    assert blocked.retry_after == 3600


def test_retry_after_counts_down_and_window_resets():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
    limiter.hit("v")

    clock.now += 59.2
    assert limiter.hit("v").retry_after == 1

    clock.now += 1
    assert limiter.hit("v").allowed


def test_callers_are_independent():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed
    assert not limiter.hit("a").allowed


def test_expired_windows_are_pruned():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=60, clock=clock)
    for i in range(100):
        limiter.hit(f"caller-{i}")

    clock.now += 120
    limiter.hit("fresh")
    assert len(limiter._windows) == 1


def test_reset_clears_state():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.hit("a")
    limiter.reset()
    assert limiter.hit("a").allowed


def test_thread_safety_exact_count():
    limiter = FixedWindowRateLimiter(max_requests=50, window_seconds=60)
    allowed = []
    lock = threading.Lock()

    def worker():
        for _ in range(10):
            decision = limiter.hit("shared")
            if decision.allowed:
                with lock:
                    allowed.append(1)

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(allowed) == 50
