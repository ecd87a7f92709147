"""Tests for the sliding-window rate limiter."""

import threading

import pytest

from proposal_relay.core.errors import RateLimitError
from proposal_relay.core.rate_limiter import SlidingWindowRateLimiter, client_identifier


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(max_requests=10, window_seconds=60, clock=clock)


class TestSlidingWindow:
    """Window admission rules."""

    def test_eleventh_request_rejected(self, limiter, clock):
        """Exactly one of 11 requests inside a minute is rejected: the 11th."""
        results = []
        for _ in range(11):
            results.append(limiter.hit("10.0.0.1"))
            clock.advance(1)

        assert results == [True] * 10 + [False]

    def test_burst_within_limit_passes(self, limiter):
        assert all(limiter.hit("10.0.0.1") for _ in range(10))

    def test_new_window_passes(self, limiter, clock):
        for _ in range(10):
            limiter.hit("10.0.0.1")
        assert limiter.hit("10.0.0.1") is False

        clock.advance(60)

        assert limiter.hit("10.0.0.1") is True

    def test_window_slides(self, limiter, clock):
        """Old requests leave the window one at a time."""
        limiter.hit("10.0.0.1")
        clock.advance(30)
        for _ in range(9):
            limiter.hit("10.0.0.1")
        assert limiter.hit("10.0.0.1") is False

        clock.advance(30)

        assert limiter.hit("10.0.0.1") is True
        assert limiter.hit("10.0.0.1") is False

    def test_identifiers_are_independent(self, limiter):
        for _ in range(10):
            limiter.hit("10.0.0.1")

        assert limiter.hit("10.0.0.1") is False
        assert limiter.hit("10.0.0.2") is True

    def test_rejected_requests_not_recorded(self, limiter, clock):
        for _ in range(10):
            limiter.hit("10.0.0.1")
        for _ in range(5):
            assert limiter.hit("10.0.0.1") is False

        clock.advance(60)

        assert all(limiter.hit("10.0.0.1") for _ in range(10))


class TestCheck:
    """check() raises with a retry hint."""

    def test_check_raises_rate_limit_error(self, limiter, clock):
        for _ in range(10):
            limiter.check("10.0.0.1")
        clock.advance(15)

        with pytest.raises(RateLimitError) as exc_info:
            limiter.check("10.0.0.1")

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 45

    def test_retry_after_zero_with_room(self, limiter):
        limiter.hit("10.0.0.1")
        assert limiter.retry_after("10.0.0.1") == 0
        assert limiter.retry_after("never-seen") == 0


class TestHousekeeping:
    """sweep() and reset()."""

    def test_sweep_drops_idle_identifiers(self, limiter, clock):
        limiter.hit("10.0.0.1")
        limiter.hit("10.0.0.2")
        clock.advance(61)
        limiter.hit("10.0.0.3")

        limiter.sweep()

        assert len(limiter) == 1

    def test_check_sweeps_large_table(self, limiter, clock, monkeypatch):
        monkeypatch.setattr("proposal_relay.core.rate_limiter.SWEEP_THRESHOLD", 2)
        for address in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
            limiter.check(address)
        clock.advance(61)

        limiter.check("10.0.0.4")

        assert len(limiter) == 1

    def test_reset_clears_state(self, limiter):
        for _ in range(10):
            limiter.hit("10.0.0.1")

        limiter.reset()

        assert len(limiter) == 0
        assert limiter.hit("10.0.0.1") is True


class TestConcurrency:
    """No lost updates under concurrent access."""

    def test_concurrent_hits_admit_exactly_limit(self):
        limiter = SlidingWindowRateLimiter(max_requests=50, window_seconds=60)
        admitted = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                if limiter.hit("shared"):
                    with lock:
                        admitted.append(1)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(admitted) == 50


class TestClientIdentifier:
    """Identifier derivation from headers."""

    def test_first_forwarded_address(self):
        assert client_identifier({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}) == "203.0.113.7"

    def test_real_ip_fallback(self):
        assert client_identifier({"x-real-ip": "198.51.100.2"}) == "198.51.100.2"

    def test_unknown_default(self):
        assert client_identifier({}) == "unknown"
        assert client_identifier({"x-forwarded-for": " "}) == "unknown"
