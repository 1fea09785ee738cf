"""Tests for the fixed-window rate limiter."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from designforge.services.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimiterConfig,
    WindowState,
    evaluate_window,
)
from designforge.services.service_base import RateLimited


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(RateLimiterConfig(max_requests=10, window_seconds=60), clock=clock)


@pytest.mark.unit
class TestEvaluateWindow:
    """Test the pure window decision."""

    def test_first_request_opens_window(self):
        config = RateLimiterConfig(max_requests=3, window_seconds=60)
        state, decision = evaluate_window(None, 100.0, config)
        assert state == WindowState(count=1, reset_at=160.0)
        assert decision.allowed is True
        assert decision.remaining == 2

    def test_increments_within_window(self):
        config = RateLimiterConfig(max_requests=3, window_seconds=60)
        state, decision = evaluate_window(WindowState(count=2, reset_at=160.0), 150.0, config)
        assert state.count == 3
        assert state.reset_at == 160.0
        assert decision.allowed is True
        assert decision.remaining == 0

    def test_denies_over_budget(self):
        config = RateLimiterConfig(max_requests=3, window_seconds=60)
        state, decision = evaluate_window(WindowState(count=3, reset_at=160.0), 150.0, config)
        assert state.count == 4
        assert decision.allowed is False
        assert decision.retry_after == 10.0

    def test_elapsed_window_resets(self):
        config = RateLimiterConfig(max_requests=3, window_seconds=60)
        state, decision = evaluate_window(WindowState(count=99, reset_at=160.0), 160.5, config)
        assert state == WindowState(count=1, reset_at=220.5)
        assert decision.allowed is True


@pytest.mark.unit
class TestRateLimiter:
    """Test RateLimiter admission."""

    def test_eleventh_request_rejected(self, limiter):
        for _ in range(10):
            limiter.check('user:a')
        with pytest.raises(RateLimited) as excinfo:
            limiter.check('user:a')
        assert excinfo.value.http_status == 429
        assert excinfo.value.public_message == 'Rate limit exceeded. Please try again later.'

    def test_retry_after_header(self, limiter, clock):
        for _ in range(10):
            limiter.check('user:a')
        clock.advance(15.2)
        with pytest.raises(RateLimited) as excinfo:
            limiter.check('user:a')
        assert excinfo.value.headers == {'Retry-After': '45'}

    def test_retry_after_is_at_least_one_second(self, limiter, clock):
        for _ in range(10):
            limiter.check('user:a')
        clock.advance(59.99)
        with pytest.raises(RateLimited) as excinfo:
            limiter.check('user:a')
        assert excinfo.value.headers['Retry-After'] == '1'

    def test_admitted_again_after_window(self, limiter, clock):
        for _ in range(10):
            limiter.check('user:a')
        with pytest.raises(RateLimited):
            limiter.check('user:a')
        clock.advance(61)
        decision = limiter.check('user:a')
        assert decision.allowed is True
        assert decision.remaining == 9

    def test_keys_are_independent(self, limiter):
        for _ in range(10):
            limiter.check('user:a')
        assert limiter.check('user:b').allowed is True
        assert limiter.hit('user:a').allowed is False

    def test_hit_does_not_raise(self, limiter):
        decisions = [limiter.hit('ip:1.2.3.4') for _ in range(12)]
        assert [d.allowed for d in decisions] == [True] * 10 + [False] * 2

    def test_reset_forgets_windows(self, limiter):
        for _ in range(10):
            limiter.check('user:a')
        limiter.reset()
        assert limiter.check('user:a').remaining == 9

    def test_reset_keeps_injected_store(self, clock):
        """Reset empties the configured store rather than swapping it out."""

        class RecordingStore(InMemoryRateLimitStore):
            cleared = 0

            def clear(self):
                self.cleared += 1
                super().clear()

        store = RecordingStore()
        limiter = RateLimiter(RateLimiterConfig(max_requests=2, window_seconds=60), store=store, clock=clock)
        limiter.hit('user:a')
        limiter.hit('user:b')
        limiter.reset()
        assert limiter.store is store
        assert store.cleared == 1
        assert len(store) == 0
        assert limiter.hit('user:a').remaining == 1
        assert store.get('user:a').count == 1

    def test_expired_windows_purged_past_max_keys(self, clock):
        limiter = RateLimiter(RateLimiterConfig(max_requests=5, window_seconds=10, max_keys=3), clock=clock)
        for key in ('a', 'b', 'c', 'd'):
            limiter.hit(key)
        assert len(limiter.store) == 4
        clock.advance(11)
        limiter.hit('e')
        assert len(limiter.store) == 1
        assert limiter.store.get('a') is None
        assert limiter.store.get('e').count == 1

    def test_live_windows_survive_purge(self, clock):
        limiter = RateLimiter(RateLimiterConfig(max_requests=5, window_seconds=10, max_keys=1), clock=clock)
        limiter.hit('a')
        limiter.hit('b')
        limiter.hit('c')
        assert limiter.store.get('a').count == 1
        assert len(limiter.store) == 3

    def test_concurrent_hits_are_counted_exactly(self):
        """Concurrent requests for one key never lose an increment."""
        limiter = RateLimiter(RateLimiterConfig(max_requests=50, window_seconds=60))
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            return [limiter.hit('user:shared').allowed for _ in range(25)]

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = [f.result() for f in [executor.submit(worker) for _ in range(8)]]

        allowed = sum(flag for batch in results for flag in batch)
        assert allowed == 50
        assert limiter.store.get('user:shared').count == 200


@pytest.mark.unit
class TestInMemoryRateLimitStore:

    def test_update_returns_result_and_stores_state(self):
        store = InMemoryRateLimitStore()
        result = store.update('k', lambda state: (WindowState(1, 10.0), 'ok'))
        assert result == 'ok'
        assert store.get('k') == WindowState(1, 10.0)
        assert len(store) == 1

    def test_purge_removes_only_expired(self):
        store = InMemoryRateLimitStore()
        store.update('old', lambda state: (WindowState(1, 5.0), None))
        store.update('new', lambda state: (WindowState(1, 50.0), None))
        assert store.purge_expired(10.0) == 1
        assert store.get('old') is None
        assert store.get('new') is not None

    def test_clear_drops_every_window(self):
        store = InMemoryRateLimitStore()
        store.update('a', lambda state: (WindowState(1, 5.0), None))
        store.update('b', lambda state: (WindowState(1, 50.0), None))
        store.clear()
        assert len(store) == 0
        assert store.get('b') is None
