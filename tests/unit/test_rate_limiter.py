"""Tests for the fixed-window rate limiter and client identifier derivation."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.api.rate_limiter import InMemoryRateLimiter, client_identifier


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _limiter(
    clock: FakeClock, max_requests: int = 10, window: float = 60.0, **kwargs: int,
) -> InMemoryRateLimiter:
    return InMemoryRateLimiter(max_requests, window, clock=clock, **kwargs)


# ---------------------------------------------------------------------------
# Fixed window
# ---------------------------------------------------------------------------


class TestFixedWindow:
    def test_first_request_allowed(self) -> None:
        clock = FakeClock()
        result = _limiter(clock).check("1.2.3.4")
        assert result.allowed is True
        assert result.remaining == 9
        assert result.limit == 10
        assert result.reset_at == 1_060.0

    def test_ten_allowed_eleventh_denied(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock)
        results = [limiter.check("client") for _ in range(11)]

        assert all(r.allowed for r in results[:10])
        assert [r.remaining for r in results[:10]] == list(range(9, -1, -1))
        assert results[10].allowed is False
        assert results[10].remaining == 0

    def test_denial_does_not_extend_window(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, max_requests=1)
        first = limiter.check("client")
        clock.now += 30
        denied = limiter.check("client")
        assert denied.allowed is False
        assert denied.reset_at == first.reset_at

    def test_exactly_at_reset_still_in_window(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, max_requests=1)
        limiter.check("client")
        clock.now += 60
        assert limiter.check("client").allowed is False

    def test_after_reset_count_restarts(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock)
        for _ in range(11):
            limiter.check("client")

        clock.now += 60.001
        result = limiter.check("client")
        assert result.allowed is True
        assert result.remaining == 9
        assert result.reset_at == pytest.approx(clock.now + 60)

    def test_identifiers_isolated(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, max_requests=1)
        assert limiter.check("a").allowed is True
        assert limiter.check("a").allowed is False
        assert limiter.check("b").allowed is True


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    @pytest.mark.parametrize(("callers", "limit"), [(50, 10), (5, 10), (10, 10)])
    def test_admits_exactly_min_n_k(self, callers: int, limit: int) -> None:
        limiter = InMemoryRateLimiter(max_requests=limit, window_seconds=60.0)
        barrier = threading.Barrier(callers)

        def hit() -> bool:
            barrier.wait()
            return limiter.check("shared").allowed

        with ThreadPoolExecutor(max_workers=callers) as pool:
            outcomes = list(pool.map(lambda _: hit(), range(callers)))

        assert sum(outcomes) == min(callers, limit)


# ---------------------------------------------------------------------------
# Eviction
# ---------------------------------------------------------------------------


class TestEviction:
    def test_stale_records_evicted_when_full(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, max_entries=3)
        for ip in ("a", "b", "c"):
            limiter.check(ip)
        assert len(limiter) == 3

        clock.now += 61
        limiter.check("d")
        assert len(limiter) == 1

    def test_live_records_survive(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, max_requests=1, max_entries=2)
        limiter.check("a")
        limiter.check("b")
        limiter.check("c")  # nothing stale yet, map grows past the soft cap
        assert len(limiter) == 3
        assert limiter.check("a").allowed is False

    def test_only_expired_prefix_evicted(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, max_entries=3)
        for ip in ("a", "b", "c"):
            limiter.check(ip)
            clock.now += 10

        # a and b windows ended at 1060 and 1070, c is live until 1080
        clock.now = 1_075.0
        limiter.check("d")
        assert len(limiter) == 2
        assert limiter.check("c").remaining == 8

    def test_rolled_over_record_moves_behind_live_ones(self) -> None:
        clock = FakeClock()
        limiter = _limiter(clock, max_entries=3)
        limiter.check("a")
        clock.now += 10
        limiter.check("b")
        clock.now += 10
        limiter.check("c")

        clock.now = 1_065.0
        limiter.check("a")  # new window for a, ends 1125

        clock.now = 1_075.0  # b expired, c and a live
        limiter.check("d")
        assert len(limiter) == 3
        assert limiter.check("a").remaining == 8
        assert limiter.check("b").remaining == 9


# ---------------------------------------------------------------------------
# client_identifier
# ---------------------------------------------------------------------------


class TestClientIdentifier:
    def test_first_forwarded_for_token(self) -> None:
        headers = {"x-forwarded-for": " 203.0.113.9 , 10.0.0.1", "x-real-ip": "10.0.0.2"}
        assert client_identifier(headers, "127.0.0.1") == "203.0.113.9"

    def test_real_ip_fallback(self) -> None:
        assert client_identifier({"x-real-ip": "10.0.0.2"}, "127.0.0.1") == "10.0.0.2"

    def test_peer_fallback(self) -> None:
        assert client_identifier({}, "127.0.0.1") == "127.0.0.1"

    def test_unknown_sentinel(self) -> None:
        assert client_identifier({}, None) == "unknown"

    def test_empty_forwarded_for_ignored(self) -> None:
        assert client_identifier({"x-forwarded-for": ""}, "127.0.0.1") == "127.0.0.1"
