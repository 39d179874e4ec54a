"""
Тесты для RateLimiter.
"""

from live_tracker.services.presence_hub.rate_limiter import RateLimiter


class TestAllow:
    """Тесты для RateLimiter.allow."""

    def test_accepts_exactly_max_within_window(self) -> None:
        limiter = RateLimiter(window_ms=1000, max_requests=10)

        results = [limiter.allow("a", 5_000) for _ in range(11)]

        assert results.count(True) == 10
        assert results[-1] is False

    def test_accepts_again_after_window(self) -> None:
        limiter = RateLimiter(window_ms=1000, max_requests=10)
        for _ in range(11):
            limiter.allow("a", 5_000)

        assert limiter.allow("a", 6_001) is True

    def test_rejected_attempt_is_not_recorded(self) -> None:
        limiter = RateLimiter(window_ms=1000, max_requests=2)

        assert limiter.allow("a", 0) is True
        assert limiter.allow("a", 600) is True
        assert limiter.allow("a", 900) is False
        # В окне [1, 1001] осталась только метка 600
        assert limiter.allow("a", 1001) is True

    def test_window_boundary_is_inclusive(self) -> None:
        limiter = RateLimiter(window_ms=1000, max_requests=1)

        assert limiter.allow("a", 0) is True
        assert limiter.allow("a", 1000) is False
        assert limiter.allow("a", 1001) is True

    def test_identities_are_independent(self) -> None:
        limiter = RateLimiter(window_ms=1000, max_requests=1)

        assert limiter.allow("a", 0) is True
        assert limiter.allow("b", 0) is True
        assert limiter.allow("a", 1) is False


class TestPrune:
    """Тесты для RateLimiter.prune."""

    def test_removes_empty_windows(self) -> None:
        limiter = RateLimiter(window_ms=1000, max_requests=10)
        limiter.allow("old", 0)
        limiter.allow("fresh", 4_500)

        removed = limiter.prune(5_000)

        assert removed == 1
        assert len(limiter) == 1

    def test_keeps_filtered_remainder(self) -> None:
        limiter = RateLimiter(window_ms=1000, max_requests=2)
        limiter.allow("a", 0)
        limiter.allow("a", 900)

        limiter.prune(1_500)

        # После фильтрации осталась одна метка, значит есть место ещё для одной
        assert limiter.allow("a", 1_500) is True
        assert limiter.allow("a", 1_500) is False
