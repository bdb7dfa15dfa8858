"""Tests for per-client rate limiting."""

from concurrent.futures import ThreadPoolExecutor

from photo_nutrition.services.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_admits_up_to_limit_then_rejects() -> None:
    limiter = RateLimiter(max_requests=20, window_seconds=900, clock=FakeClock())

    decisions = [limiter.admit("10.0.0.1") for _ in range(21)]

    assert all(decision.allowed for decision in decisions[:20])
    assert [decision.remaining for decision in decisions[:3]] == [19, 18, 17]
    assert decisions[19].remaining == 0
    rejected = decisions[20]
    assert not rejected.allowed
    assert rejected.remaining == 0
    assert rejected.retry_after_seconds == 900


def test_retry_after_counts_down_to_window_end() -> None:
    clock = FakeClock()
    limiter = RateLimiter(max_requests=1, window_seconds=900, clock=clock)
    limiter.admit("client")

    clock.now += 100.5
    decision = limiter.admit("client")

    assert not decision.allowed
    assert decision.retry_after_seconds == 800


def test_window_resets_after_expiry() -> None:
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=900, clock=clock)
    for _ in range(3):
        limiter.admit("client")

    clock.now += 900
    assert not limiter.admit("client").allowed

    clock.now += 0.5
    decision = limiter.admit("client")

    assert decision.allowed
    assert decision.remaining == 1
    quota = limiter.quota_for("client")
    assert quota is not None
    assert quota.count == 1
    assert quota.window_start == clock.now


def test_clients_are_counted_independently() -> None:
    limiter = RateLimiter(max_requests=1, clock=FakeClock())

    assert limiter.admit("a").allowed
    assert not limiter.admit("a").allowed
    assert limiter.admit("b").allowed
    assert limiter.quota_for("unknown") is None


def test_concurrent_admissions_never_exceed_limit() -> None:
    limiter = RateLimiter(max_requests=50, window_seconds=900)

    with ThreadPoolExecutor(max_workers=8) as pool:
        decisions = list(pool.map(lambda _: limiter.admit("shared"), range(200)))

    assert sum(decision.allowed for decision in decisions) == 50
    quota = limiter.quota_for("shared")
    assert quota is not None
    assert quota.count == 200


def test_expired_quotas_are_dropped_after_a_window() -> None:
    clock = FakeClock()
    limiter = RateLimiter(max_requests=5, window_seconds=900, clock=clock)
    for index in range(100):
        limiter.admit(f"10.0.0.{index}")

    clock.now += 450
    limiter.admit("10.0.1.1")
    assert limiter.quota_for("10.0.0.0") is not None

    clock.now += 451
    limiter.admit("10.0.1.2")

    assert all(limiter.quota_for(f"10.0.0.{index}") is None for index in range(100))
    assert limiter.quota_for("10.0.1.1") is not None
    assert limiter.quota_for("10.0.1.2") is not None
