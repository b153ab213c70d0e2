"""
Rate Limit Evals -- fixed windows, multi-policy admission, refunds, identities.

All windows run on a FakeClock; nothing sleeps.
"""

import pytest

from src.promptdesk.admission import (
    MemoryStore,
    RateLimiter,
    RateLimitPolicy,
    client_ip,
    mask_identity,
    rate_limit_headers,
    session_id,
)


@pytest.fixture
def limiter(clock):
    return RateLimiter(
        {
            "default": RateLimitPolicy("default", 900, 100),
            "burst": RateLimitPolicy("burst", 60, 5, skip_failed_requests=True),
            "strict": RateLimitPolicy("strict", 60, 10),
        },
        MemoryStore(clock=clock),
    )


class TestFixedWindow:
    """Eval: max_requests per window, then rejection until reset."""

    def test_sixth_request_denied(self, limiter, clock):
        decisions = [limiter.check("ip:1.2.3.4", "burst") for _ in range(6)]
        assert all(d.allowed for d in decisions[:5])
        assert [d.remaining for d in decisions[:5]] == [4, 3, 2, 1, 0]

        denied = decisions[5]
        assert not denied.allowed
        assert denied.remaining == 0
        assert denied.retry_after == 60

    def test_new_window_after_reset(self, limiter, clock):
        for _ in range(6):
            limiter.check("ip:1.2.3.4", "burst")
        clock.advance(61)
        decision = limiter.check("ip:1.2.3.4", "burst")
        assert decision.allowed
        assert decision.remaining == 4

    def test_identities_are_independent(self, limiter):
        for _ in range(5):
            limiter.check("ip:1.1.1.1", "burst")
        assert limiter.check("ip:2.2.2.2", "burst").allowed

    def test_retry_after_shrinks_with_time(self, limiter, clock):
        for _ in range(5):
            limiter.check("ip:1.2.3.4", "burst")
        clock.advance(20.5)
        assert limiter.check("ip:1.2.3.4", "burst").retry_after == 40

    def test_unknown_policy(self, limiter):
        with pytest.raises(KeyError):
            limiter.check("ip:1.2.3.4", "nope")


class TestMultiPolicy:
    """Eval: a request is admitted only if every policy allows it."""

    def test_any_denial_rejects(self, limiter):
        checks = [("ip:1.2.3.4", "default"), ("ip:1.2.3.4", "burst")]
        for _ in range(5):
            assert limiter.check_many(checks).allowed
        decision = limiter.check_many(checks)
        assert not decision.allowed
        assert decision.most_restrictive.policy == "burst"
        assert [r.allowed for r in decision.results] == [True, False]

    def test_most_restrictive_has_smallest_remaining(self, limiter):
        decision = limiter.check_many([("ip:9.9.9.9", "default"), ("ip:9.9.9.9", "strict")])
        assert decision.allowed
        assert decision.most_restrictive.policy == "strict"
        assert decision.most_restrictive.remaining == 9

    def test_no_checks_admits(self, limiter):
        decision = limiter.check_many([])
        assert decision.allowed
        assert decision.most_restrictive is None


class TestRefundAndStatus:
    """Eval: failed requests refund only skip-failed policies; status never counts."""

    def test_refund_only_skip_failed_policies(self, limiter):
        checks = [("ip:1.2.3.4", "default"), ("ip:1.2.3.4", "burst")]
        limiter.check_many(checks)
        limiter.refund_failed(checks)
        assert limiter.status("ip:1.2.3.4", "burst").remaining == 5
        assert limiter.status("ip:1.2.3.4", "default").remaining == 99

    def test_status_is_read_only(self, limiter):
        limiter.check("ip:1.2.3.4", "burst")
        limiter.status("ip:1.2.3.4", "burst")
        assert limiter.status("ip:1.2.3.4", "burst").remaining == 4

    def test_reset_clears_window(self, limiter):
        for _ in range(6):
            limiter.check("ip:1.2.3.4", "burst")
        limiter.reset("ip:1.2.3.4", "burst")
        assert limiter.check("ip:1.2.3.4", "burst").allowed


class TestStore:
    """Eval: expired entries are swept; counting never depends on the sweep."""

    def test_sweep_removes_expired(self, clock):
        store = MemoryStore(clock=clock, sweep_interval=10_000)
        store.increment("burst:a", 60)
        store.increment("default:a", 900)
        clock.advance(61)
        assert store.stats() == {"totalEntries": 2, "activeEntries": 1}
        assert store.sweep() == 1
        assert store.get("burst:a") is None
        assert store.get("default:a").count == 1


class TestHeaders:
    """Eval: X-RateLimit-* headers and Retry-After on rejection."""

    def test_headers_on_allowed(self, limiter, clock):
        headers = rate_limit_headers(limiter.check("ip:1.2.3.4", "burst"))
        assert headers["X-RateLimit-Limit"] == "5"
        assert headers["X-RateLimit-Remaining"] == "4"
        assert headers["X-RateLimit-Reset"] == str(int(clock() + 60))
        assert "Retry-After" not in headers

    def test_retry_after_on_denied(self, limiter):
        for _ in range(5):
            limiter.check("ip:1.2.3.4", "burst")
        headers = rate_limit_headers(limiter.check("ip:1.2.3.4", "burst"))
        assert headers["Retry-After"] == "60"

    def test_no_decision(self):
        assert rate_limit_headers(None) == {}


class TestIdentity:
    """Eval: client IP and session resolution."""

    def test_first_forwarded_address(self):
        assert client_ip({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}) == "203.0.113.7"

    def test_header_priority(self):
        headers = {"x-real-ip": "198.51.100.2", "cf-connecting-ip": "198.51.100.3"}
        assert client_ip(headers) == "198.51.100.2"

    def test_forwarded_header(self):
        assert client_ip({"forwarded": 'for="192.0.2.60";proto=http'}) == "192.0.2.60"

    def test_invalid_values_fall_back(self):
        assert client_ip({"x-forwarded-for": "garbage"}, fallback="127.0.0.1") == "127.0.0.1"
        assert client_ip({}) == "unknown"

    def test_session_from_header_or_bearer(self):
        assert session_id({"x-session-id": "abc"}) == "abc"
        token = "t" * 40
        assert session_id({"authorization": f"Bearer {token}"}) == "t" * 32
        assert session_id({}) is None

    def test_mask_identity(self):
        assert mask_identity("ip:1.2.3.4") == "ip:1.2.3XX"
        assert mask_identity("ip:203.0.113.77") == "ip:203.0.113.XX"
        assert mask_identity("a") == "XX"
