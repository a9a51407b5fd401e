"""
tests/test_ratelimit.py -- Unit tests for auth/ratelimit.py.

FixedWindowRateLimiter:
  - exactly max_attempts allowed per window, the next one rejected
  - counter resets once the window has elapsed (1-second window, real clock)
  - keys are independent
  - rejected attempts keep counting; retry_after covers the rest of the window
  - concurrent callers on one key never exceed the ceiling

ClientKeyResolver:
  - X-Forwarded-For ignored unless the socket peer is a trusted proxy
  - behind a trusted proxy, the right-most untrusted hop is the key
"""

from __future__ import annotations

import threading
import time

import pytest
from starlette.requests import Request

from auth.ratelimit import ClientKeyResolver, FixedWindowRateLimiter


def _request(peer: str | None, forwarded_for: str | None = None) -> Request:
    headers = []
    if forwarded_for is not None:
        headers.append((b"x-forwarded-for", forwarded_for.encode("latin-1")))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/users/login",
        "headers": headers,
        "client": (peer, 50000) if peer else None,
    }
    return Request(scope)


class TestFixedWindowRateLimiter:
    def test_sixth_attempt_in_window_is_rejected(self) -> None:
        limiter = FixedWindowRateLimiter(max_attempts=5, window_seconds=900)
        results = [limiter.allow("1.2.3.4") for _ in range(6)]
        assert results == [True, True, True, True, True, False]

    def test_rejected_attempts_still_count(self) -> None:
        limiter = FixedWindowRateLimiter(max_attempts=5, window_seconds=900)
        for _ in range(20):
            limiter.allow("k")
        assert limiter.allow("k") is False

    def test_window_reset_allows_again(self) -> None:
        limiter = FixedWindowRateLimiter(max_attempts=2, window_seconds=1)
        for _ in range(3):
            limiter.allow("k")
        assert limiter.allow("k") is False
        time.sleep(1.1)
        assert limiter.allow("k") is True

    def test_keys_are_independent(self) -> None:
        limiter = FixedWindowRateLimiter(max_attempts=1, window_seconds=60)
        assert limiter.allow("a") is True
        assert limiter.allow("a") is False
        assert limiter.allow("b") is True

    def test_retry_after_covers_rest_of_window(self) -> None:
        limiter = FixedWindowRateLimiter(max_attempts=1, window_seconds=900)
        assert limiter.retry_after("k") == 0
        limiter.allow("k")
        assert 899 <= limiter.retry_after("k") <= 900

    def test_reset_single_key_and_all(self) -> None:
        limiter = FixedWindowRateLimiter(max_attempts=1, window_seconds=60)
        limiter.allow("a")
        limiter.allow("b")
        limiter.reset("a")
        assert limiter.allow("a") is True
        assert limiter.allow("b") is False
        limiter.reset()
        assert limiter.allow("b") is True

    def test_separate_limiters_do_not_share_counts(self) -> None:
        first = FixedWindowRateLimiter(max_attempts=1, window_seconds=60)
        second = FixedWindowRateLimiter(max_attempts=1, window_seconds=60)
        assert first.allow("k") is True
        assert second.allow("k") is True

    def test_concurrent_attempts_never_exceed_ceiling(self) -> None:
        limiter = FixedWindowRateLimiter(max_attempts=5, window_seconds=900)
        allowed: list[bool] = []
        allowed_lock = threading.Lock()
        barrier = threading.Barrier(20)

        def attempt() -> None:
            barrier.wait()
            ok = limiter.allow("same-client")
            with allowed_lock:
                allowed.append(ok)

        threads = [threading.Thread(target=attempt) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(allowed) == 20
        assert 1 <= allowed.count(True) <= 5

    @pytest.mark.parametrize("max_attempts, window", [(0, 60), (5, 0)])
    def test_rejects_nonsense_limits(self, max_attempts: int, window: int) -> None:
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(max_attempts=max_attempts, window_seconds=window)


class TestClientKeyResolver:
    def test_no_trusted_proxies_uses_peer_address(self) -> None:
        resolver = ClientKeyResolver()
        assert resolver.client_key(_request("203.0.113.9")) == "203.0.113.9"

    def test_spoofed_header_from_untrusted_peer_is_ignored(self) -> None:
        """A client cannot pick its own bucket by sending X-Forwarded-For."""
        resolver = ClientKeyResolver(["10.0.0.1"])
        req = _request("203.0.113.9", forwarded_for="198.51.100.1")
        assert resolver.client_key(req) == "203.0.113.9"

    def test_trusted_proxy_header_is_used(self) -> None:
        resolver = ClientKeyResolver(["10.0.0.1"])
        req = _request("10.0.0.1", forwarded_for="198.51.100.7")
        assert resolver.client_key(req) == "198.51.100.7"

    def test_right_most_untrusted_hop_wins(self) -> None:
        """The left part of the header is client-controlled; only the hop our proxy saw counts."""
        resolver = ClientKeyResolver(["10.0.0.0/8"])
        req = _request("10.0.0.1", forwarded_for="1.1.1.1, 198.51.100.7, 10.0.0.2")
        assert resolver.client_key(req) == "198.51.100.7"

    def test_all_hops_trusted_falls_back_to_left_most(self) -> None:
        resolver = ClientKeyResolver(["10.0.0.0/8"])
        req = _request("10.0.0.1", forwarded_for="10.1.1.1, 10.0.0.2")
        assert resolver.client_key(req) == "10.1.1.1"

    def test_trusted_proxy_without_header_uses_peer(self) -> None:
        resolver = ClientKeyResolver(["10.0.0.1"])
        assert resolver.client_key(_request("10.0.0.1")) == "10.0.0.1"

    def test_non_ip_peer_is_never_trusted(self) -> None:
        resolver = ClientKeyResolver(["10.0.0.0/8"])
        req = _request("testclient", forwarded_for="198.51.100.7")
        assert resolver.client_key(req) == "testclient"

    def test_missing_client_is_unknown(self) -> None:
        assert ClientKeyResolver().client_key(_request(None)) == "unknown"
