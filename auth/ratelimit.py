"""
auth/ratelimit.py -- Per-client attempt counting for the register/login routes.

FixedWindowRateLimiter backs the tight authentication ceiling (default 5
attempts per 15 minutes). The app-wide 100/15min ceiling is slowapi's job
(api/limiter.py); both use ClientKeyResolver to bucket requests.

Counting is delegated to the `limits` package (the engine underneath slowapi):
a fixed-window strategy over in-process MemoryStorage. The window for a key
opens on its first hit, every hit increments the counter (rejected ones
included), and MemoryStorage expires closed windows on its own timer and
guards increments with a lock.

Client key and proxies:
  X-Forwarded-For is set by whoever sent the request, so believing it blindly
  lets an attacker pick a fresh key per attempt and never hit the ceiling.
  ClientKeyResolver only reads the header when the socket peer is a
  configured trusted proxy, and then takes the right-most hop that is not
  itself a trusted proxy (the address the outermost proxy actually saw).

Layer rule: no imports from api/, core/, or places/.
"""

from __future__ import annotations

import ipaddress
import math
import time
from collections.abc import Iterable

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter as _FixedWindowStrategy
from starlette.requests import Request


class FixedWindowRateLimiter:
    """Allow at most max_attempts per client key in each window.

    The window for a key opens on its first attempt and lasts window_seconds.
    Rejected attempts still count, so hammering during a window does not
    shorten it.
    """

    def __init__(self, max_attempts: int, window_seconds: int) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._item = RateLimitItemPerSecond(max_attempts, window_seconds, namespace="AUTH")
        self._storage = MemoryStorage()
        self._strategy = _FixedWindowStrategy(self._storage)

    def allow(self, client_key: str) -> bool:
        """Record one attempt for client_key and return whether it is allowed."""
        return self._strategy.hit(self._item, client_key)

    def retry_after(self, client_key: str) -> int:
        """Seconds until client_key's current window closes (0 if none is open)."""
        reset_at = self._strategy.get_window_stats(self._item, client_key)[0]
        return max(0, math.ceil(reset_at - time.time()))

    def reset(self, client_key: str | None = None) -> None:
        if client_key is None:
            self._storage.reset()
        else:
            self._strategy.clear(self._item, client_key)


class ClientKeyResolver:
    """Derive the rate-limit bucket key for a request.

    Args:
        trusted_proxies: IP addresses or CIDR blocks of reverse proxies that
                         set X-Forwarded-For. Empty means trust no proxy.
    """

    def __init__(self, trusted_proxies: Iterable[str] = ()) -> None:
        self._networks = tuple(ipaddress.ip_network(p.strip(), strict=False) for p in trusted_proxies if p.strip())

    def is_trusted(self, host: str) -> bool:
        try:
            address = ipaddress.ip_address(host)
        except ValueError:
            return False
        return any(address in network for network in self._networks)

    def client_key(self, request: Request) -> str:
        peer = request.client.host if request.client else "unknown"
        if not self.is_trusted(peer):
            return peer

        hops = [h.strip() for h in request.headers.get("X-Forwarded-For", "").split(",") if h.strip()]
        for hop in reversed(hops):
            if not self.is_trusted(hop):
                return hop
        # Every hop is a trusted proxy; the left-most is the closest we have.
        return hops[0] if hops else peer
