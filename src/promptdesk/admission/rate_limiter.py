"""
Rate limiting -- fixed-window admission control per (policy, identity).

Each policy counts requests in a window that starts on the first request for
a key and lasts window_seconds. Once the clock passes reset_time the entry is
re-initialised on the next read (no carry-over, not a sliding window). A
request is admitted only if every policy checked for it allows it.

    limiter = RateLimiter(default_policies())
    decision = limiter.check_many([("ip:1.2.3.4", "default"), ("ip:1.2.3.4", "burst")])
    if not decision.allowed:
        headers = rate_limit_headers(decision.most_restrictive)

The store serialises increment-and-fetch with a lock so the count holds under
threaded servers too. The sweep only bounds memory; correctness never
depends on it.
"""

import ipaddress
import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping

from ..config import RateLimitSettings

logger = logging.getLogger(__name__)

IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "cf-connecting-ip",
    "x-client-ip",
    "x-forwarded",
    "forwarded",
)
SESSION_PREFIX_LENGTH = 32


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass(frozen=True)
class RateLimitPolicy:
    """A named window policy.

    Attributes:
        name: Policy key ("default", "burst", "strict").
        window_seconds: Window length.
        max_requests: Requests admitted per window.
        skip_failed_requests: Failed requests are refunded after the fact.
    """

    name: str
    window_seconds: float
    max_requests: int
    skip_failed_requests: bool = False


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float
    first_request: float


@dataclass
class RateLimitDecision:
    """Outcome of one policy check. reset is an epoch timestamp in seconds."""

    allowed: bool
    limit: int
    remaining: int
    reset: float
    retry_after: int | None = None
    policy: str = ""


@dataclass
class CompositeDecision:
    """AND of several policy decisions; most_restrictive has the smallest remaining."""

    allowed: bool
    results: list[RateLimitDecision] = field(default_factory=list)
    most_restrictive: RateLimitDecision | None = None


# =============================================================================
# STORE
# =============================================================================


class MemoryStore:
    """In-process window store. One entry per "policy:identity" key."""

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 300):
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> RateLimitEntry | None:
        """Current entry, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() > entry.reset_time:
                return None
            return RateLimitEntry(entry.count, entry.reset_time, entry.first_request)

    def increment(self, key: str, window_seconds: float) -> RateLimitEntry:
        """Count one request and return a snapshot of the updated entry."""
        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep_locked(now)

            entry = self._entries.get(key)
            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + window_seconds, first_request=now)
                self._entries[key] = entry
            else:
                entry.count += 1
            return RateLimitEntry(entry.count, entry.reset_time, entry.first_request)

    def decrement(self, key: str) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.count > 0:
                entry.count -= 1

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            logger.debug(f"[RateLimit] Swept {len(expired)} expired entries")
        return len(expired)

    def stats(self) -> dict:
        with self._lock:
            now = self._clock()
            active = sum(1 for entry in self._entries.values() if now <= entry.reset_time)
            return {"totalEntries": len(self._entries), "activeEntries": active}


# =============================================================================
# LIMITER
# =============================================================================


def default_policies(settings: RateLimitSettings | None = None) -> dict[str, RateLimitPolicy]:
    settings = settings or RateLimitSettings()
    return {
        "default": RateLimitPolicy("default", settings.default_window, settings.default_max),
        "strict": RateLimitPolicy("strict", settings.strict_window, settings.strict_max),
        "burst": RateLimitPolicy(
            "burst", settings.burst_window, settings.burst_max, skip_failed_requests=True
        ),
    }


class RateLimiter:
    """Checks identities against named policies."""

    def __init__(
        self,
        policies: Mapping[str, RateLimitPolicy] | None = None,
        store: MemoryStore | None = None,
    ):
        self._policies = dict(policies or default_policies())
        self._store = store if store is not None else MemoryStore()

    @property
    def policies(self) -> dict[str, RateLimitPolicy]:
        return dict(self._policies)

    @property
    def store(self) -> MemoryStore:
        return self._store

    def policy(self, name: str) -> RateLimitPolicy:
        if name not in self._policies:
            raise KeyError(f"Unknown rate limit policy: {name}")
        return self._policies[name]

    @staticmethod
    def _key(identity: str, policy: RateLimitPolicy) -> str:
        return f"{policy.name}:{identity}"

    def _decide(self, entry: RateLimitEntry, policy: RateLimitPolicy) -> RateLimitDecision:
        allowed = entry.count <= policy.max_requests
        retry_after = None
        if not allowed:
            retry_after = max(0, math.ceil(entry.reset_time - self._store.now()))
        return RateLimitDecision(
            allowed=allowed,
            limit=policy.max_requests,
            remaining=max(0, policy.max_requests - entry.count),
            reset=entry.reset_time,
            retry_after=retry_after,
            policy=policy.name,
        )

    def check(self, identity: str, policy_name: str = "default") -> RateLimitDecision:
        """Count this request against one policy and decide."""
        policy = self.policy(policy_name)
        entry = self._store.increment(self._key(identity, policy), policy.window_seconds)
        decision = self._decide(entry, policy)
        if not decision.allowed:
            logger.warning(
                f"[RateLimit] {mask_identity(identity)} exceeded {policy.name} "
                f"({policy.max_requests}/{policy.window_seconds:.0f}s)"
            )
        return decision

    def check_many(self, checks: list[tuple[str, str]]) -> CompositeDecision:
        """Check (identity, policy) pairs; admitted only if all allow."""
        results = [self.check(identity, policy_name) for identity, policy_name in checks]
        if not results:
            return CompositeDecision(allowed=True)
        return CompositeDecision(
            allowed=all(r.allowed for r in results),
            results=results,
            most_restrictive=min(results, key=lambda r: r.remaining),
        )

    def status(self, identity: str, policy_name: str = "default") -> RateLimitDecision:
        """Read-only view of the current window; does not count a request."""
        policy = self.policy(policy_name)
        entry = self._store.get(self._key(identity, policy))
        if entry is None:
            return RateLimitDecision(
                allowed=True,
                limit=policy.max_requests,
                remaining=policy.max_requests,
                reset=self._store.now() + policy.window_seconds,
                policy=policy.name,
            )
        return self._decide(entry, policy)

    def reset(self, identity: str, policy_name: str = "default") -> None:
        self._store.delete(self._key(identity, self.policy(policy_name)))

    def refund_failed(self, checks: list[tuple[str, str]]) -> None:
        """Undo the count of a failed request for policies that skip failures."""
        for identity, policy_name in checks:
            policy = self.policy(policy_name)
            if policy.skip_failed_requests:
                self._store.decrement(self._key(identity, policy))


# =============================================================================
# HTTP HELPERS
# =============================================================================


def rate_limit_headers(decision: RateLimitDecision | None) -> dict[str, str]:
    if decision is None:
        return {}
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(math.ceil(decision.reset)),
    }
    if decision.retry_after is not None:
        headers["Retry-After"] = str(decision.retry_after)
    return headers


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def client_ip(headers: Mapping[str, str], fallback: str | None = None) -> str:
    """First valid address from the forwarding headers, else fallback, else "unknown"."""
    for name in IP_HEADERS:
        value = headers.get(name)
        if not value:
            continue
        candidate = value.split(",")[0].strip()
        if name == "forwarded" and "for=" in candidate:
            candidate = candidate.split("for=", 1)[1].split(";")[0].strip('"[] ')
        if _is_ip(candidate):
            return candidate
    if fallback and _is_ip(fallback):
        return fallback
    return "unknown"


def session_id(headers: Mapping[str, str]) -> str | None:
    """x-session-id header, or a prefix of the bearer token."""
    explicit = headers.get("x-session-id")
    if explicit:
        return explicit
    auth = headers.get("authorization", "")
    if auth.startswith("Bearer "):
        token = auth[len("Bearer "):].strip()
        return token[:SESSION_PREFIX_LENGTH] or None
    return None


def mask_identity(identity: str) -> str:
    """Replace the last two characters with XX for logging."""
    if len(identity) <= 2:
        return "XX"
    return identity[:-2] + "XX"
