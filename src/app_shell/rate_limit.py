"""
Fixed-window rate limiter.

A key's first hit opens a window of `window_ms`; hits inside the window are
counted and denied once the count reaches the limit. The first hit after the
window closes starts a new window at 1.

Counters live behind a backend port: an in-process dict for single-worker
deployments and tests, or a shared backend (SQLite) so several workers see
the same counts. If the shared backend fails the limiter logs a warning and
answers from the in-memory backend.
"""

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Protocol

from src.adapters.clock import SystemClock
from src.rules.models import RateLimitRules, RateLimitWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at_ms: int
    retry_after: int | None = None


@dataclass
class CounterEntry:
    count: int
    reset_at_ms: int


def apply_window(
    entry: CounterEntry | None, limit: int, window_ms: int, now_ms: int
) -> tuple[CounterEntry, RateLimitResult]:
    """Fixed-window step: the entry to store and the answer for this hit."""
    if entry is None or now_ms > entry.reset_at_ms:
        fresh = CounterEntry(count=1, reset_at_ms=now_ms + window_ms)
        return fresh, RateLimitResult(
            allowed=True, remaining=max(limit - 1, 0), reset_at_ms=fresh.reset_at_ms
        )

    if entry.count >= limit:
        return entry, RateLimitResult(
            allowed=False,
            remaining=0,
            reset_at_ms=entry.reset_at_ms,
            retry_after=math.ceil((entry.reset_at_ms - now_ms) / 1000),
        )

    entry.count += 1
    return entry, RateLimitResult(
        allowed=True, remaining=limit - entry.count, reset_at_ms=entry.reset_at_ms
    )


class TimePort(Protocol):
    """Protocol for time operations (enables testing with deterministic time)."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...


class CounterBackendPort(Protocol):
    def hit(self, key: str, limit: int, window_ms: int, now_ms: int) -> RateLimitResult:
        """Count one request against key and report whether it is allowed."""
        ...

    def cleanup(self, now_ms: int) -> int:
        """Drop expired entries. Returns how many were removed."""
        ...


class InMemoryCounterBackend:
    """Counters in a dict guarded by a lock."""

    def __init__(self) -> None:
        self._entries: dict[str, CounterEntry] = {}
        self._lock = Lock()

    def hit(self, key: str, limit: int, window_ms: int, now_ms: int) -> RateLimitResult:
        with self._lock:
            entry, result = apply_window(self._entries.get(key), limit, window_ms, now_ms)
            self._entries[key] = entry
            return result

    def cleanup(self, now_ms: int) -> int:
        with self._lock:
            expired = [k for k, e in self._entries.items() if now_ms > e.reset_at_ms]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RateLimiter:
    def __init__(
        self,
        backend: CounterBackendPort | None = None,
        time_port: TimePort | None = None,
        fallback: CounterBackendPort | None = None,
    ):
        self._backend = backend if backend is not None else InMemoryCounterBackend()
        self._fallback = fallback
        self._time = time_port if time_port is not None else SystemClock()

    def _now_ms(self) -> int:
        return int(self._time.now_utc().timestamp() * 1000)

    def check_limit(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        """
        Count a request against key.
        Returns the decision with the remaining allowance and, when denied,
        the seconds to wait.
        """
        now_ms = self._now_ms()
        if limit <= 0:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at_ms=now_ms + window_ms,
                retry_after=math.ceil(window_ms / 1000),
            )

        if self._fallback is None:
            return self._backend.hit(key, limit, window_ms, now_ms)

        try:
            return self._backend.hit(key, limit, window_ms, now_ms)
        except Exception as e:
            logger.warning("Shared rate limit backend failed, using in-memory counters: %s", e)
            return self._fallback.hit(key, limit, window_ms, now_ms)

    def check(self, key: str, window: RateLimitWindow) -> RateLimitResult:
        return self.check_limit(key, window.limit, window.window_ms)

    def cleanup(self) -> int:
        now_ms = self._now_ms()
        removed = self._backend.cleanup(now_ms)
        if self._fallback is not None:
            removed += self._fallback.cleanup(now_ms)
        return removed


def client_identifier(
    forwarded_for: str | None, real_ip: str | None, peer: str | None
) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return peer or "unknown"


def _env_int(env: Mapping[str, str], name: str) -> int | None:
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return None
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return None
    return value


def resolve_limits(rules: RateLimitRules, env: Mapping[str, str] | None = None) -> RateLimitRules:
    """Apply RATE_LIMIT_* environment overrides to the configured limits."""
    env = os.environ if env is None else env

    def override(window: RateLimitWindow, prefix: str) -> RateLimitWindow:
        limit = _env_int(env, prefix)
        window_ms = _env_int(env, f"{prefix}_WINDOW")
        return RateLimitWindow(
            limit=limit if limit is not None else window.limit,
            window_ms=window_ms if window_ms is not None else window.window_ms,
        )

    return rules.model_copy(
        update={
            "backend": env.get("RATE_LIMIT_BACKEND") or rules.backend,
            "newsletter": override(rules.newsletter, "RATE_LIMIT_NEWSLETTER"),
            "general": override(rules.general, "RATE_LIMIT_GENERAL"),
        }
    )
