"""
In-process page cache and the revalidation adapters that invalidate it.

Public GET handlers store rendered responses keyed by public path (listing
responses use the path plus query string). A revalidation of a path drops the
entry for that path and every entry for the same path with a query string.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class RevalidationResult:
    """Result of a revalidation operation."""

    paths_revalidated: list[str] = field(default_factory=list)
    entries_dropped: int = 0


class PageCache:
    """TTL dict keyed by public path, holding at most `max_entries` entries.

    A set on a full cache first sweeps expired entries, then evicts the oldest.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return None
            expires_at, value = hit
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            now = self._clock()
            # Re-inserting keeps the dict ordered by expiry.
            self._entries.pop(key, None)
            if len(self._entries) >= self._max_entries:
                self._sweep(now)
            while self._entries and len(self._entries) >= self._max_entries:
                del self._entries[next(iter(self._entries))]
            self._entries[key] = (now + self._ttl, value)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def invalidate(self, path: str) -> int:
        """Drop `path` and `path?<query>` entries. Returns how many were dropped."""
        with self._lock:
            stale = [k for k in self._entries if k == path or k.startswith(path + "?")]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class PageCacheRevalidator:
    """Revalidates paths by dropping them from a PageCache."""

    def __init__(self, cache: PageCache) -> None:
        self._cache = cache

    def revalidate(self, paths: Iterable[str]) -> RevalidationResult:
        result = RevalidationResult()
        for path in dict.fromkeys(paths):
            result.entries_dropped += self._cache.invalidate(path)
            result.paths_revalidated.append(path)
        logger.info(
            "Revalidated %s (%d cached entries dropped)",
            ", ".join(result.paths_revalidated),
            result.entries_dropped,
        )
        return result


class RecordingRevalidator:
    """Revalidator that only records the paths it was given (tests, CLI)."""

    def __init__(self) -> None:
        self.paths: list[str] = []

    def revalidate(self, paths: Iterable[str]) -> RevalidationResult:
        batch = list(dict.fromkeys(paths))
        self.paths.extend(batch)
        return RevalidationResult(paths_revalidated=batch)
