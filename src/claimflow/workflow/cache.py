"""Short-lived result cache for computed analyses.

Entries expire lazily: an expired entry is dropped when it is read, or
when ``purge_expired()`` is called by the maintenance workflow. The cache
is plain process state shared by every workflow run it is handed to;
concurrent writers to the same key simply overwrite each other.
"""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .constants import WorkflowConstants

V = TypeVar("V")


def normalize_claim(claim_text: str) -> str:
    """Lower-case, trim and truncate a claim for fingerprinting."""
    return claim_text.strip().lower()[: WorkflowConstants.CACHE_KEY_MAX_CHARS]


def cache_key(claim_text: str) -> str:
    """Cache key for the analysis of a claim.

    Claims differing only in case or surrounding whitespace share a key.
    """
    digest = hashlib.sha256(normalize_claim(claim_text).encode("utf-8")).hexdigest()
    return f"{WorkflowConstants.CACHE_KEY_PREFIX}{digest}"


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class WorkflowCache(Generic[V]):
    """In-memory key/value store with per-entry TTL.

    Example:
        cache = WorkflowCache(default_ttl_ms=60_000)
        cache.set(cache_key(claim), analysis)
        cache.get(cache_key(claim))  # analysis, until the TTL elapses
    """

    def __init__(
        self,
        default_ttl_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            default_ttl_ms: TTL for entries set without one. If None, uses
                            the configured ``cache_ttl_ms``.
            clock: Monotonic clock in seconds (injectable for tests).
        """
        if default_ttl_ms is None:
            from ..core.config import get_config

            default_ttl_ms = get_config().cache_ttl_ms
        self._default_ttl_ms = default_ttl_ms
        self._clock = clock
        self._entries: dict[str, _Entry[V]] = {}
        self.hits = 0
        self.misses = 0

    @property
    def default_ttl_ms(self) -> int:
        return self._default_ttl_ms

    def set(self, key: str, value: V, ttl_ms: int | None = None) -> None:
        ttl = self._default_ttl_ms if ttl_ms is None else ttl_ms
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl / 1000.0)

    def get(self, key: str) -> V | None:
        """Return the live value for ``key``, dropping it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        return len(self._entries)

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "default_ttl_ms": self._default_ttl_ms,
        }
