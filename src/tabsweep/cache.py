"""Short-lived record of domains whose cookies were just purged.

Entries older than the TTL are treated as absent and pruned on access, so a
domain cleaned a moment ago doesn't trigger another round-trip to the cookie
store when tab focus flaps between windows.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()


class DomainCache:
    """In-memory ``domain → last deletion time`` map with a fixed TTL."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._deleted_at: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._deleted_at)

    def is_fresh(self, domain: str) -> bool:
        """True if ``domain`` was recorded less than ``ttl_seconds`` ago."""
        deleted_at = self._deleted_at.get(domain)
        if deleted_at is None:
            return False
        if self._clock() - deleted_at < self._ttl:
            return True
        del self._deleted_at[domain]
        return False

    def record(self, domain: str) -> None:
        self._deleted_at[domain] = self._clock()

    def cleanup_expired(self) -> int:
        """Prune every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [d for d, at in self._deleted_at.items() if now - at >= self._ttl]
        for domain in expired:
            del self._deleted_at[domain]
        if expired:
            log.debug("domain_cache_pruned", removed=len(expired))
        return len(expired)

    def clear(self) -> None:
        self._deleted_at.clear()
