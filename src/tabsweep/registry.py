"""Bounded in-memory index of which tab holds which domain.

The registry never triggers cookie deletion itself. Capacity eviction and the
stale sweep only bound memory; the caller decides what an orphaned domain
means by looking at the values returned from ``upsert``/``remove``.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from tabsweep.models.tabs import TabEntry

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()


class TabRegistry:
    """Map of ``tab_id`` → ``TabEntry`` holding at most ``max_tabs`` entries."""

    def __init__(self, max_tabs: int, clock: Callable[[], float] = time.monotonic) -> None:
        if max_tabs < 1:
            raise ValueError("max_tabs must be at least 1")
        self._max_tabs = max_tabs
        self._clock = clock
        self._entries: dict[int, TabEntry] = {}

    @property
    def max_tabs(self) -> int:
        return self._max_tabs

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._entries

    def entries(self) -> list[TabEntry]:
        return list(self._entries.values())

    def get(self, tab_id: int) -> TabEntry | None:
        return self._entries.get(tab_id)

    def upsert(
        self,
        tab_id: int,
        domain: str,
        window_id: int | None = None,
        url: str | None = None,
    ) -> str | None:
        """Record ``domain`` for ``tab_id`` and return the domain it replaces.

        A new tab arriving at capacity first evicts the entry with the oldest
        ``last_seen``. Updates to an already-tracked tab never evict. A
        ``window_id`` of ``None`` keeps the window id already on record.
        """
        now = self._clock()
        previous = self._entries.get(tab_id)

        if previous is None and len(self._entries) >= self._max_tabs:
            self._evict_oldest()

        if previous is not None and window_id is None:
            window_id = previous.window_id

        self._entries[tab_id] = TabEntry(
            tab_id=tab_id,
            domain=domain,
            url=url,
            window_id=window_id,
            last_seen=now,
        )
        return previous.domain if previous is not None else None

    def _evict_oldest(self) -> None:
        oldest = min(self._entries.values(), key=lambda entry: entry.last_seen)
        del self._entries[oldest.tab_id]
        log.info(
            "tab_evicted",
            tab_id=oldest.tab_id,
            domain=oldest.domain,
            max_tabs=self._max_tabs,
        )

    def remove(self, tab_id: int) -> TabEntry | None:
        return self._entries.pop(tab_id, None)

    def remove_by_window(self, window_id: int) -> list[TabEntry]:
        removed = [entry for entry in self._entries.values() if entry.window_id == window_id]
        for entry in removed:
            del self._entries[entry.tab_id]
        return removed

    def sweep_stale(self, max_age_seconds: float) -> list[TabEntry]:
        """Drop entries not updated within ``max_age_seconds``, even if the tab is open."""
        cutoff = self._clock() - max_age_seconds
        stale = [entry for entry in self._entries.values() if entry.last_seen < cutoff]
        for entry in stale:
            del self._entries[entry.tab_id]
        if stale:
            log.info("stale_tabs_swept", removed=len(stale), remaining=len(self._entries))
        return stale

    def snapshot_domains(self) -> frozenset[str]:
        """All domains still referenced by at least one tracked tab."""
        return frozenset(entry.domain for entry in self._entries.values())

    def domains_except(self, tab_id: int) -> frozenset[str]:
        return frozenset(
            entry.domain for entry in self._entries.values() if entry.tab_id != tab_id
        )

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count
