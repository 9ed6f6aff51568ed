"""Cookie deletion coordinator.

``request_deletion`` is the single entry point for "this domain may no longer
be needed". A call is a no-op when the switch is off, when a pass for the
same domain is already in flight (pending set), or when the domain was purged
within the cache TTL. Otherwise every cookie related to the domain is removed,
each removal attempted once and independently of the others.

Event handlers never await deletions directly: ``submit`` runs a pass as a
tracked background task and ``debounce`` collects domains into a batch that
is submitted once the debounce timer fires without being reset.

The pending-set check and insertion happen with no ``await`` in between, so
on a single event loop two concurrent requests for one domain produce at most
one pass against the cookie store.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Literal

import structlog

from tabsweep.domains import cookie_url, normalise, related
from tabsweep.errors import TabSweepError

if TYPE_CHECKING:
    from tabsweep.models.cookies import Cookie
    from tabsweep.state import AppState

log = structlog.get_logger()

DeletionOutcome = Literal["deleted", "inactive", "invalid", "pending", "cached", "failed"]


class DeletionCoordinator:
    """Deduplicating, debounced, cached cookie purge pipeline."""

    def __init__(self, state: AppState) -> None:
        self._state = state
        self._tasks: set[asyncio.Task[DeletionOutcome]] = set()
        self._batch: set[str] = set()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def batched(self) -> frozenset[str]:
        return frozenset(self._batch)

    # ------------------------------------------------------------------
    # Per-domain deletion
    # ------------------------------------------------------------------

    async def request_deletion(self, domain: str) -> DeletionOutcome:
        state = self._state
        key = normalise(domain)

        if not key:
            return "invalid"
        if not state.active:
            log.debug("deletion_skipped", domain=key, reason="inactive")
            return "inactive"
        if key in state.pending:
            log.debug("deletion_skipped", domain=key, reason="pending")
            return "pending"
        if state.domain_cache.is_fresh(key):
            log.debug("deletion_skipped", domain=key, reason="cached")
            return "cached"

        state.pending.add(key)
        try:
            try:
                cookies = await state.cookie_store.list_all()
            except TabSweepError as exc:
                log.error(
                    "cookie_store_read_failed",
                    domain=key,
                    code=exc.code,
                    message=exc.message,
                )
                return "failed"

            matching = [cookie for cookie in cookies if related(cookie.domain, key)]
            results = await asyncio.gather(*(self._remove_cookie(c) for c in matching))
            removed = sum(results)

            state.domain_cache.record(key)
            log.info(
                "cookies_deleted",
                domain=key,
                matched=len(matching),
                removed=removed,
                failed=len(matching) - removed,
            )
            return "deleted"
        finally:
            state.pending.discard(key)

    async def _remove_cookie(self, cookie: Cookie) -> bool:
        url = cookie_url(cookie)
        try:
            removed = await self._state.cookie_store.remove(url, cookie.name)
        except TabSweepError as exc:
            log.warning(
                "cookie_remove_failed",
                name=cookie.name,
                url=url,
                code=exc.code,
                message=exc.message,
            )
            return False
        if not removed:
            log.warning("cookie_remove_failed", name=cookie.name, url=url, reason="rejected")
        return removed

    # ------------------------------------------------------------------
    # Background submission and debounce
    # ------------------------------------------------------------------

    def submit(self, domain: str) -> asyncio.Task[DeletionOutcome]:
        """Run ``request_deletion`` in the background and return its task."""
        task = asyncio.create_task(self._run(domain), name=f"tabsweep-delete:{domain}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, domain: str) -> DeletionOutcome:
        try:
            return await self.request_deletion(domain)
        except Exception:
            log.error("deletion_task_error", domain=domain, exc_info=True)
            return "failed"

    def debounce(self, domain: str) -> None:
        """Add ``domain`` to the current batch and restart the debounce timer."""
        self._batch.add(domain)
        if self._timer is not None:
            self._timer.cancel()
        delay = self._state.settings.deletion.debounce_ms / 1000
        self._timer = asyncio.get_running_loop().call_later(delay, self.flush)

    def flush(self) -> list[asyncio.Task[DeletionOutcome]]:
        """Submit the current batch now, one pass per domain."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        batch, self._batch = self._batch, set()
        if batch:
            log.debug("debounce_batch_flushed", domains=sorted(batch))
        return [self.submit(domain) for domain in sorted(batch)]

    def cancel_batch(self) -> None:
        """Drop the pending batch without running it."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._batch.clear()

    async def wait_idle(self) -> None:
        """Wait until every submitted pass has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        """Drop the batch and let in-flight passes finish; nothing is cancelled."""
        self.cancel_batch()
        await self.wait_idle()

    # ------------------------------------------------------------------
    # Orphan sweep
    # ------------------------------------------------------------------

    async def sweep_orphans(self) -> int:
        """Remove every cookie related to no domain a tracked tab still holds.

        Catch-all for cookies missed by event-driven deletion (dropped events,
        crashes). Returns the number of cookies removed.
        """
        state = self._state
        if not state.active:
            return 0

        referenced = state.registry.snapshot_domains()
        try:
            cookies = await state.cookie_store.list_all()
        except TabSweepError as exc:
            log.error("orphan_sweep_read_failed", code=exc.code, message=exc.message)
            return 0

        orphaned = [
            cookie
            for cookie in cookies
            if cookie.domain and not any(related(cookie.domain, d) for d in referenced)
        ]
        if not orphaned:
            log.debug("orphan_sweep_complete", referenced=len(referenced), removed=0)
            return 0

        log.info("orphan_cookies_found", count=len(orphaned), referenced=len(referenced))
        removed = 0
        for cookie in orphaned:
            if await self._remove_cookie(cookie):
                removed += 1
        log.info(
            "orphan_sweep_complete",
            referenced=len(referenced),
            removed=removed,
            failed=len(orphaned) - removed,
        )
        return removed
