"""Background scheduler coroutine for periodic cleanup."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from tabsweep.state import AppState

log = structlog.get_logger()


async def run_cleanup_once(state: AppState) -> int:
    """Drop stale tabs, prune the domain cache, then sweep orphaned cookies.

    Returns the number of orphaned cookies removed. Does nothing while the
    feature is off or the process is shutting down.
    """
    if not state.active or state.coordinator is None:
        log.debug("cleanup_skipped", reason="inactive")
        return 0

    max_age_seconds = state.settings.tracking.stale_after_minutes * 60
    state.registry.sweep_stale(max_age_seconds)
    state.domain_cache.cleanup_expired()
    return await state.coordinator.sweep_orphans()


async def run_cleanup_scheduler(state: AppState) -> None:
    """Run cleanup on the configured interval until cancelled."""
    interval_seconds = state.settings.deletion.cleanup_interval_minutes * 60

    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_cleanup_once(state)
        except Exception:
            log.warning("cleanup_scheduler_error", exc_info=True)
