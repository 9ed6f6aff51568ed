"""Unit tests for the cleanup scheduler in schedulers.py.

The loop is driven by patching asyncio.sleep; each test cancels the loop
from inside the fake sleep once it has seen enough iterations.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest

from tabsweep.schedulers import run_cleanup_once, run_cleanup_scheduler

if TYPE_CHECKING:
    from conftest import FakeClock, FakeCookieStore

    from tabsweep.state import AppState


class TestRunCleanupOnce:
    async def test_drops_stale_tabs_then_sweeps_orphans(
        self, state: AppState, cookie_store: FakeCookieStore, clock: FakeClock
    ) -> None:
        state.registry.upsert(1, "old.com")
        clock.advance(31 * 60)
        state.registry.upsert(2, "fresh.com")
        cookie_store.add("old.com", "stale")
        cookie_store.add("fresh.com", "live")

        removed = await run_cleanup_once(state)

        assert 1 not in state.registry
        assert 2 in state.registry
        assert removed == 1
        assert cookie_store.removed_names == ["stale"]

    async def test_prunes_domain_cache(self, state: AppState, clock: FakeClock) -> None:
        state.domain_cache.record("a.com")
        clock.advance(10)
        await run_cleanup_once(state)
        assert len(state.domain_cache) == 0

    async def test_skipped_when_disabled(
        self, state: AppState, cookie_store: FakeCookieStore, clock: FakeClock
    ) -> None:
        state.enabled = False
        state.registry.upsert(1, "old.com")
        clock.advance(31 * 60)
        cookie_store.add("c.com", "orphan")

        assert await run_cleanup_once(state) == 0
        assert 1 in state.registry
        assert cookie_store.list_calls == 0

    async def test_skipped_when_shutting_down(
        self, state: AppState, cookie_store: FakeCookieStore
    ) -> None:
        state.shutting_down = True
        assert await run_cleanup_once(state) == 0
        assert cookie_store.list_calls == 0


class TestRunCleanupScheduler:
    async def test_sleeps_configured_interval_before_each_run(self, state: AppState) -> None:
        sleep_durations: list[float] = []

        async def fake_sleep(duration: float) -> None:
            sleep_durations.append(duration)
            if len(sleep_durations) >= 3:
                raise asyncio.CancelledError

        mock_cleanup = AsyncMock(return_value=0)

        with (
            patch("tabsweep.schedulers.run_cleanup_once", mock_cleanup),
            patch("asyncio.sleep", side_effect=fake_sleep),
            pytest.raises(asyncio.CancelledError),
        ):
            await run_cleanup_scheduler(state)

        interval = state.settings.deletion.cleanup_interval_minutes * 60
        assert sleep_durations == [interval, interval, interval]
        assert mock_cleanup.await_count == 2

    async def test_error_does_not_stop_loop(self, state: AppState) -> None:
        sleep_durations: list[float] = []

        async def fake_sleep(duration: float) -> None:
            sleep_durations.append(duration)
            if len(sleep_durations) >= 3:
                raise asyncio.CancelledError

        mock_cleanup = AsyncMock(side_effect=[RuntimeError("boom"), 0])

        with (
            patch("tabsweep.schedulers.run_cleanup_once", mock_cleanup),
            patch("asyncio.sleep", side_effect=fake_sleep),
            pytest.raises(asyncio.CancelledError),
        ):
            await run_cleanup_scheduler(state)

        assert mock_cleanup.await_count == 2
