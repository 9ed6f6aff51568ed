"""Lifecycle driver: turns browser events and toggle messages into registry
and coordinator calls.

Events are handled one at a time in arrival order. Deletions are submitted to
the coordinator and run in the background, so a handler returns before the
cookies it implicated are gone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from tabsweep.domains import extract_domain, is_trackable
from tabsweep.flags import ENABLED_KEY, load_enabled
from tabsweep.models.events import (
    HistoryStateUpdated,
    StateResponse,
    TabActivated,
    TabCreated,
    TabRemoved,
    TabUpdated,
    ToggleStateChanged,
    WindowRemoved,
)

if TYPE_CHECKING:
    from tabsweep.coordinator import DeletionCoordinator
    from tabsweep.models.events import BrowserEvent, ToggleMessage
    from tabsweep.state import AppState

log = structlog.get_logger()


class LifecycleDriver:
    def __init__(self, state: AppState) -> None:
        if state.coordinator is None:
            raise ValueError("AppState.coordinator must be set before building the driver")
        self._state = state
        self._coordinator: DeletionCoordinator = state.coordinator

    @property
    def coordinator(self) -> DeletionCoordinator:
        return self._coordinator

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    async def startup(self) -> None:
        """Reset tracking and read the enabled flag once."""
        state = self._state
        state.reset()
        state.shutting_down = False
        state.enabled = await load_enabled(state.flag_store)
        log.info("driver_started", enabled=state.enabled)

    async def shutdown(self) -> None:
        """Stop all further deletions and forget every tab."""
        state = self._state
        state.shutting_down = True
        self._coordinator.cancel_batch()
        cleared = state.registry.clear()
        log.info("driver_shutdown", tabs_cleared=cleared)

    # ------------------------------------------------------------------
    # Browser events
    # ------------------------------------------------------------------

    async def handle_event(self, event: BrowserEvent) -> None:
        if self._state.shutting_down:
            log.debug("event_ignored", type=event.type, reason="shutting_down")
            return
        if isinstance(event, TabCreated):
            self._on_tab_created(event)
        elif isinstance(event, TabUpdated):
            self._on_tab_updated(event)
        elif isinstance(event, HistoryStateUpdated):
            self._on_history_state_updated(event)
        elif isinstance(event, TabActivated):
            self._on_tab_activated(event)
        elif isinstance(event, TabRemoved):
            self._on_tab_removed(event)
        elif isinstance(event, WindowRemoved):
            self._on_window_removed(event)

    def _on_tab_created(self, event: TabCreated) -> None:
        if event.incognito:
            log.debug("incognito_tab_skipped", tab_id=event.tab_id)
            return
        if not is_trackable(event.url):
            return
        domain = extract_domain(event.url)
        if domain is None:
            return
        self._state.registry.upsert(event.tab_id, domain, window_id=event.window_id, url=event.url)

    def _on_tab_updated(self, event: TabUpdated) -> None:
        if event.url is None and event.status != "complete":
            return
        if event.incognito:
            return
        self._navigate(event.tab_id, event.tab_url or event.url, window_id=event.window_id)

    def _on_history_state_updated(self, event: HistoryStateUpdated) -> None:
        # Only tabs already tracked; skipped tabs (incognito, untrackable) stay skipped
        if event.incognito or event.tab_id not in self._state.registry:
            return
        self._navigate(event.tab_id, event.url, window_id=None)

    def _navigate(self, tab_id: int, url: str | None, *, window_id: int | None) -> None:
        if not is_trackable(url):
            return
        domain = extract_domain(url)
        if domain is None:
            return
        previous = self._state.registry.upsert(tab_id, domain, window_id=window_id, url=url)
        if previous is not None and previous != domain:
            log.debug("tab_domain_changed", tab_id=tab_id, previous=previous, domain=domain)
            self._coordinator.submit(previous)

    def _on_tab_activated(self, event: TabActivated) -> None:
        if not self._state.active:
            return
        for domain in sorted(self._state.registry.domains_except(event.tab_id)):
            self._coordinator.debounce(domain)

    def _on_tab_removed(self, event: TabRemoved) -> None:
        entry = self._state.registry.remove(event.tab_id)
        if entry is not None:
            self._coordinator.submit(entry.domain)

    def _on_window_removed(self, event: WindowRemoved) -> None:
        entries = self._state.registry.remove_by_window(event.window_id)
        if entries:
            log.debug("window_tabs_removed", window_id=event.window_id, count=len(entries))
        for entry in entries:
            self._coordinator.submit(entry.domain)

    # ------------------------------------------------------------------
    # Toggle surface
    # ------------------------------------------------------------------

    async def handle_message(self, message: ToggleMessage) -> StateResponse:
        state = self._state
        if isinstance(message, ToggleStateChanged):
            state.enabled = message.enabled
            await state.flag_store.set(ENABLED_KEY, message.enabled)
            if not message.enabled:
                self._coordinator.cancel_batch()
                cleared = state.registry.clear()
                log.info("feature_disabled", tabs_cleared=cleared)
            else:
                log.info("feature_enabled")
        # GetState needs no action beyond the reply
        return StateResponse(enabled=state.enabled)
