"""Shared test fixtures for the tabsweep test suite."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import aiosqlite
import pytest

from tabsweep.cache import DomainCache
from tabsweep.config import Settings
from tabsweep.coordinator import DeletionCoordinator
from tabsweep.domains import cookie_url
from tabsweep.driver import LifecycleDriver
from tabsweep.errors import ErrorCode, TabSweepError
from tabsweep.flags import FlagStore
from tabsweep.models.cookies import Cookie
from tabsweep.registry import TabRegistry
from tabsweep.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


class FakeClock:
    """Manually advanced clock for registry and cache timing."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCookieStore:
    """In-memory cookie store that records every call made against it."""

    def __init__(self, cookies: list[Cookie] | None = None) -> None:
        self.cookies: list[Cookie] = list(cookies or [])
        self.list_calls = 0
        self.removed: list[tuple[str, str]] = []
        self.fail_list = False
        self.fail_names: set[str] = set()
        self.reject_names: set[str] = set()
        # When set, list_all() blocks until the event is set
        self.gate: asyncio.Event | None = None

    def add(self, domain: str, name: str, *, path: str = "/", secure: bool = False) -> None:
        self.cookies.append(Cookie(domain=domain, name=name, path=path, secure=secure))

    @property
    def removed_names(self) -> list[str]:
        return [name for _, name in self.removed]

    async def list_all(self) -> list[Cookie]:
        self.list_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_list:
            raise TabSweepError(
                code=ErrorCode.COOKIE_STORE_UNAVAILABLE,
                message="bridge down",
                suggestion="",
                recoverable=True,
            )
        return list(self.cookies)

    async def remove(self, url: str, name: str) -> bool:
        if name in self.fail_names:
            raise TabSweepError(
                code=ErrorCode.COOKIE_REMOVE_FAILED,
                message=f"cannot remove {name}",
                suggestion="",
                recoverable=True,
            )
        if name in self.reject_names:
            return False
        for cookie in self.cookies:
            if cookie.name == name and cookie_url(cookie) == url:
                self.cookies.remove(cookie)
                self.removed.append((url, name))
                return True
        return False


class MemoryFlagStore:
    """Dict-backed FlagStoreProtocol implementation."""

    def __init__(self, values: dict | None = None) -> None:
        self.values: dict = dict(values or {})

    async def get(self, key: str):
        return self.values.get(key)

    async def set(self, key: str, value) -> None:
        self.values[key] = value


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        tracking={"max_tabs": 100, "stale_after_minutes": 30},
        deletion={"cache_ttl_seconds": 5.0, "debounce_ms": 20, "cleanup_interval_minutes": 30},
    )


@pytest.fixture()
def cookie_store() -> FakeCookieStore:
    return FakeCookieStore()


@pytest.fixture()
def flag_store() -> MemoryFlagStore:
    return MemoryFlagStore({"enabled": True})


@pytest.fixture()
async def sqlite_flag_store() -> AsyncGenerator[FlagStore, None]:
    async with aiosqlite.connect(":memory:") as db:
        store = FlagStore(db)
        await store.init_db()
        yield store


@pytest.fixture()
async def state(
    settings: Settings,
    clock: FakeClock,
    cookie_store: FakeCookieStore,
    flag_store: MemoryFlagStore,
) -> AsyncGenerator[AppState, None]:
    """Enabled AppState wired to in-memory collaborators."""
    app_state = AppState(
        settings=settings,
        registry=TabRegistry(settings.tracking.max_tabs, clock=clock),
        domain_cache=DomainCache(settings.deletion.cache_ttl_seconds, clock=clock),
        cookie_store=cookie_store,
        flag_store=flag_store,
        enabled=True,
    )
    app_state.coordinator = DeletionCoordinator(app_state)
    yield app_state
    await app_state.coordinator.aclose()


@pytest.fixture()
def coordinator(state: AppState) -> DeletionCoordinator:
    assert state.coordinator is not None
    return state.coordinator


@pytest.fixture()
def driver(state: AppState) -> LifecycleDriver:
    return LifecycleDriver(state)
