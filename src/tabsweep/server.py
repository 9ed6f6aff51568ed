"""Service entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the Starlette lifespan context manager
- Start the cleanup scheduler
- Serve the bridge endpoints with uvicorn
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import sys
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog
import uvicorn

from tabsweep import __version__
from tabsweep.bridge import HttpCookieStore, build_http_client
from tabsweep.cache import DomainCache
from tabsweep.config import Settings
from tabsweep.coordinator import DeletionCoordinator
from tabsweep.driver import LifecycleDriver
from tabsweep.flags import FlagStore
from tabsweep.registry import TabRegistry
from tabsweep.schedulers import run_cleanup_scheduler
from tabsweep.state import AppState
from tabsweep.transport import build_app

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from contextlib import AbstractAsyncContextManager

    from starlette.applications import Starlette

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State lifecycle
# ---------------------------------------------------------------------------


async def _open_flag_db(settings: Settings) -> aiosqlite.Connection:
    """Open the flag database, falling back to an in-memory one if the file is unusable.

    With the fallback the switch starts disabled and toggles only last for
    this process.
    """
    db_path = Path(settings.storage.db_path).expanduser()
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return await aiosqlite.connect(str(db_path))
    except (OSError, aiosqlite.Error):
        log.error("flag_store_unavailable", path=str(db_path), exc_info=True)
        return await aiosqlite.connect(":memory:")


@asynccontextmanager
async def open_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Build AppState with its collaborators and release them on exit."""
    db = await _open_flag_db(settings)
    flag_store = FlagStore(db)
    try:
        await flag_store.init_db()
    except aiosqlite.Error:
        log.error("flag_store_init_failed", exc_info=True)

    http_client = build_http_client(settings.bridge)

    state = AppState(
        settings=settings,
        registry=TabRegistry(settings.tracking.max_tabs),
        domain_cache=DomainCache(settings.deletion.cache_ttl_seconds),
        cookie_store=HttpCookieStore(http_client),
        flag_store=flag_store,
    )
    state.coordinator = DeletionCoordinator(state)

    try:
        yield state
    finally:
        await http_client.aclose()
        await db.close()


def make_lifespan(settings: Settings) -> Callable[[Starlette], AbstractAsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        """Create and tear down all shared resources for the server's lifetime."""
        log.info("server_starting", version=__version__)

        async with open_state(settings) as state:
            driver = LifecycleDriver(state)
            await driver.startup()
            app.state.driver = driver

            cleanup_task = asyncio.create_task(run_cleanup_scheduler(state))

            log.info(
                "server_started",
                version=__version__,
                enabled=state.enabled,
                max_tabs=settings.tracking.max_tabs,
                bridge_url=settings.bridge.url,
            )

            try:
                yield
            finally:
                await driver.shutdown()
                cleanup_task.cancel()
                with suppress(asyncio.CancelledError):
                    await cleanup_task
                await driver.coordinator.aclose()
                log.info("server_stopping")

    return lifespan


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def run_http_server(settings: Settings) -> None:
    """Serve the bridge endpoints until interrupted."""
    _setup_logging(settings)
    http_log = structlog.get_logger().bind(transport="http")

    auth_key: str | None = settings.server.auth_key or None

    if settings.server.auth_enabled and not auth_key:
        auth_key = secrets.token_urlsafe(32)
        http_log.warning("http_auth_key_auto_generated", auth_key=auth_key)

    if not settings.server.auth_enabled:
        http_log.warning("http_auth_disabled")

    app = build_app(settings, lifespan=make_lifespan(settings), auth_key=auth_key)

    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


def main() -> None:
    run_http_server(Settings())


if __name__ == "__main__":
    main()
