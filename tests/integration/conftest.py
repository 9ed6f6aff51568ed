"""Integration test fixtures.

Provides the Starlette app wired to the shared ``driver`` fixture and an
httpx client that talks to it in-process. AppState, the fake cookie store and
the clock come from tests/conftest.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from tabsweep.transport import build_app

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.applications import Starlette

    from tabsweep.config import Settings
    from tabsweep.driver import LifecycleDriver


@pytest.fixture()
def app(settings: Settings, driver: LifecycleDriver) -> Starlette:
    return build_app(settings, driver=driver)


@pytest.fixture()
async def client(app: Starlette) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
    ) as http_client:
        yield http_client
