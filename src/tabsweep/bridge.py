"""HTTP client for the browser-side cookie bridge.

The bridge is a thin shim living in the browser that exposes the cookie store
on a local port. All cookie-store I/O goes through a single HttpCookieStore
instance; it receives an httpx.AsyncClient via constructor injection and the
lifespan owns the client lifecycle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from tabsweep import __version__
from tabsweep.errors import ErrorCode, TabSweepError
from tabsweep.models.cookies import Cookie

if TYPE_CHECKING:
    from tabsweep.config import BridgeSettings

log = structlog.get_logger()

_cookie_list_adapter = TypeAdapter(list[Cookie])


def build_http_client(settings: BridgeSettings) -> httpx.AsyncClient:
    """Create the shared httpx client for the bridge. Called once at startup."""
    return httpx.AsyncClient(
        base_url=settings.url,
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": f"tabsweep/{__version__}"},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def _unavailable(action: str, exc: Exception) -> TabSweepError:
    return TabSweepError(
        code=ErrorCode.COOKIE_STORE_UNAVAILABLE,
        message=f"Cookie bridge {action} failed: {exc}",
        suggestion="Check that the browser bridge is running and reachable.",
        recoverable=True,
    )


class HttpCookieStore:
    """CookieStoreProtocol implementation backed by the bridge's HTTP API."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def list_all(self) -> list[Cookie]:
        """Fetch every cookie in the store. Raises TabSweepError on any failure."""
        try:
            response = await self._client.get("/cookies")
            response.raise_for_status()
            return _cookie_list_adapter.validate_json(response.content)
        except httpx.HTTPError as exc:
            raise _unavailable("list", exc) from exc
        except ValidationError as exc:
            log.warning("cookie_bridge_bad_payload", errors=exc.error_count())
            raise _unavailable("list", exc) from exc

    async def remove(self, url: str, name: str) -> bool:
        """Ask the bridge to remove one cookie.

        Returns the bridge's ``removed`` verdict. A 404 means the cookie was
        already gone and counts as not removed. Transport errors raise
        TabSweepError.
        """
        try:
            response = await self._client.post("/cookies/remove", json={"url": url, "name": name})
            if response.status_code == 404:
                return False
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise TabSweepError(
                code=ErrorCode.COOKIE_REMOVE_FAILED,
                message=f"Removing cookie {name!r} at {url} failed: {exc}",
                suggestion="The cookie will be retried by the next orphan sweep.",
                recoverable=True,
            ) from exc
        except ValueError as exc:
            log.warning("cookie_bridge_bad_payload", url=url, name=name)
            raise _unavailable("remove", exc) from exc
        return bool(payload.get("removed", False)) if isinstance(payload, dict) else False
