"""HTTP surface for the browser bridge: event ingestion, toggle messages and
security middleware."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.datastructures import Headers
from starlette.middleware import Middleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from tabsweep.errors import ErrorCode, TabSweepError
from tabsweep.models.events import browser_event_adapter, toggle_message_adapter

if TYPE_CHECKING:
    from typing import Any

    from starlette.requests import Request
    from starlette.types import ASGIApp, Receive, Scope, Send

    from tabsweep.config import Settings
    from tabsweep.driver import LifecycleDriver

log = structlog.get_logger()

_LOCALHOST_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$")


class SecurityMiddleware:
    """Pure ASGI middleware guarding the bridge endpoints.

    Enforces two checks on every HTTP request:
    1. Optional bearer key authentication.
    2. Origin validation: localhost, or the configured extension origin, so a
       web page can't forge browser events or flip the switch.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        auth_enabled: bool,
        auth_key: str | None = None,
        extension_origin: str | None = None,
    ) -> None:
        self.app = app
        self.auth_enabled = auth_enabled
        self.auth_key = auth_key
        self.extension_origin = extension_origin

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = Headers(scope=scope)

            # 1. Optional bearer key authentication
            if self.auth_enabled:
                auth_header = headers.get("authorization", "")
                if not auth_header.startswith("Bearer ") or auth_header[7:] != self.auth_key:
                    await Response("Unauthorized", status_code=401)(scope, receive, send)
                    return

            # 2. Origin validation
            origin = headers.get("origin", "")
            if origin and not self._origin_allowed(origin):
                log.warning("request_origin_rejected", origin=origin)
                await Response("Forbidden", status_code=403)(scope, receive, send)
                return

        await self.app(scope, receive, send)

    def _origin_allowed(self, origin: str) -> bool:
        if _LOCALHOST_ORIGIN.match(origin):
            return True
        return self.extension_origin is not None and origin == self.extension_origin


def _invalid_input(exc: ValidationError, suggestion: str) -> JSONResponse:
    error = TabSweepError(
        code=ErrorCode.INVALID_INPUT,
        message=str(exc),
        suggestion=suggestion,
        recoverable=False,
    )
    log.warning("request_invalid", code=error.code, errors=exc.error_count())
    return JSONResponse(error.to_dict(), status_code=422)


async def events_endpoint(request: Request) -> Response:
    """Accept one browser lifecycle event."""
    driver: LifecycleDriver = request.app.state.driver
    body = await request.body()
    try:
        event = browser_event_adapter.validate_json(body)
    except ValidationError as exc:
        return _invalid_input(
            exc,
            "Send a JSON object whose 'type' is one of tab_created, tab_updated, "
            "tab_activated, tab_removed, window_removed, history_state_updated.",
        )
    await driver.handle_event(event)
    return JSONResponse({"accepted": True}, status_code=202)


async def messages_endpoint(request: Request) -> Response:
    """Handle a toggle-surface message and reply with the current switch state."""
    driver: LifecycleDriver = request.app.state.driver
    body = await request.body()
    try:
        message = toggle_message_adapter.validate_json(body)
    except ValidationError as exc:
        return _invalid_input(
            exc,
            "Send {'type': 'getState'} or {'type': 'toggleStateChanged', 'enabled': <bool>}.",
        )
    response = await driver.handle_message(message)
    return JSONResponse(response.model_dump(mode="json"))


def build_app(
    settings: Settings,
    *,
    driver: LifecycleDriver | None = None,
    lifespan: Any = None,
    auth_key: str | None = None,
) -> Starlette:
    """Build the Starlette app.

    Pass ``driver`` to serve a pre-built state (tests), or ``lifespan`` to
    let the app build and tear down its own state (production).
    """
    middleware = [
        Middleware(
            SecurityMiddleware,
            auth_enabled=settings.server.auth_enabled,
            auth_key=auth_key if auth_key is not None else settings.server.auth_key,
            extension_origin=settings.server.extension_origin,
        )
    ]
    routes = [
        Route("/events", events_endpoint, methods=["POST"]),
        Route("/messages", messages_endpoint, methods=["POST"]),
    ]
    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    if driver is not None:
        app.state.driver = driver
    return app
