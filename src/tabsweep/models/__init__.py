from __future__ import annotations

from tabsweep.models.cookies import Cookie
from tabsweep.models.events import (
    BrowserEvent,
    GetState,
    HistoryStateUpdated,
    StateResponse,
    TabActivated,
    TabCreated,
    TabRemoved,
    TabUpdated,
    ToggleMessage,
    ToggleStateChanged,
    WindowRemoved,
    browser_event_adapter,
    toggle_message_adapter,
)
from tabsweep.models.tabs import TabEntry

__all__ = [
    # tabs
    "TabEntry",
    # cookies
    "Cookie",
    # events
    "BrowserEvent",
    "TabCreated",
    "TabUpdated",
    "TabActivated",
    "TabRemoved",
    "WindowRemoved",
    "HistoryStateUpdated",
    "browser_event_adapter",
    # messages
    "ToggleMessage",
    "ToggleStateChanged",
    "GetState",
    "StateResponse",
    "toggle_message_adapter",
]
