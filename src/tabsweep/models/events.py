"""Inbound payloads: browser lifecycle events and toggle-surface messages.

Both are closed tagged unions keyed on ``type``; anything else is rejected at
validation time.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

# ---------------------------------------------------------------------------
# Lifecycle events
# ---------------------------------------------------------------------------


class TabCreated(BaseModel):
    type: Literal["tab_created"] = "tab_created"
    tab_id: int
    url: str | None = None
    window_id: int | None = None
    incognito: bool = False


class TabUpdated(BaseModel):
    type: Literal["tab_updated"] = "tab_updated"
    tab_id: int
    url: str | None = None  # Set only when the URL itself changed
    status: str | None = None  # "loading" | "complete"
    tab_url: str | None = None  # The tab's current URL after the change
    window_id: int | None = None
    incognito: bool = False


class TabActivated(BaseModel):
    type: Literal["tab_activated"] = "tab_activated"
    tab_id: int
    window_id: int | None = None


class TabRemoved(BaseModel):
    type: Literal["tab_removed"] = "tab_removed"
    tab_id: int
    window_id: int | None = None


class WindowRemoved(BaseModel):
    type: Literal["window_removed"] = "window_removed"
    window_id: int


class HistoryStateUpdated(BaseModel):
    type: Literal["history_state_updated"] = "history_state_updated"
    tab_id: int
    url: str
    incognito: bool = False


BrowserEvent = Annotated[
    TabCreated | TabUpdated | TabActivated | TabRemoved | WindowRemoved | HistoryStateUpdated,
    Field(discriminator="type"),
]

browser_event_adapter: TypeAdapter[BrowserEvent] = TypeAdapter(BrowserEvent)

# ---------------------------------------------------------------------------
# Toggle surface messages
# ---------------------------------------------------------------------------


class ToggleStateChanged(BaseModel):
    type: Literal["toggleStateChanged"] = "toggleStateChanged"
    enabled: bool


class GetState(BaseModel):
    type: Literal["getState"] = "getState"


ToggleMessage = Annotated[ToggleStateChanged | GetState, Field(discriminator="type")]

toggle_message_adapter: TypeAdapter[ToggleMessage] = TypeAdapter(ToggleMessage)


class StateResponse(BaseModel):
    enabled: bool
