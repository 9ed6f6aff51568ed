from __future__ import annotations

from pydantic import BaseModel


class TabEntry(BaseModel):
    """Domain currently held by one open tab."""

    tab_id: int
    domain: str  # Lowercase hostname, always from an http(s) URL
    url: str | None = None
    window_id: int | None = None
    last_seen: float  # Registry clock reading of the last upsert
