from __future__ import annotations

from pydantic import BaseModel


class Cookie(BaseModel):
    """A cookie as reported by the browser cookie store.

    Only the fields needed to match and remove a cookie are kept; anything
    else the bridge sends is ignored.
    """

    domain: str  # As stored, may carry a leading "." for domain cookies
    name: str
    path: str = "/"
    secure: bool = False
