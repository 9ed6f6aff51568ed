"""Protocol interfaces for the external collaborators.

The coordinator, driver and AppState reference these protocols, not the
concrete implementations. This allows:
- Tests to use lightweight in-memory cookie and flag stores
- Other cookie backends (e.g. a CDP session) to be swapped in without
  touching the deletion logic
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from tabsweep.models.cookies import Cookie


class CookieStoreProtocol(Protocol):
    """Interface for the browser cookie store.

    Implementations raise ``TabSweepError`` when the store can't be reached.
    ``remove`` returns ``False`` when the store refused to remove the cookie.
    """

    async def list_all(self) -> list[Cookie]: ...

    async def remove(self, url: str, name: str) -> bool: ...


class FlagStoreProtocol(Protocol):
    """Interface for the persistent enable/disable flag storage."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...
