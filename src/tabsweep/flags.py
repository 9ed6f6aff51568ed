"""SQLite-backed flag storage for the enable/disable switch.

All operations catch ``aiosqlite.Error`` internally and degrade gracefully:
read failures return ``None`` (callers fall back to "disabled"), write
failures are logged and ignored. The switch in memory stays authoritative for
the running process either way.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import aiosqlite
import structlog

if TYPE_CHECKING:
    from tabsweep.protocols import FlagStoreProtocol

log = structlog.get_logger()

ENABLED_KEY = "enabled"

_CREATE_FLAGS_TABLE = """
CREATE TABLE IF NOT EXISTS flags (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class FlagStore:
    """Key/value flag store implementing FlagStoreProtocol."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create the flags table. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_FLAGS_TABLE)
        await self._db.commit()

    async def get(self, key: str) -> Any | None:
        """Read a flag. Returns ``None`` when missing, unreadable or undecodable."""
        try:
            cursor = await self._db.execute("SELECT value FROM flags WHERE key = ?", (key,))
            row = await cursor.fetchone()
        except aiosqlite.Error:
            log.warning("flag_read_error", key=key, exc_info=True)
            return None
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            log.warning("flag_decode_error", key=key)
            return None

    async def set(self, key: str, value: Any) -> None:
        """Write a flag. Non-fatal on failure."""
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO flags (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("flag_write_error", key=key, exc_info=True)


async def load_enabled(flags: FlagStoreProtocol) -> bool:
    """Read the enabled switch once. Anything but a stored ``True`` means disabled."""
    try:
        value = await flags.get(ENABLED_KEY)
    except Exception:
        log.error("flag_store_init_failed", exc_info=True)
        return False
    return value is True
