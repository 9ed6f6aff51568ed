"""Application state container.

AppState is created once at startup (inside the Starlette lifespan) and
passed by reference to the lifecycle driver, the deletion coordinator and the
schedulers. Nothing else writes the registry, the pending set or the domain
cache.

Fields are populated in two steps:
  1. settings, registry, domain cache and the collaborators
  2. coordinator (it needs the state itself), then the flags via startup()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tabsweep.cache import DomainCache
    from tabsweep.config import Settings
    from tabsweep.coordinator import DeletionCoordinator
    from tabsweep.protocols import CookieStoreProtocol, FlagStoreProtocol
    from tabsweep.registry import TabRegistry


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    registry: TabRegistry
    domain_cache: DomainCache
    cookie_store: CookieStoreProtocol
    flag_store: FlagStoreProtocol

    coordinator: DeletionCoordinator | None = None
    pending: set[str] = field(default_factory=set)
    enabled: bool = False
    shutting_down: bool = False

    @property
    def active(self) -> bool:
        """Deletions may start only while enabled and not shutting down."""
        return self.enabled and not self.shutting_down

    def reset(self) -> None:
        """Forget every tab and cached deletion; in-flight passes are left alone."""
        self.registry.clear()
        self.domain_cache.clear()
