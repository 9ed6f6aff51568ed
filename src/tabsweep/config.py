"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (TABSWEEP__DELETION__DEBOUNCE_MS=250)
  2. tabsweep.yaml          (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("tabsweep")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "flags.db")


def _find_config_file() -> str | None:
    """Return the path of the first tabsweep.yaml found, or None."""
    candidates = [
        Path("tabsweep.yaml"),
        Path(platformdirs.user_config_dir("tabsweep")) / "tabsweep.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8765
    auth_enabled: bool = False
    auth_key: str = ""
    # e.g. "chrome-extension://abcdefghijklmnop"; localhost origins are always allowed
    extension_origin: str | None = None


class BridgeSettings(BaseModel):
    url: str = "http://127.0.0.1:9223"
    timeout_seconds: float = 10.0


class TrackingSettings(BaseModel):
    max_tabs: int = Field(default=100, ge=1)
    stale_after_minutes: int = Field(default=30, ge=1)


class DeletionSettings(BaseModel):
    cache_ttl_seconds: float = 5.0
    debounce_ms: int = Field(default=500, ge=0)
    cleanup_interval_minutes: int = Field(default=30, ge=1)


class StorageSettings(BaseModel):
    db_path: str = _DEFAULT_DB_PATH


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: TABSWEEP__SERVER__PORT=9090
        env_prefix="TABSWEEP__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    bridge: BridgeSettings = BridgeSettings()
    tracking: TrackingSettings = TrackingSettings()
    deletion: DeletionSettings = DeletionSettings()
    storage: StorageSettings = StorageSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
