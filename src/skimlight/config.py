"""Centralised configuration using pydantic-settings.

Two kinds of configuration live here:

* ``Settings`` -- process configuration (backend URL, API key, timeouts,
  logging), read from environment variables and ``.env``.  Consumers call
  ``get_settings()`` to obtain a cached, validated instance.  Tests construct
  ``Settings(_env_file=None, ...)`` directly for isolation.
* ``ReaderSettings`` -- the reader-facing preferences (minimum selection
  length, theme, provider, enabled) that arrive over the settings channel
  with camelCase keys.  The session controller receives a frozen snapshot
  and swaps it on each change notification.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# src/skimlight/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

Provider = Literal["groq", "gemini"]
Theme = Literal["dark", "light"]

PROVIDERS: tuple[str, ...] = ("groq", "gemini")


# ---------------------------------------------------------------------------
# Reader preferences (settings channel)
# ---------------------------------------------------------------------------
class ReaderSettings(BaseModel):
    """Read-only view of the reader's preferences.

    Accepts both ``min_length`` and the channel's ``minLength`` spelling.
    """

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel
    )

    min_length: int = Field(default=50, ge=10, le=500)
    theme: Theme = "dark"
    provider: Provider = "groq"
    enabled: bool = True

    def with_changes(self, changes: Mapping[str, Any]) -> ReaderSettings:
        """Return a new snapshot with *changes* applied.

        Unknown keys are ignored.

        Raises:
            pydantic.ValidationError: If a changed value is out of range.
        """
        names = {
            (field.alias or name): name
            for name, field in type(self).model_fields.items()
        }
        merged = self.model_dump()
        for key, value in changes.items():
            name = names.get(key, key)
            if name not in merged:
                logger.debug("Ignoring unknown reader setting %r", key)
                continue
            merged[name] = value
        return type(self).model_validate(merged)


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class BackendConfig(BaseModel):
    """Summarisation backend connection."""

    base_url: str = "http://localhost:3000"
    api_key: SecretStr = SecretStr("")
    timeout: float = 30.0


class ReaderConfig(BaseModel):
    """Defaults for ReaderSettings when the settings channel has no value."""

    min_length: int = Field(default=50, ge=10, le=500)
    theme: Theme = "dark"
    provider: Provider = "groq"
    enabled: bool = True

    def to_reader_settings(self) -> ReaderSettings:
        return ReaderSettings.model_validate(self.model_dump())


class SessionConfig(BaseModel):
    """Session timing and overlay placement."""

    settle_delay: float = Field(default=0.3, ge=0.0)
    viewport_width: int = 1280
    viewport_height: int = 800


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``BACKEND__BASE_URL``, ``BACKEND__API_KEY``, ``READER__MIN_LENGTH``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    backend: BackendConfig = BackendConfig()
    reader: ReaderConfig = ReaderConfig()
    session: SessionConfig = SessionConfig()
    app: AppConfig = AppConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
