"""Configuration management for the encounter rules engine.

Settings are loaded with pydantic-settings from environment variables and
an optional .env file. They are read once at the application boundary and
then handed to the engine explicitly; no engine function reaches back into
this module.

Example:
    >>> from rpg_engine.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.base_score
    8

Environment Variables:
    RPG_ENGINE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    RPG_ENGINE_RULES_BASE_SCORE: Base ability score used by stat scaling
    RPG_ENGINE_RULES_LEGACY_NAME_LOOKUP: Resolve turn-order entries by name
    RPG_ENGINE_SESSION_MAX_PENDING_ACTIONS: Queued actions allowed per session
    RPG_ENGINE_NARRATIVE_MAX_RETRIES: Narrative collaborator retry attempts
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from rpg_engine.core.exceptions import ConfigurationError


def _env_config(prefix: str, **extra: str) -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        **extra,
    )


class RulesSettings(BaseSettings):
    """Configuration for rules math and turn-order resolution.

    Attributes:
        base_score: Ability score every generated actor starts from.
        legacy_name_lookup: Fall back to unique name matches for turn-order
            entries written by older saves.
        strict_turn_order: Raise instead of filtering unresolved entries.
        critical_hit_rule: How critical hits multiply damage.
    """

    model_config = _env_config("RPG_ENGINE_RULES_")

    base_score: int = Field(
        default=8,
        ge=1,
        le=30,
        description="Base ability score for generated actors",
    )
    legacy_name_lookup: bool = Field(
        default=False,
        description="Resolve turn-order entries by unique name when id lookup fails",
    )
    strict_turn_order: bool = Field(
        default=False,
        description="Raise on unresolved turn-order entries",
    )
    critical_hit_rule: Literal["double_dice", "double_damage"] = Field(
        default="double_dice",
        description="Critical hit damage calculation",
    )


class SessionSettings(BaseSettings):
    """Configuration for per-session action handling.

    Attributes:
        max_pending_actions: Actions allowed to wait behind the one in flight.
    """

    model_config = _env_config("RPG_ENGINE_SESSION_")

    max_pending_actions: int = Field(
        default=0,
        ge=0,
        le=10,
        description="Queued actions allowed behind the in-flight action",
    )


class NarrativeSettings(BaseSettings):
    """Configuration for the narrative collaborator adapter.

    Attributes:
        max_retries: Maximum attempts for a narration request.
        timeout_seconds: Per-attempt timeout.
    """

    model_config = _env_config("RPG_ENGINE_NARRATIVE_")

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum narration retry attempts",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Narration request timeout",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        rules: Rules math settings.
        session: Session action settings.
        narrative: Narrative collaborator settings.
    """

    model_config = _env_config("RPG_ENGINE_", env_nested_delimiter="__")

    app_name: str = Field(
        default="Encounter Rules Engine",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    rules: RulesSettings = Field(default_factory=RulesSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    narrative: NarrativeSettings = Field(default_factory=NarrativeSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def is_production(self) -> bool:
        """Production builds are the ones without debug enabled."""
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process.

    Raises:
        ConfigurationError: If an environment value fails validation.
    """
    try:
        return Settings()
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        raise ConfigurationError(
            f"Failed to load application settings: {exc.error_count()} invalid value(s)",
            config_key=".".join(str(part) for part in first["loc"]),
            details={"original_error": first["msg"]},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "RulesSettings",
    "SessionSettings",
    "NarrativeSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
