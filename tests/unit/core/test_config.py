"""Tests for configuration management."""

from __future__ import annotations

import pytest

from rpg_engine.core.config import (
    NarrativeSettings,
    RulesSettings,
    SessionSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from rpg_engine.core.exceptions import ConfigurationError


class TestRulesSettings:
    """Tests for RulesSettings configuration."""

    def test_default_values(self) -> None:
        """Test default rules settings."""
        settings = RulesSettings()

        assert settings.base_score == 8
        assert settings.legacy_name_lookup is False
        assert settings.strict_turn_order is False
        assert settings.critical_hit_rule == "double_dice"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test rules settings read their prefixed environment variables."""
        monkeypatch.setenv("RPG_ENGINE_RULES_LEGACY_NAME_LOOKUP", "true")
        monkeypatch.setenv("RPG_ENGINE_RULES_CRITICAL_HIT_RULE", "double_damage")

        settings = RulesSettings()

        assert settings.legacy_name_lookup is True
        assert settings.critical_hit_rule == "double_damage"


class TestSessionAndNarrativeSettings:
    """Tests for the session and narrative settings groups."""

    def test_session_defaults(self) -> None:
        """Test one action in flight and nothing queued by default."""
        assert SessionSettings().max_pending_actions == 0

    def test_narrative_defaults(self) -> None:
        """Test narrative retry defaults."""
        settings = NarrativeSettings()

        assert settings.max_retries == 3
        assert settings.timeout_seconds == 30.0


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self) -> None:
        """Test default settings initialization."""
        settings = Settings()

        assert settings.app_name == "Encounter Rules Engine"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.is_production is True
        assert settings.rules.base_score == 8

    def test_env_vars(self, mock_env_vars: dict[str, str]) -> None:
        """Test settings loaded from environment variables."""
        settings = get_settings()

        assert settings.debug is True
        assert settings.is_production is False
        assert settings.log_level == "DEBUG"
        assert settings.rules.base_score == 10
        assert settings.session.max_pending_actions == 2


class TestGetSettings:
    """Tests for the settings singleton."""

    def test_cached(self) -> None:
        """Test get_settings returns the same instance until cleared."""
        first = get_settings()

        assert get_settings() is first

        clear_settings_cache()

        assert get_settings() is not first

    def test_invalid_value_raises_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test out-of-range values surface as ConfigurationError."""
        monkeypatch.setenv("RPG_ENGINE_RULES_BASE_SCORE", "99")

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert "Failed to load application settings" in str(exc_info.value)

    def test_error_names_the_offending_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the failing setting is reported as the config key."""
        monkeypatch.setenv("RPG_ENGINE_LOG_LEVEL", "chatty")

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert exc_info.value.details["config_key"] == "log_level"

    def test_log_level_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test lower-case level names are accepted."""
        monkeypatch.setenv("RPG_ENGINE_LOG_LEVEL", " warning ")

        assert get_settings().log_level == "WARNING"
