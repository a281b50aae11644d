"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        RulesEngineError: Base exception for all engine errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Configuration table and data validation errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from rpg_engine.core.config import (
    NarrativeSettings,
    RulesSettings,
    SessionSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from rpg_engine.core.exceptions import (
    ActionQueueError,
    ActionRejectedError,
    CollaboratorConnectionError,
    CollaboratorError,
    CombatError,
    ConfigurationError,
    DiceRollError,
    GameEngineError,
    NarrativeUnavailableError,
    RulesEngineError,
    TurnManagementError,
    ValidationError,
)
from rpg_engine.core.logging import (
    bind_context,
    bound_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "RulesEngineError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Game engine exceptions
    "GameEngineError",
    "CombatError",
    "DiceRollError",
    "TurnManagementError",
    "ActionQueueError",
    "ActionRejectedError",
    # Collaborator exceptions
    "CollaboratorError",
    "CollaboratorConnectionError",
    "NarrativeUnavailableError",
    # Configuration
    "Settings",
    "RulesSettings",
    "SessionSettings",
    "NarrativeSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "bound_context",
    "clear_context",
]
