"""Custom exception hierarchy for the encounter rules engine.

The rules math itself coerces malformed input instead of raising, so the
exceptions here mark the few places where a failure has to reach the
caller: bad dice notation handed straight to the roller, strict turn-order
checks, overlapping combat actions, unknown acting actors and collaborator
outages. All of them inherit from RulesEngineError so the host application
can catch them at a single boundary.

Example:
    >>> from rpg_engine.core.exceptions import DiceRollError
    >>> raise DiceRollError("Invalid dice expression", expression="2d")
"""

from __future__ import annotations

from typing import Any


class RulesEngineError(Exception):
    """Base exception for all rules engine errors.

    Subclasses pass their structured context as keyword arguments; keys
    whose value is ``None`` are left out of ``details``.

    Attributes:
        message: Human-readable error description.
        details: Structured context rendered after the message.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.details = dict(details or {})
        self.details.update({key: value for key, value in context.items() if value is not None})
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} [{rendered}]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Rules processing
# =============================================================================


class GameEngineError(RulesEngineError):
    """Base exception for combat and rules processing errors."""


class CombatError(GameEngineError):
    """Raised when an action names an actor that is not on the roster."""

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message, details=details, combatant_id=combatant_id, round_number=round_number
        )


class DiceRollError(GameEngineError):
    """Raised when a dice expression cannot be parsed or rolled."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details, expression=expression)


class TurnManagementError(GameEngineError):
    """Raised in strict mode when the turn order and the roster disagree.

    Outside strict mode unresolved entries are filtered and logged instead.
    """

    def __init__(
        self,
        message: str,
        *,
        unresolved_ids: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details, unresolved_ids=unresolved_ids)


class ActionQueueError(GameEngineError):
    """Base exception for per-session action queue failures."""

    def __init__(
        self,
        message: str,
        *,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details, session_id=session_id)


class ActionRejectedError(ActionQueueError):
    """Raised when a session already holds the maximum number of pending actions."""


# =============================================================================
# Collaborators
# =============================================================================


class CollaboratorError(RulesEngineError):
    """Base exception for failures of services wired in around the engine.

    Attributes:
        retryable: Whether the caller may safely retry the request.
    """

    def __init__(
        self,
        message: str,
        *,
        collaborator: str | None = None,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.retryable = retryable
        super().__init__(
            message, details=details, collaborator=collaborator, retryable=retryable
        )


class CollaboratorConnectionError(CollaboratorError):
    """Raised by collaborator clients on transient network failures."""


class NarrativeUnavailableError(CollaboratorError):
    """Raised when narrative generation failed after all retry attempts."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(RulesEngineError):
    """Raised when settings cannot be loaded."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details, config_key=config_key)


class ValidationError(RulesEngineError):
    """Raised when a ruleset edit would leave the tables unusable."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message, details=details, field_name=field_name, invalid_value=invalid_value
        )


__all__ = [
    "RulesEngineError",
    "GameEngineError",
    "CombatError",
    "DiceRollError",
    "TurnManagementError",
    "ActionQueueError",
    "ActionRejectedError",
    "CollaboratorError",
    "CollaboratorConnectionError",
    "NarrativeUnavailableError",
    "ConfigurationError",
    "ValidationError",
]
