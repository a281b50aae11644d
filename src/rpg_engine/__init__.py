"""Encounter Rules Engine.

Rules math for a tabletop-style combat game: enemy templates and
affinities, stat scaling, encounter composition, initiative and turn
order, attack resolution and status effects.

The engine is a set of pure transforms over snapshots owned by the host
application. It rolls dice through the d20 library and reports results;
the host persists the actors and decides what to do with the output.

Example:
    >>> from rpg_engine import CombatState, Roster, default_ruleset, generate_from_template
    >>>
    >>> ruleset = default_ruleset()
    >>> brute = generate_from_template("Brute", 3, "normal", "medium",
    ...                                ruleset=ruleset, base_score=8)
    >>> brute.max_hit_points
    39

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas for actors, rulesets and combat state.
    engine: Scaling, composition, turn order, resolution and status rules.
"""

from __future__ import annotations

# Core
from rpg_engine.core.config import Settings, get_settings
from rpg_engine.core.exceptions import RulesEngineError
from rpg_engine.core.logging import configure_logging, get_logger

# Models
from rpg_engine.models import (
    ActionSource,
    CombatAction,
    CombatActor,
    CombatState,
    ResolutionBundle,
    Roster,
    Ruleset,
    TurnOrder,
)

# Engine
from rpg_engine.engine import (
    DiceRoller,
    RulesetStore,
    advance_turn,
    compose_encounter,
    default_ruleset,
    generate_from_template,
    perform_action,
    scale_actor,
    start_combat,
)


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "RulesEngineError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "ActionSource",
    "CombatAction",
    "CombatActor",
    "CombatState",
    "ResolutionBundle",
    "Roster",
    "Ruleset",
    "TurnOrder",
    # Engine
    "DiceRoller",
    "RulesetStore",
    "advance_turn",
    "compose_encounter",
    "default_ruleset",
    "generate_from_template",
    "perform_action",
    "scale_actor",
    "start_combat",
]
