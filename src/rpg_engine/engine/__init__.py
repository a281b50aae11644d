"""Rules engine for encounter building and combat resolution.

Every operation takes the current snapshot (actor, roster, combat state
or ruleset) as an argument and returns a new one. Nothing here holds
authoritative state.

Submodules:
    library: Default templates, affinities, sizes and archetypes; RulesetStore
    scaling: Stat scaling from CR, rank, size and template
    composer: Enemy generation, encounter sampling and defense edits
    turn_order: Initiative, turn advancement and roster/turn-order edits
    status: Status effect tracking and status-driven roll rules
    dice: Dice rolling (d20 library)
    targeting: Target pools and selection rules
    resolution: Roll requests, resolution and applying results
    action_queue: Per-session action serialization
    narrative: Retrying adapter for the narrative collaborator

Example:
    >>> from rpg_engine.engine import (
    ...     default_ruleset, generate_from_template, start_combat, DiceRoller
    ... )
    >>> from rpg_engine.models import CombatState, Roster
    >>>
    >>> ruleset = default_ruleset()
    >>> brute = generate_from_template("Brute", 3, "normal", "medium",
    ...                                ruleset=ruleset, base_score=8)
    >>> state = CombatState(roster=Roster(enemies=[brute]))
    >>> state = start_combat(state, DiceRoller(seed=1))
"""

from __future__ import annotations

# =============================================================================
# Configuration Surface
# =============================================================================
from rpg_engine.engine.library import (
    BASELINE_ARCHETYPE,
    BASELINE_TEMPLATE,
    RulesetStore,
    default_ruleset,
    enemy_xp,
)

# =============================================================================
# Scaling and Composition
# =============================================================================
from rpg_engine.engine.scaling import rescale_pool, scale_actor
from rpg_engine.engine.composer import (
    DifficultyParams,
    EncounterSuggestion,
    apply_affinity,
    compose_encounter,
    duplicate_actor,
    generate_from_template,
    get_difficulty_params,
    materialize_encounter,
    set_defense_tags,
)

# =============================================================================
# Dice
# =============================================================================
from rpg_engine.engine.dice import (
    DiceEvaluator,
    DiceExpression,
    DiceRoller,
    safe_formula,
)

# =============================================================================
# Status Effects
# =============================================================================
from rpg_engine.engine.status import (
    apply_status,
    can_be_targeted,
    remove_status,
    stat_penalties,
    status_roll_mode,
    tick_statuses,
)

# =============================================================================
# Turn Order
# =============================================================================
from rpg_engine.engine.turn_order import (
    add_enemy,
    add_to_turn_order,
    advance_turn,
    clear_scene,
    delete_actor,
    end_combat,
    move_in_turn_order,
    remove_from_turn_order,
    resolve_turn_order,
    start_combat,
)

# =============================================================================
# Targeting and Resolution
# =============================================================================
from rpg_engine.engine.targeting import (
    MultiTargetSelection,
    SingleTargetSelection,
    WeaponSelection,
    new_selection,
    select_target_pool,
)
from rpg_engine.engine.resolution import (
    apply_damage_modifiers,
    apply_resolution,
    build_roll_requests,
    confirm_action,
    perform_action,
    resolve_action,
    resolve_group_checks,
    toggle_heroic,
)

# =============================================================================
# Collaborators
# =============================================================================
from rpg_engine.engine.action_queue import ActionQueueRegistry, SessionActionQueue
from rpg_engine.engine.narrative import NarrativeClient, NarrativeGateway


__all__ = [
    # Library
    "BASELINE_ARCHETYPE",
    "BASELINE_TEMPLATE",
    "RulesetStore",
    "default_ruleset",
    "enemy_xp",
    # Scaling
    "rescale_pool",
    "scale_actor",
    # Composer
    "DifficultyParams",
    "EncounterSuggestion",
    "apply_affinity",
    "compose_encounter",
    "duplicate_actor",
    "generate_from_template",
    "get_difficulty_params",
    "materialize_encounter",
    "set_defense_tags",
    # Dice
    "DiceEvaluator",
    "DiceExpression",
    "DiceRoller",
    "safe_formula",
    # Status
    "apply_status",
    "can_be_targeted",
    "remove_status",
    "stat_penalties",
    "status_roll_mode",
    "tick_statuses",
    # Turn order
    "add_enemy",
    "add_to_turn_order",
    "advance_turn",
    "clear_scene",
    "delete_actor",
    "end_combat",
    "move_in_turn_order",
    "remove_from_turn_order",
    "resolve_turn_order",
    "start_combat",
    # Targeting
    "MultiTargetSelection",
    "SingleTargetSelection",
    "WeaponSelection",
    "new_selection",
    "select_target_pool",
    # Resolution
    "apply_damage_modifiers",
    "apply_resolution",
    "build_roll_requests",
    "confirm_action",
    "perform_action",
    "resolve_action",
    "resolve_group_checks",
    "toggle_heroic",
    # Collaborators
    "ActionQueueRegistry",
    "SessionActionQueue",
    "NarrativeClient",
    "NarrativeGateway",
]
