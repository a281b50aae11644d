"""Pydantic models for combat actors, rulesets and combat state.

Submodules:
    enums: Abilities, skills, damage types, statuses and other tags.
    actor: CombatActor and its nested parts, with lenient coercion.
    ruleset: Versioned, immutable template and affinity tables.
    combat: Roster, turn order, actions, rolls and resolution bundles.
"""

from __future__ import annotations

from rpg_engine.models.actor import (
    AbilityEffect,
    Attack,
    CombatActor,
    SkillProficiency,
    SpecialAbility,
    StatusEffect,
    calculate_modifier,
    format_modifier,
)
from rpg_engine.models.combat import (
    ActionSource,
    CombatAction,
    CombatState,
    DiceRoll,
    GroupOutcome,
    ResolutionBundle,
    Roster,
    RollRequest,
    TurnOrder,
    VictoryData,
)
from rpg_engine.models.enums import (
    Ability,
    ActorAlignment,
    AttackChannel,
    DamageType,
    DefenseCategory,
    Difficulty,
    EffectType,
    MoveDirection,
    Rank,
    RollKind,
    RollOutcome,
    RollType,
    SaveEffect,
    Size,
    Skill,
    SourceKind,
    StatusName,
    TargetScope,
)
from rpg_engine.models.ruleset import (
    AbilityBlueprint,
    AffinityDefinition,
    EnemyTemplate,
    MovementProfile,
    Ruleset,
    SizeModifier,
)


__all__ = [
    # Enums
    "Ability",
    "ActorAlignment",
    "AttackChannel",
    "DamageType",
    "DefenseCategory",
    "Difficulty",
    "EffectType",
    "MoveDirection",
    "Rank",
    "RollKind",
    "RollOutcome",
    "RollType",
    "SaveEffect",
    "Size",
    "Skill",
    "SourceKind",
    "StatusName",
    "TargetScope",
    # Actor
    "AbilityEffect",
    "Attack",
    "CombatActor",
    "SkillProficiency",
    "SpecialAbility",
    "StatusEffect",
    "calculate_modifier",
    "format_modifier",
    # Ruleset
    "AbilityBlueprint",
    "AffinityDefinition",
    "EnemyTemplate",
    "MovementProfile",
    "Ruleset",
    "SizeModifier",
    # Combat
    "ActionSource",
    "CombatAction",
    "CombatState",
    "DiceRoll",
    "GroupOutcome",
    "ResolutionBundle",
    "Roster",
    "RollRequest",
    "TurnOrder",
    "VictoryData",
]
