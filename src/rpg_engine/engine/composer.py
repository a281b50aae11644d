"""Encounter composition.

Builds enemies from templates and difficulty presets, samples balanced
encounters under a power budget, and keeps actor defense sets consistent
when they are edited by hand or through an affinity.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar
from uuid import uuid4

from rpg_engine.core.constants import (
    COMPOSER_SIZES,
    DIFFICULTY_COSTS,
    ENCOUNTER_BUDGET_PER_MEMBER,
)
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.scaling import scale_actor
from rpg_engine.models.actor import (
    AbilityEffect,
    Attack,
    CombatActor,
    SpecialAbility,
    coerce_int,
)
from rpg_engine.models.enums import (
    ActorAlignment,
    AttackChannel,
    DamageType,
    DefenseCategory,
    Difficulty,
    Rank,
    Size,
)


if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from rpg_engine.models.ruleset import Ruleset

logger = get_logger(__name__)

EnumT = TypeVar("EnumT", Rank, Size)


# =============================================================================
# Difficulty Presets
# =============================================================================


@dataclass(frozen=True)
class DifficultyParams:
    """Challenge rating and rank for a difficulty preset.

    Attributes:
        challenge_rating: CR to generate at.
        rank: Rank to generate at.
    """

    challenge_rating: int
    rank: Rank


_PRESET_ALIASES = {"tough": Difficulty.BOSS}


def parse_difficulty(preset: str | Difficulty | None) -> Difficulty:
    """Normalise a preset name; unknown presets mean Normal.

    Example:
        >>> parse_difficulty("  ELITE "), parse_difficulty("tough")
        (<Difficulty.ELITE: 'elite'>, <Difficulty.BOSS: 'boss'>)
    """
    if isinstance(preset, Difficulty):
        return preset
    normalized = (preset or "").strip().lower()
    if normalized in _PRESET_ALIASES:
        return _PRESET_ALIASES[normalized]
    try:
        return Difficulty(normalized)
    except ValueError:
        return Difficulty.NORMAL


def get_difficulty_params(preset: str | Difficulty | None, player_level: int) -> DifficultyParams:
    """Map a difficulty preset and party level to CR and rank.

    Args:
        preset: Weak, Normal, Elite or Boss (any case; 'tough' means Boss).
        player_level: Party level the encounter is aimed at.

    Returns:
        DifficultyParams with CR never below 1.

    Example:
        >>> get_difficulty_params("Boss", 3)
        DifficultyParams(challenge_rating=7, rank=<Rank.BOSS: 'boss'>)
    """
    level = coerce_int(player_level, 1, minimum=None)
    difficulty = parse_difficulty(preset)
    if difficulty == Difficulty.WEAK:
        return DifficultyParams(max(1, level // 2), Rank.NORMAL)
    if difficulty == Difficulty.ELITE:
        return DifficultyParams(max(1, level + 2), Rank.ELITE)
    if difficulty == Difficulty.BOSS:
        return DifficultyParams(max(1, level + 4), Rank.BOSS)
    return DifficultyParams(max(1, level), Rank.NORMAL)


# =============================================================================
# Generation
# =============================================================================


def _parse_or(enum_type: type[EnumT], value: object, default: EnumT) -> EnumT:
    try:
        return enum_type(value)
    except ValueError:
        return default


def generate_from_template(
    template_name: str,
    challenge_rating: float,
    rank: Rank | str,
    size: Size | str,
    *,
    ruleset: Ruleset,
    base_score: int,
    name: str | None = None,
    archetype: str | None = None,
) -> CombatActor:
    """Create a fully scaled enemy from a template.

    Unknown template names fall back to the baseline template. The
    archetype is the override, else the template default, else the
    ruleset baseline.

    Args:
        template_name: Template to build from.
        challenge_rating: Challenge rating.
        rank: Normal, elite or boss.
        size: Actor size.
        ruleset: Configuration snapshot.
        base_score: Base ability score.
        name: Display name; defaults to the template name.
        archetype: Movement archetype override.

    Returns:
        A new enemy actor with a fresh id, not yet in any turn order.
    """
    template = ruleset.get_template(template_name)
    resolved_archetype = archetype or template.default_archetype or ruleset.baseline_archetype

    channel = AttackChannel(template.attack_channel)
    strike = Attack(
        name=f"{channel.display_name} Strike",
        damage_dice="1d6",
        damage_type=DamageType.BLUDGEONING,
        channel=AttackChannel.RANGED if channel == AttackChannel.RANGED else AttackChannel.MELEE,
    )
    specials = [
        SpecialAbility(
            name=f"{template.name} Power {index}",
            description=f"A {blueprint.type.value} ability.",
            effect=AbilityEffect(
                type=blueprint.type,
                target_scope=blueprint.target_scope,
                save_ability=blueprint.save_ability,
                save_effect=blueprint.save_effect,
                status=blueprint.status,
                duration=blueprint.duration,
            ),
        )
        for index, blueprint in enumerate(template.abilities, start=1)
    ]

    actor = CombatActor(
        id=uuid4().hex,
        name=name or template.name,
        template=template.name,
        archetype=ruleset.get_archetype(resolved_archetype).name,
        rank=_parse_or(Rank, rank, Rank.NORMAL),
        challenge_rating=challenge_rating,
        size=_parse_or(Size, size, Size.MEDIUM),
        alignment=ActorAlignment.ENEMY,
        max_hit_points=0,
        current_hit_points=0,
        attacks=[strike],
        special_abilities=specials,
    )
    scaled = scale_actor(actor, ruleset, base_score)
    logger.info(
        "Actor generated",
        actor_id=scaled.id,
        template=template.name,
        cr=scaled.challenge_rating,
        rank=scaled.rank.value,
        size=scaled.size.value,
    )
    return scaled


def duplicate_actor(actor: CombatActor) -> CombatActor:
    """Copy an actor under a fresh id with a '(Copy)' name suffix."""
    return actor.evolve(id=uuid4().hex, name=f"{actor.name} (Copy)")


# =============================================================================
# Encounter Sampling
# =============================================================================


@dataclass(frozen=True)
class EncounterSuggestion:
    """One sampled slot of an encounter, before it becomes an actor."""

    template: str
    difficulty: Difficulty
    size: Size


def _roll_difficulty(roll: float, remaining: float) -> Difficulty:
    if roll > 0.9 and remaining >= DIFFICULTY_COSTS["Boss"]:
        return Difficulty.BOSS
    if roll > 0.7 and remaining >= DIFFICULTY_COSTS["Elite"]:
        return Difficulty.ELITE
    if roll > 0.3:
        return Difficulty.NORMAL
    return Difficulty.WEAK


def compose_encounter(
    party_size: int,
    *,
    ruleset: Ruleset,
    rng: random.Random | None = None,
) -> list[EncounterSuggestion]:
    """Sample an encounter until the party's power budget is spent.

    The budget is ``party_size * 1.5``. Each pick rolls a difficulty tier
    (Boss and Elite only when the remaining budget covers them), a
    composable template and a size. Normal and Weak picks are not budget
    checked, so the last pick may overshoot.

    Args:
        party_size: Number of party members.
        ruleset: Configuration snapshot providing the template pool.
        rng: Random source; a fresh unseeded one by default.

    Returns:
        Suggestions in the order they were drawn.
    """
    rng = rng or random.Random()
    templates = ruleset.composable_templates() or [ruleset.baseline_template]
    budget = max(0, coerce_int(party_size, 0)) * ENCOUNTER_BUDGET_PER_MEMBER

    suggestions: list[EncounterSuggestion] = []
    while budget > 0:
        difficulty = _roll_difficulty(rng.random(), budget)
        suggestions.append(
            EncounterSuggestion(
                template=rng.choice(templates),
                difficulty=difficulty,
                size=Size(rng.choice(COMPOSER_SIZES)),
            )
        )
        budget -= DIFFICULTY_COSTS[difficulty.display_name]

    logger.info(
        "Encounter composed",
        party_size=party_size,
        actors=len(suggestions),
        ruleset_version=ruleset.version,
    )
    return suggestions


def materialize_encounter(
    suggestions: Iterable[EncounterSuggestion],
    player_level: int,
    *,
    ruleset: Ruleset,
    base_score: int,
) -> list[CombatActor]:
    """Turn sampled suggestions into scaled enemy actors.

    Repeated templates are numbered ('Brute', 'Brute 2', ...).
    """
    seen: dict[str, int] = {}
    actors: list[CombatActor] = []
    for suggestion in suggestions:
        params = get_difficulty_params(suggestion.difficulty, player_level)
        seen[suggestion.template] = seen.get(suggestion.template, 0) + 1
        count = seen[suggestion.template]
        name = suggestion.template if count == 1 else f"{suggestion.template} {count}"
        actors.append(
            generate_from_template(
                suggestion.template,
                params.challenge_rating,
                params.rank,
                suggestion.size,
                ruleset=ruleset,
                base_score=base_score,
                name=name,
            )
        )
    return actors


# =============================================================================
# Defenses
# =============================================================================


def set_defense_tags(
    actor: CombatActor,
    category: DefenseCategory | str,
    values: Sequence[DamageType | str],
) -> CombatActor:
    """Replace one defense set, evicting its types from the other two.

    Any damage type newly present in the edited set is removed from the
    other sets, so the three stay pairwise disjoint.

    Args:
        actor: Actor to edit.
        category: Resistances, immunities or vulnerabilities.
        values: The full new contents of that set.

    Returns:
        The edited actor.

    Example:
        >>> fire = CombatActor(resistances=["fire"])
        >>> edited = set_defense_tags(fire, "immunities", ["fire"])
        >>> edited.resistances, edited.immunities
        (set(), {<DamageType.FIRE: 'fire'>})
    """
    edited = DefenseCategory(category)
    new_tags: set[DamageType] = set()
    for value in values:
        try:
            new_tags.add(DamageType(value))
        except ValueError:
            logger.debug("Ignoring unknown damage type", value=value)

    sets = {
        DefenseCategory.RESISTANCES: set(actor.resistances),
        DefenseCategory.IMMUNITIES: set(actor.immunities),
        DefenseCategory.VULNERABILITIES: set(actor.vulnerabilities),
    }
    added = new_tags - sets[edited]
    sets[edited] = new_tags
    for other in DefenseCategory:
        if other != edited:
            sets[other] -= added

    return actor.evolve(
        resistances=sets[DefenseCategory.RESISTANCES],
        immunities=sets[DefenseCategory.IMMUNITIES],
        vulnerabilities=sets[DefenseCategory.VULNERABILITIES],
    )


def apply_affinity(actor: CombatActor, affinity_name: str | None, ruleset: Ruleset) -> CombatActor:
    """Assign an affinity and copy its defense sets onto the actor.

    An empty or unknown affinity name falls back to no affinity, which
    clears all three defense sets.
    """
    affinity = ruleset.get_affinity(affinity_name)
    if affinity is None:
        if affinity_name:
            logger.warning("Unknown affinity, clearing defenses", affinity=affinity_name)
        return actor.evolve(affinity=None, resistances=set(), immunities=set(), vulnerabilities=set())
    return actor.evolve(
        affinity=affinity.name,
        resistances=set(affinity.resistances),
        immunities=set(affinity.immunities),
        vulnerabilities=set(affinity.vulnerabilities),
    )


__all__ = [
    "DifficultyParams",
    "parse_difficulty",
    "get_difficulty_params",
    "generate_from_template",
    "duplicate_actor",
    "EncounterSuggestion",
    "compose_encounter",
    "materialize_encounter",
    "set_defense_tags",
    "apply_affinity",
]
