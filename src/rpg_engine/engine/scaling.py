"""Stat scaling for combat actors.

``scale_actor`` recomputes every derived stat of an actor from its
challenge rating, rank, size, template, ship flag and the configured base
ability score. It is deterministic and total: malformed inputs are coerced
before any math runs, and it never raises.

The proportion of current to maximum HP (and temp HP) survives a rescale,
so an actor at half health before a CR bump is still at half health after.

Example:
    >>> from rpg_engine.engine.library import default_ruleset
    >>> from rpg_engine.models.actor import CombatActor
    >>> brute = CombatActor(template="Brute", challenge_rating=3)
    >>> scaled = scale_actor(brute, default_ruleset(), base_score=8)
    >>> scaled.max_hit_points, scaled.attacks == []
    (39, True)
"""

from __future__ import annotations

import math

from rpg_engine.core.constants import (
    ATTACK_COUNT_BRACKETS,
    DAMAGE_DICE_BRACKETS,
    DEFAULT_ABILITY_SCORE,
    HIT_POINTS_PER_CR_BASE,
    MAX_ATTACK_COUNT,
    MAX_DAMAGE_DICE,
    MIN_ABILITY_SCORE,
    MIN_MAX_HIT_POINTS,
    RANK_ABILITY_BONUS,
    RANK_AC_BONUS,
    RANK_TEMP_HP_MULTIPLIER,
    SAVE_DC_BASE,
    SHIP_MULTIPLIER,
)
from rpg_engine.core.logging import get_logger
from rpg_engine.models.actor import (
    CombatActor,
    SkillProficiency,
    calculate_modifier,
    coerce_int,
    coerce_number,
    format_modifier,
)
from rpg_engine.models.enums import Ability, EffectType, Rank, Skill
from rpg_engine.models.ruleset import Ruleset


logger = get_logger(__name__)


# =============================================================================
# Formula Helpers
# =============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def effective_challenge_rating(actor: CombatActor) -> float:
    """CR used for derived math; zero and malformed CR count as 1."""
    challenge_rating = coerce_number(actor.challenge_rating, 0)
    return challenge_rating if challenge_rating > 0 else 1


def proficiency_bonus_for(challenge_rating: float) -> int:
    """``floor(CR / 5) + 2``."""
    return math.floor(challenge_rating / 5) + 2


def attack_count_for(challenge_rating: float) -> int:
    """Attacks per turn by CR bracket."""
    for ceiling, count in ATTACK_COUNT_BRACKETS:
        if challenge_rating < ceiling:
            return count
    return MAX_ATTACK_COUNT


def damage_dice_for(challenge_rating: float) -> str:
    """Weapon damage dice by CR bracket."""
    for ceiling, dice in DAMAGE_DICE_BRACKETS:
        if challenge_rating < ceiling:
            return dice
    return MAX_DAMAGE_DICE


def rescale_pool(previous_current: int, previous_max: int, new_max: int) -> int:
    """Carry a current/max pool across a change of maximum.

    An actor that was full, or had no previous maximum, snaps to the new
    maximum. Anyone else keeps the same proportion, rounded half-up.

    Example:
        >>> rescale_pool(5, 10, 20)
        10
        >>> rescale_pool(10, 10, 30)
        30
    """
    if previous_max <= 0 or previous_current == previous_max:
        return new_max
    ratio = max(previous_current, 0) / previous_max
    return min(new_max, round_half_up(new_max * ratio))


def rank_abilities(scores: dict[Ability, int]) -> list[Ability]:
    """Order abilities by score, highest first.

    Ties keep the canonical order strength, dexterity, constitution,
    intelligence, wisdom, charisma.
    """
    return sorted(Ability, key=lambda ability: -scores[ability])


# =============================================================================
# Scaling
# =============================================================================


def scale_actor(actor: CombatActor, ruleset: Ruleset, base_score: int) -> CombatActor:
    """Recompute every derived stat of an actor.

    Args:
        actor: The actor to rescale; left untouched.
        ruleset: Snapshot providing templates, sizes and archetypes.
        base_score: Ability score every actor starts from.

    Returns:
        A new actor with ability scores, saves, skills, AC, HP, temp HP,
        attack count, attacks, special abilities and speeds recomputed.
    """
    base = coerce_int(base_score, DEFAULT_ABILITY_SCORE, minimum=MIN_ABILITY_SCORE)
    rank = Rank(actor.rank)
    challenge_rating = effective_challenge_rating(actor)
    template = ruleset.get_template(actor.template)
    size_modifier = ruleset.get_size_modifier(actor.size)
    ship_multiplier = SHIP_MULTIPLIER if actor.is_ship else 1

    proficiency = proficiency_bonus_for(challenge_rating)
    rank_bonus = RANK_ABILITY_BONUS[rank.value]

    # No ceiling; scores below 1 are not valid on an actor record
    scores = {
        ability: max(MIN_ABILITY_SCORE, base + template.modifier_for(ability) + rank_bonus)
        for ability in Ability
    }
    modifiers = {ability: calculate_modifier(score) for ability, score in scores.items()}

    ranked = rank_abilities(scores)
    highest = ranked[0]
    highest_mod = modifiers[highest]
    saving_throws = {ability: ability in ranked[:2] for ability in Ability}

    proficient_skills = set(template.skills)
    skills = {
        skill: SkillProficiency(
            proficient=skill in proficient_skills,
            passive_score=10
            + modifiers[skill.ability]
            + (proficiency if skill in proficient_skills else 0),
        )
        for skill in Skill
    }

    armor_class = math.floor(
        10
        + challenge_rating / 2
        + modifiers[Ability.DEX]
        + size_modifier.armor_class
        + RANK_AC_BONUS[rank.value]
    )

    max_hp = max(
        MIN_MAX_HIT_POINTS,
        math.floor((HIT_POINTS_PER_CR_BASE + modifiers[Ability.CON]) * challenge_rating),
    ) * ship_multiplier
    current_hp = rescale_pool(actor.current_hit_points, actor.max_hit_points, max_hp)

    max_temp_hp = (
        math.floor(challenge_rating * RANK_TEMP_HP_MULTIPLIER[rank.value]) * ship_multiplier
    )
    if max_temp_hp > 0:
        temp_hp = rescale_pool(
            actor.temporary_hit_points, actor.max_temporary_hit_points, max_temp_hp
        )
    else:
        temp_hp = 0

    damage_dice = damage_dice_for(challenge_rating) + format_modifier(highest_mod)
    attacks = [
        attack.model_copy(
            update={
                "to_hit": proficiency + highest_mod,
                "damage_dice": damage_dice,
                "ability": highest,
            }
        )
        for attack in actor.attacks
    ]

    save_dc = SAVE_DC_BASE + proficiency + highest_mod
    ability_dice = f"{math.ceil(challenge_rating / 2)}d6"
    special_abilities = []
    for special in actor.special_abilities:
        effect_update: dict[str, object] = {"dc": save_dc}
        if special.effect.type == EffectType.DAMAGE:
            effect_update["damage_dice"] = ability_dice
        special_abilities.append(
            special.model_copy(
                update={"effect": special.effect.model_copy(update=effect_update)}
            )
        )

    movement = ruleset.get_archetype(actor.archetype)

    scaled = actor.evolve(
        challenge_rating=coerce_number(actor.challenge_rating, 0),
        proficiency_bonus=proficiency,
        ability_scores=scores,
        saving_throws=saving_throws,
        skills=skills,
        armor_class=armor_class,
        max_hit_points=max_hp,
        current_hit_points=current_hp,
        max_temporary_hit_points=max_temp_hp,
        temporary_hit_points=temp_hp,
        number_of_attacks=attack_count_for(challenge_rating) * ship_multiplier,
        attacks=attacks,
        special_abilities=special_abilities,
        speed=movement.ground,
        climb_speed=movement.climb,
        swim_speed=movement.swim,
        fly_speed=movement.fly,
    )

    logger.debug(
        "Actor scaled",
        actor_id=actor.id,
        template=template.name,
        cr=challenge_rating,
        rank=rank.value,
        max_hp=max_hp,
        ruleset_version=ruleset.version,
    )
    return scaled


__all__ = [
    "round_half_up",
    "effective_challenge_rating",
    "proficiency_bonus_for",
    "attack_count_for",
    "damage_dice_for",
    "rescale_pool",
    "rank_abilities",
    "scale_actor",
]
