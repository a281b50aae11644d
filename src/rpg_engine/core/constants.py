"""Rules constants for the encounter rules engine.

Numeric tables used by stat scaling, encounter composition and combat
resolution. The data tables that designers are expected to edit
(templates, affinities, sizes, archetypes) live in
``rpg_engine.engine.library`` instead.
"""

from __future__ import annotations

# =============================================================================
# Coercion Defaults
# =============================================================================

DEFAULT_ABILITY_SCORE = 10
"""Replacement for a missing or malformed ability score."""

DEFAULT_COUNT = 1
"""Replacement for a missing or malformed count (attacks, repeats)."""

DEFAULT_DURATION = 1
"""Replacement for a missing or malformed status duration, in rounds."""

MIN_ABILITY_SCORE = 1
"""Lowest ability score a scaled actor can end up with."""


# =============================================================================
# Stat Scaling
# =============================================================================

RANK_ABILITY_BONUS = {"normal": 0, "elite": 2, "boss": 4}
"""Flat bonus added to every ability score, by rank."""

RANK_AC_BONUS = {"normal": 0, "elite": 1, "boss": 2}
"""Armor class bonus, by rank."""

RANK_TEMP_HP_MULTIPLIER = {"normal": 0, "elite": 3, "boss": 10}
"""Temporary hit point cap per point of challenge rating, by rank."""

MIN_MAX_HIT_POINTS = 5
"""Floor for a scaled actor's maximum hit points."""

HIT_POINTS_PER_CR_BASE = 12
"""Hit points per challenge rating before the constitution modifier."""

ATTACK_COUNT_BRACKETS = ((5, 1), (11, 2), (17, 3))
"""(exclusive CR ceiling, attack count) pairs; higher CR gets 4."""

MAX_ATTACK_COUNT = 4
"""Attack count above the last bracket."""

DAMAGE_DICE_BRACKETS = ((5, "1d6"), (9, "2d6"), (13, "3d6"), (17, "4d6"))
"""(exclusive CR ceiling, damage dice) pairs; higher CR gets 5d6."""

MAX_DAMAGE_DICE = "5d6"
"""Damage dice above the last bracket."""

SHIP_MULTIPLIER = 2
"""Multiplier applied to HP, temp HP and attack count for ships."""

SAVE_DC_BASE = 8
"""Base of every special-ability save DC."""

# =============================================================================
# Encounter Composition
# =============================================================================

ENCOUNTER_BUDGET_PER_MEMBER = 1.5
"""Power budget contributed by each party member."""

DIFFICULTY_COSTS = {"Weak": 0.5, "Normal": 1.0, "Elite": 1.5, "Boss": 2.0}
"""Budget consumed by one actor of each difficulty tier."""

COMPOSER_SIZES = ("Small", "Medium", "Large", "Huge")
"""Sizes the encounter composer draws from."""

ENEMY_XP_BY_CR = {1: 200, 2: 450, 3: 700, 4: 1100, 5: 1800}
"""Experience awarded for defeating an enemy of a given CR."""

FRACTIONAL_CR_XP = 10
"""Experience for an enemy below CR 1."""

XP_PER_HIGH_CR = 500
"""Experience per CR for enemies above the table."""

# =============================================================================
# Combat Resolution
# =============================================================================

DEFAULT_CRIT_RANGE = 20
"""Lowest natural d20 that scores a critical hit."""

DEFAULT_SAVE_DC = 10
"""DC used when an effect asks for a save without a DC."""

DEFAULT_HEAL_DICE = "1d8"
"""Healing dice when an effect does not specify any."""

FALLBACK_DICE = "1d4"
"""Dice used in place of an unparseable damage or healing formula."""

HEROIC_MULTIPLIER = 2
"""Multiplier a heroic action applies to dice and status durations."""

DEFAULT_PROFICIENCY_BONUS = 2
"""Proficiency bonus for actors that do not carry one."""


__all__ = [
    "DEFAULT_ABILITY_SCORE",
    "DEFAULT_COUNT",
    "DEFAULT_DURATION",
    "MIN_ABILITY_SCORE",
    "RANK_ABILITY_BONUS",
    "RANK_AC_BONUS",
    "RANK_TEMP_HP_MULTIPLIER",
    "MIN_MAX_HIT_POINTS",
    "HIT_POINTS_PER_CR_BASE",
    "ATTACK_COUNT_BRACKETS",
    "MAX_ATTACK_COUNT",
    "DAMAGE_DICE_BRACKETS",
    "MAX_DAMAGE_DICE",
    "SHIP_MULTIPLIER",
    "SAVE_DC_BASE",
    "ENCOUNTER_BUDGET_PER_MEMBER",
    "DIFFICULTY_COSTS",
    "COMPOSER_SIZES",
    "ENEMY_XP_BY_CR",
    "FRACTIONAL_CR_XP",
    "XP_PER_HIGH_CR",
    "DEFAULT_CRIT_RANGE",
    "DEFAULT_SAVE_DC",
    "DEFAULT_HEAL_DICE",
    "FALLBACK_DICE",
    "HEROIC_MULTIPLIER",
    "DEFAULT_PROFICIENCY_BONUS",
]
