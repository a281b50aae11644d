"""Enumeration types for the encounter rules engine.

Every enum here is a StrEnum so actor records serialise to plain strings.
Lookups are case-insensitive and tolerate spaces, which lets records
written with display names ("Piercing", "Sleight of Hand") load cleanly.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class _LenientStrEnum(StrEnum):
    """StrEnum that also matches member names and display spellings."""

    @classmethod
    def _missing_(cls, value: Any) -> _LenientStrEnum | None:
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
        for member in cls:
            if member.value == normalized or member.name.lower() == normalized:
                return member
        return None

    @property
    def display_name(self) -> str:
        """Get the human-readable name (e.g. 'Sleight Of Hand')."""
        return self.value.replace("_", " ").title()


class Ability(_LenientStrEnum):
    """The six ability scores, in their canonical enumeration order.

    The declaration order doubles as the tie-break order wherever the
    engine ranks abilities by score.
    """

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'STR').
        """
        return self.name


class Skill(_LenientStrEnum):
    """Skills and their associated abilities."""

    # Strength skills
    ATHLETICS = "athletics"

    # Dexterity skills
    ACROBATICS = "acrobatics"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"

    # Intelligence skills
    ARCANA = "arcana"
    HISTORY = "history"
    INVESTIGATION = "investigation"
    NATURE = "nature"
    RELIGION = "religion"

    # Wisdom skills
    ANIMAL_HANDLING = "animal_handling"
    INSIGHT = "insight"
    MEDICINE = "medicine"
    PERCEPTION = "perception"
    SURVIVAL = "survival"

    # Charisma skills
    DECEPTION = "deception"
    INTIMIDATION = "intimidation"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"

    @property
    def ability(self) -> Ability:
        """Get the ability score this skill is checked against.

        Returns:
            The Ability enum value associated with this skill.
        """
        return SKILL_ABILITIES[self]


SKILL_ABILITIES: dict[Skill, Ability] = {
    Skill.ATHLETICS: Ability.STR,
    Skill.ACROBATICS: Ability.DEX,
    Skill.SLEIGHT_OF_HAND: Ability.DEX,
    Skill.STEALTH: Ability.DEX,
    Skill.ARCANA: Ability.INT,
    Skill.HISTORY: Ability.INT,
    Skill.INVESTIGATION: Ability.INT,
    Skill.NATURE: Ability.INT,
    Skill.RELIGION: Ability.INT,
    Skill.ANIMAL_HANDLING: Ability.WIS,
    Skill.INSIGHT: Ability.WIS,
    Skill.MEDICINE: Ability.WIS,
    Skill.PERCEPTION: Ability.WIS,
    Skill.SURVIVAL: Ability.WIS,
    Skill.DECEPTION: Ability.CHA,
    Skill.INTIMIDATION: Ability.CHA,
    Skill.PERFORMANCE: Ability.CHA,
    Skill.PERSUASION: Ability.CHA,
}


class DamageType(_LenientStrEnum):
    """Damage type tags used by attacks and defenses."""

    PIERCING = "piercing"
    SLASHING = "slashing"
    BLUDGEONING = "bludgeoning"
    FIRE = "fire"
    COLD = "cold"
    ELECTRIC = "electric"
    ACID = "acid"
    NECROTIC = "necrotic"
    RADIANT = "radiant"
    FORCE = "force"
    POISON = "poison"
    PSYCHIC = "psychic"
    THUNDER = "thunder"


class DefenseCategory(_LenientStrEnum):
    """The three mutually exclusive defense sets on an actor."""

    RESISTANCES = "resistances"
    IMMUNITIES = "immunities"
    VULNERABILITIES = "vulnerabilities"


class StatusName(_LenientStrEnum):
    """Status effects with rules meaning.

    Actors may also carry free-form status names; only these take part
    in targeting and roll-mode rules.
    """

    STUNNED = "stunned"
    PARALYZED = "paralyzed"
    POISONED = "poisoned"
    PRONE = "prone"
    BLINDED = "blinded"
    DEAFENED = "deafened"
    INVISIBLE = "invisible"
    HIDDEN = "hidden"
    DISAPPEARED = "disappeared"
    UNCONSCIOUS = "unconscious"


UNTARGETABLE_STATUSES = frozenset(
    {StatusName.INVISIBLE, StatusName.HIDDEN, StatusName.DISAPPEARED}
)


class Rank(_LenientStrEnum):
    """Power tier layered on top of challenge rating."""

    NORMAL = "normal"
    ELITE = "elite"
    BOSS = "boss"


class Size(_LenientStrEnum):
    """Actor sizes, smallest first."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE = "huge"
    GARGANTUAN = "gargantuan"
    COLOSSAL = "colossal"


class ActorAlignment(_LenientStrEnum):
    """Which side of an encounter an actor fights on."""

    ENEMY = "enemy"
    NEUTRAL = "neutral"
    ALLY = "ally"


class AttackChannel(_LenientStrEnum):
    """Preferred attack channel of an enemy template."""

    MELEE = "melee"
    RANGED = "ranged"
    MAGIC = "magic"


class EffectType(_LenientStrEnum):
    """What a special ability or item effect does."""

    DAMAGE = "damage"
    STATUS = "status"
    HEAL = "heal"


class TargetScope(_LenientStrEnum):
    """Whether an effect hits one chosen target or every valid one."""

    SINGLE = "single"
    MULTIPLE = "multiple"


class SaveEffect(_LenientStrEnum):
    """What a successful save does to an effect's damage."""

    HALF = "half"
    NEGATE = "negate"


class Difficulty(_LenientStrEnum):
    """Named difficulty presets for generated enemies."""

    WEAK = "weak"
    NORMAL = "normal"
    ELITE = "elite"
    BOSS = "boss"


class SourceKind(_LenientStrEnum):
    """Kind of thing a combat action is performed with."""

    WEAPON = "weapon"
    ABILITY = "ability"
    ITEM = "item"


class RollKind(_LenientStrEnum):
    """Kinds of rolls emitted by the resolution pipeline."""

    ATTACK = "attack_roll"
    SAVING_THROW = "saving_throw"
    DAMAGE = "damage_roll"
    HEALING = "healing_roll"


class RollOutcome(_LenientStrEnum):
    """Outcome of a d20 roll."""

    CRITICAL_HIT = "critical_hit"
    HIT = "hit"
    MISS = "miss"
    CRITICAL_SUCCESS = "critical_success"
    SUCCESS = "success"
    FAIL = "fail"
    CRITICAL_FAIL = "critical_fail"

    @property
    def is_success(self) -> bool:
        """Whether the roller achieved what they rolled for."""
        return self in {
            RollOutcome.CRITICAL_HIT,
            RollOutcome.HIT,
            RollOutcome.CRITICAL_SUCCESS,
            RollOutcome.SUCCESS,
        }


class RollType(_LenientStrEnum):
    """Modes a d20 roll can be made in."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"
    CRITICAL = "critical"


class MoveDirection(_LenientStrEnum):
    """Direction for reordering a turn-order entry."""

    UP = "up"
    DOWN = "down"


__all__ = [
    "Ability",
    "Skill",
    "SKILL_ABILITIES",
    "DamageType",
    "DefenseCategory",
    "StatusName",
    "UNTARGETABLE_STATUSES",
    "Rank",
    "Size",
    "ActorAlignment",
    "AttackChannel",
    "EffectType",
    "TargetScope",
    "SaveEffect",
    "Difficulty",
    "SourceKind",
    "RollKind",
    "RollOutcome",
    "RollType",
    "MoveDirection",
]
