"""Combat actor models.

This module defines the CombatActor record and its nested parts. Actor
records live inside the host application's save document, so every model
accepts camelCase keys and coerces malformed numbers to safe defaults
instead of rejecting the record.

Models:
    StatusEffect: A named effect with a remaining duration in rounds.
    SkillProficiency: Per-skill proficiency flag and passive score.
    Attack: A weapon-style attack with to-hit bonus and damage dice.
    AbilityEffect: What a special ability or item does when used.
    SpecialAbility: A named ability wrapping an AbilityEffect.
    CombatActor: The full actor stat block.
"""

from __future__ import annotations

import math
from typing import Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from rpg_engine.core.constants import (
    DEFAULT_ABILITY_SCORE,
    DEFAULT_COUNT,
    DEFAULT_CRIT_RANGE,
    DEFAULT_DURATION,
    DEFAULT_PROFICIENCY_BONUS,
)
from rpg_engine.models.enums import (
    Ability,
    ActorAlignment,
    AttackChannel,
    DamageType,
    EffectType,
    Rank,
    SaveEffect,
    Size,
    Skill,
    TargetScope,
)


RECORD_CONFIG = ConfigDict(
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


# =============================================================================
# Coercion Helpers
# =============================================================================


def coerce_number(value: Any, default: float, *, minimum: float | None = 0) -> float:
    """Coerce a loosely typed number, falling back to a default.

    Args:
        value: Raw value from an actor record.
        default: Value used when the input is missing, non-numeric or NaN.
        minimum: Values below this are also replaced by the default.

    Returns:
        A finite float.

    Example:
        >>> coerce_number("3", 0)
        3.0
        >>> coerce_number(float("nan"), 10)
        10
    """
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    if minimum is not None and number < minimum:
        return default
    return number


def coerce_int(value: Any, default: int, *, minimum: int | None = 0) -> int:
    """Coerce a loosely typed integer, falling back to a default.

    Fractional input is truncated toward zero.

    Args:
        value: Raw value from an actor record.
        default: Value used when the input is missing or malformed.
        minimum: Values below this are also replaced by the default.

    Returns:
        An integer.
    """
    return int(coerce_number(value, default, minimum=minimum))


def format_modifier(modifier: int) -> str:
    """Render a modifier with an explicit sign.

    Example:
        >>> format_modifier(3), format_modifier(0), format_modifier(-1)
        ('+3', '+0', '-1')
    """
    return f"+{modifier}" if modifier >= 0 else str(modifier)


def calculate_modifier(score: int) -> int:
    """Calculate the ability modifier from an ability score.

    Example:
        >>> calculate_modifier(10), calculate_modifier(7)
        (0, -2)
    """
    return (score - 10) // 2


# =============================================================================
# Nested Parts
# =============================================================================


class StatusEffect(BaseModel):
    """A status effect with a remaining duration in whole rounds.

    Attributes:
        name: Effect name; at most one entry per name lives on an actor.
        duration: Remaining rounds.
    """

    model_config = RECORD_CONFIG

    name: str = Field(min_length=1, description="Effect name")
    duration: int = Field(default=DEFAULT_DURATION, description="Remaining rounds")

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, value: Any) -> int:
        """Replace missing, malformed or non-positive durations with one round."""
        return coerce_int(value, DEFAULT_DURATION, minimum=1)


class SkillProficiency(BaseModel):
    """Proficiency and computed passive score for one skill."""

    model_config = RECORD_CONFIG

    proficient: bool = False
    passive_score: int = Field(default=10, description="10 + modifier (+ proficiency)")


class Attack(BaseModel):
    """A weapon-style attack.

    Attributes:
        name: Attack name.
        to_hit: Bonus added to the attack roll.
        damage_dice: Damage formula such as '1d6+2'.
        damage_type: Damage type tag.
        ability: Ability the attack keys off, set by stat scaling.
        channel: Melee or ranged, used by positional status rules.
        crit_range: Lowest natural roll that crits.
    """

    model_config = RECORD_CONFIG

    name: str = Field(default="Strike", min_length=1)
    to_hit: int = 0
    damage_dice: str = "1d6"
    damage_type: DamageType = DamageType.BLUDGEONING
    ability: Ability | None = None
    channel: AttackChannel = AttackChannel.MELEE
    crit_range: int = Field(default=DEFAULT_CRIT_RANGE)

    @field_validator("to_hit", mode="before")
    @classmethod
    def coerce_to_hit(cls, value: Any) -> int:
        """Coerce the to-hit bonus, allowing negative values."""
        return coerce_int(value, 0, minimum=None)

    @field_validator("crit_range", mode="before")
    @classmethod
    def coerce_crit_range(cls, value: Any) -> int:
        """Keep the crit range on the d20."""
        crit = coerce_int(value, DEFAULT_CRIT_RANGE, minimum=2)
        return min(crit, DEFAULT_CRIT_RANGE)


class AbilityEffect(BaseModel):
    """What a special ability or item does.

    Damage and status effects may carry a save; a saved effect is rolled
    by the target against ``dc``. Heal effects always land.
    """

    model_config = RECORD_CONFIG

    type: EffectType = EffectType.DAMAGE
    target_scope: TargetScope = TargetScope.SINGLE
    dc: int | None = None
    save_ability: Ability | None = None
    save_effect: SaveEffect | None = None
    damage_dice: str | None = None
    damage_type: DamageType | None = None
    status: str | None = None
    duration: int | None = None
    heal_dice: str | None = None

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, value: Any) -> int | None:
        """Coerce the status duration when one is given."""
        if value is None:
            return None
        return coerce_int(value, DEFAULT_DURATION, minimum=1)


class SpecialAbility(BaseModel):
    """A named special ability."""

    model_config = RECORD_CONFIG

    name: str = Field(min_length=1)
    description: str = ""
    effect: AbilityEffect = Field(default_factory=AbilityEffect)


# =============================================================================
# Combat Actor
# =============================================================================


def _default_scores() -> dict[Ability, int]:
    return {ability: DEFAULT_ABILITY_SCORE for ability in Ability}


def _default_saves() -> dict[Ability, bool]:
    return {ability: False for ability in Ability}


def _default_skills() -> dict[Skill, SkillProficiency]:
    return {skill: SkillProficiency() for skill in Skill}


class CombatActor(BaseModel):
    """A fully specified combat actor.

    Actors are treated as immutable snapshots: every engine operation
    returns a new actor built with :meth:`evolve`, which re-runs the
    coercion and invariant checks below.

    Invariants enforced on every construction:
        - ``current_hit_points`` is within ``[0, max_hit_points]``.
        - ``temporary_hit_points`` is within ``[0, max_temporary_hit_points]``.
        - Defense sets are pairwise disjoint; on conflict an immunity wins
          over a resistance, which wins over a vulnerability.
        - At most one status effect per name; the last entry wins.
        - ``is_ally`` always mirrors ``alignment``.

    Example:
        >>> actor = CombatActor(name="Goblin", alignment="enemy")
        >>> actor.is_ally
        False
    """

    model_config = RECORD_CONFIG

    # Identity
    id: str = Field(default_factory=lambda: uuid4().hex, min_length=1)
    name: str = Field(default="Unnamed Entity")
    description: str = ""
    template: str = "Custom"
    affinity: str | None = None
    archetype: str = "Bipedal"
    rank: Rank = Rank.NORMAL
    challenge_rating: float = 0
    size: Size = Size.MEDIUM
    alignment: ActorAlignment = ActorAlignment.NEUTRAL
    is_ship: bool = False
    is_player: bool = False
    in_party: bool = False
    heroic_points: int = 0

    # Vitals
    max_hit_points: int = 10
    current_hit_points: int = 10
    max_temporary_hit_points: int = 0
    temporary_hit_points: int = 0
    armor_class: int = 10
    proficiency_bonus: int = DEFAULT_PROFICIENCY_BONUS

    # Capabilities
    ability_scores: dict[Ability, int] = Field(default_factory=_default_scores)
    saving_throws: dict[Ability, bool] = Field(default_factory=_default_saves)
    skills: dict[Skill, SkillProficiency] = Field(default_factory=_default_skills)
    attacks: list[Attack] = Field(default_factory=list)
    special_abilities: list[SpecialAbility] = Field(default_factory=list)
    number_of_attacks: int = DEFAULT_COUNT

    # Defenses
    resistances: set[DamageType] = Field(default_factory=set)
    immunities: set[DamageType] = Field(default_factory=set)
    vulnerabilities: set[DamageType] = Field(default_factory=set)

    # Transient
    status_effects: list[StatusEffect] = Field(default_factory=list)

    # Movement
    speed: int = 30
    climb_speed: int = 0
    swim_speed: int = 0
    fly_speed: int = 0

    # -------------------------------------------------------------------------
    # Coercion
    # -------------------------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def reconcile_ally_flag(cls, data: Any) -> Any:
        """Map a legacy ``isAlly`` flag onto ``alignment`` and drop it."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        snake = data.pop("is_ally", None)
        camel = data.pop("isAlly", None)
        is_ally = snake if snake is not None else camel
        if is_ally is not None and "alignment" not in data:
            data["alignment"] = ActorAlignment.ALLY if is_ally else ActorAlignment.ENEMY
        return data

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return "Unnamed Entity"
        return value

    @field_validator("challenge_rating", mode="before")
    @classmethod
    def coerce_challenge_rating(cls, value: Any) -> float:
        """Replace NaN, negative or non-numeric CR with zero."""
        return coerce_number(value, 0)

    @field_validator(
        "max_hit_points",
        "current_hit_points",
        "max_temporary_hit_points",
        "temporary_hit_points",
        "armor_class",
        "heroic_points",
        "speed",
        "climb_speed",
        "swim_speed",
        "fly_speed",
        mode="before",
    )
    @classmethod
    def coerce_non_negative(cls, value: Any) -> int:
        """Replace malformed HP-like fields with zero."""
        return coerce_int(value, 0)

    @field_validator("proficiency_bonus", mode="before")
    @classmethod
    def coerce_proficiency(cls, value: Any) -> int:
        return coerce_int(value, DEFAULT_PROFICIENCY_BONUS)

    @field_validator("number_of_attacks", mode="before")
    @classmethod
    def coerce_attack_count(cls, value: Any) -> int:
        """Replace malformed or zero attack counts with one."""
        return coerce_int(value, DEFAULT_COUNT, minimum=1)

    @field_validator("ability_scores", mode="before")
    @classmethod
    def coerce_ability_scores(cls, value: Any) -> dict[Ability, int]:
        """Fill all six scores, accepting ``{"score": n}`` entries.

        Unknown keys are dropped and malformed scores become 10.
        """
        scores = _default_scores()
        if not isinstance(value, dict):
            return scores
        for key, raw in value.items():
            try:
                ability = Ability(key)
            except ValueError:
                continue
            if isinstance(raw, dict):
                raw = raw.get("score")
            scores[ability] = coerce_int(raw, DEFAULT_ABILITY_SCORE, minimum=1)
        return scores

    @field_validator("saving_throws", mode="before")
    @classmethod
    def coerce_saving_throws(cls, value: Any) -> dict[Ability, bool]:
        """Fill all six saves, accepting ``{"proficient": bool}`` entries."""
        saves = _default_saves()
        if not isinstance(value, dict):
            return saves
        for key, raw in value.items():
            try:
                ability = Ability(key)
            except ValueError:
                continue
            if isinstance(raw, dict):
                raw = raw.get("proficient", False)
            saves[ability] = bool(raw)
        return saves

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, value: Any) -> dict[Skill, Any]:
        """Fill every skill and drop unknown skill names."""
        skills: dict[Skill, Any] = dict(_default_skills())
        if not isinstance(value, dict):
            return skills
        for key, raw in value.items():
            try:
                skill = Skill(key)
            except ValueError:
                continue
            if isinstance(raw, (dict, SkillProficiency)):
                skills[skill] = raw
        return skills

    @field_validator("resistances", "immunities", "vulnerabilities", mode="before")
    @classmethod
    def coerce_defense_tags(cls, value: Any) -> set[DamageType]:
        """Keep only recognised damage types."""
        if value is None or isinstance(value, str):
            value = [value] if value else []
        tags: set[DamageType] = set()
        for raw in value:
            try:
                tags.add(DamageType(raw))
            except ValueError:
                continue
        return tags

    @field_validator("status_effects", mode="before")
    @classmethod
    def coerce_status_effects(cls, value: Any) -> list[Any]:
        """Accept bare status names as one-round effects."""
        if not isinstance(value, (list, tuple)):
            return []
        effects: list[Any] = []
        for raw in value:
            if isinstance(raw, str):
                if raw.strip():
                    effects.append({"name": raw})
            elif isinstance(raw, StatusEffect):
                effects.append(raw)
            elif isinstance(raw, dict) and str(raw.get("name") or "").strip():
                effects.append(raw)
        return effects

    @model_validator(mode="after")
    def enforce_invariants(self) -> CombatActor:
        """Clamp vitals, reconcile defenses and collapse duplicate statuses."""
        self.current_hit_points = min(self.current_hit_points, self.max_hit_points)
        self.temporary_hit_points = min(
            self.temporary_hit_points, self.max_temporary_hit_points
        )

        self.resistances = self.resistances - self.immunities
        self.vulnerabilities = self.vulnerabilities - self.immunities - self.resistances

        by_name: dict[str, StatusEffect] = {}
        for effect in self.status_effects:
            by_name.pop(effect.name, None)
            by_name[effect.name] = effect
        self.status_effects = list(by_name.values())
        return self

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @computed_field(description="Mirror of alignment == ally")
    @property
    def is_ally(self) -> bool:
        """Whether the actor fights on the party's side."""
        return self.alignment == ActorAlignment.ALLY

    @property
    def is_defeated(self) -> bool:
        """Whether the actor is at 0 HP."""
        return self.current_hit_points <= 0

    def modifier(self, ability: Ability) -> int:
        """Get the modifier for one ability score."""
        return calculate_modifier(self.ability_scores[ability])

    def has_status(self, name: str) -> bool:
        """Check for a status effect by case-insensitive name."""
        wanted = name.strip().lower()
        return any(effect.name.strip().lower() == wanted for effect in self.status_effects)

    def evolve(self, **changes: Any) -> CombatActor:
        """Return a validated copy with the given fields replaced.

        Args:
            **changes: Field values to replace, by field name.

        Returns:
            A new CombatActor; the original is left untouched.
        """
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def to_record(self) -> dict[str, Any]:
        """Serialise to the camelCase shape used in save documents."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "RECORD_CONFIG",
    "coerce_number",
    "coerce_int",
    "format_modifier",
    "calculate_modifier",
    "StatusEffect",
    "SkillProficiency",
    "Attack",
    "AbilityEffect",
    "SpecialAbility",
    "CombatActor",
]
