"""Ruleset configuration models.

A Ruleset bundles every designer-editable table the engine reads: enemy
templates, affinities, size modifiers and movement archetypes. Rulesets
are frozen snapshots. Editing one produces a new snapshot with a bumped
version, so a scaling computation that already holds a snapshot never
observes a half-applied edit.

Example:
    >>> from rpg_engine.engine.library import default_ruleset
    >>> rules = default_ruleset()
    >>> rules.get_template("brute").name
    'Brute'
    >>> edited = rules.with_affinity(rules.get_affinity("Thermal"))
    >>> edited.version == rules.version + 1
    True
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpg_engine.core.exceptions import ValidationError
from rpg_engine.models.enums import (
    Ability,
    AttackChannel,
    DamageType,
    EffectType,
    SaveEffect,
    Size,
    Skill,
    TargetScope,
)


# =============================================================================
# Table Entries
# =============================================================================


class AbilityBlueprint(BaseModel):
    """Shape of a special ability granted by a template.

    Dice and DC are filled in by stat scaling; the blueprint only fixes
    what kind of ability it is.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: EffectType
    target_scope: TargetScope = TargetScope.SINGLE
    save_ability: Ability | None = None
    save_effect: SaveEffect | None = None
    status: str | None = None
    duration: int | None = None


class EnemyTemplate(BaseModel):
    """Role blueprint used to generate and scale actors.

    Attributes:
        name: Template name (e.g. 'Brute').
        attack_channel: Preferred attack channel.
        modifiers: Ability score modifiers; missing abilities count as 0.
        saves: Abilities the role is traditionally proficient in.
        skills: Proficient skills.
        abilities: Special ability blueprints.
        default_archetype: Movement archetype used when none is given.
        composable: Whether the encounter composer may draw this template.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    attack_channel: AttackChannel = AttackChannel.MELEE
    modifiers: dict[Ability, int] = Field(default_factory=dict)
    saves: tuple[Ability, ...] = ()
    skills: tuple[Skill, ...] = ()
    abilities: tuple[AbilityBlueprint, ...] = ()
    default_archetype: str | None = None
    composable: bool = True

    @field_validator("modifiers", mode="after")
    @classmethod
    def fill_modifiers(cls, value: dict[Ability, int]) -> dict[Ability, int]:
        """Give every ability an explicit modifier."""
        return {ability: value.get(ability, 0) for ability in Ability}

    def modifier_for(self, ability: Ability) -> int:
        """Get the template's modifier for one ability."""
        return self.modifiers.get(ability, 0)


class AffinityDefinition(BaseModel):
    """Elemental tag bundling a fixed set of defenses."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    description: str = ""
    resistances: frozenset[DamageType] = frozenset()
    immunities: frozenset[DamageType] = frozenset()
    vulnerabilities: frozenset[DamageType] = frozenset()


class SizeModifier(BaseModel):
    """Stat adjustments for an actor size. Scaling only reads ``armor_class``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strength: int = 0
    dexterity: int = 0
    constitution: int = 0
    armor_class: int = 0


class MovementProfile(BaseModel):
    """Speeds granted by a movement archetype, in feet."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    ground: int = Field(default=0, ge=0)
    climb: int = Field(default=0, ge=0)
    swim: int = Field(default=0, ge=0)
    fly: int = Field(default=0, ge=0)


# =============================================================================
# Ruleset Snapshot
# =============================================================================


def _casefold_match(name: str, keys: Any) -> str | None:
    wanted = name.strip().casefold()
    for key in keys:
        if key.casefold() == wanted:
            return key
    return None


class Ruleset(BaseModel):
    """An immutable, versioned snapshot of the configuration tables.

    Attributes:
        version: Incremented by every copy-on-write edit.
        templates: Enemy templates keyed by name.
        affinities: Affinity definitions keyed by name.
        size_modifiers: Size modifier table.
        archetypes: Movement profiles keyed by archetype name.
        baseline_template: Template used when a lookup fails.
        baseline_archetype: Archetype used when a lookup fails.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: int = Field(default=1, ge=1)
    templates: dict[str, EnemyTemplate]
    affinities: dict[str, AffinityDefinition] = Field(default_factory=dict)
    size_modifiers: dict[Size, SizeModifier] = Field(default_factory=dict)
    archetypes: dict[str, MovementProfile]
    baseline_template: str
    baseline_archetype: str

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_template(self, name: str | None) -> EnemyTemplate | None:
        """Look up a template by exact, case-insensitive, then contained name.

        The contained-name rule lets 'Brute Captain' resolve to 'Brute'.

        Args:
            name: Template name as stored on an actor.

        Returns:
            The matching template, or None.
        """
        if not name:
            return None
        if name in self.templates:
            return self.templates[name]
        key = _casefold_match(name, self.templates)
        if key is not None:
            return self.templates[key]
        folded = name.casefold()
        for key, template in self.templates.items():
            if key.casefold() in folded:
                return template
        return None

    def get_template(self, name: str | None) -> EnemyTemplate:
        """Look up a template, falling back to the baseline role."""
        return self.find_template(name) or self.templates[self.baseline_template]

    def get_affinity(self, name: str | None) -> AffinityDefinition | None:
        """Look up an affinity by case-insensitive name; unknown means none."""
        if not name:
            return None
        key = _casefold_match(name, self.affinities)
        return self.affinities[key] if key is not None else None

    def get_size_modifier(self, size: Size) -> SizeModifier:
        """Get the modifiers for a size; missing rows count as no modifier."""
        return self.size_modifiers.get(size, SizeModifier())

    def get_archetype(self, name: str | None) -> MovementProfile:
        """Look up a movement profile, falling back to the baseline archetype."""
        if name:
            key = _casefold_match(name, self.archetypes)
            if key is not None:
                return self.archetypes[key]
        return self.archetypes[self.baseline_archetype]

    def composable_templates(self) -> list[str]:
        """Names of the templates the encounter composer may draw."""
        return [name for name, template in self.templates.items() if template.composable]

    # -------------------------------------------------------------------------
    # Copy-on-write edits
    # -------------------------------------------------------------------------

    def _edited(self, **changes: Any) -> Ruleset:
        return self.model_copy(update={**changes, "version": self.version + 1})

    def with_template(self, template: EnemyTemplate) -> Ruleset:
        """Return a snapshot with a template added or replaced."""
        return self._edited(templates={**self.templates, template.name: template})

    def without_template(self, name: str) -> Ruleset:
        """Return a snapshot without the named template.

        Raises:
            ValidationError: If the template is the baseline fallback.
        """
        if name == self.baseline_template:
            raise ValidationError(
                "The baseline template cannot be removed",
                field_name="templates",
                invalid_value=name,
            )
        remaining = {key: value for key, value in self.templates.items() if key != name}
        return self._edited(templates=remaining)

    def with_affinity(self, affinity: AffinityDefinition) -> Ruleset:
        """Return a snapshot with an affinity added or replaced."""
        return self._edited(affinities={**self.affinities, affinity.name: affinity})

    def without_affinity(self, name: str) -> Ruleset:
        """Return a snapshot without the named affinity."""
        remaining = {key: value for key, value in self.affinities.items() if key != name}
        return self._edited(affinities=remaining)

    def with_size_modifier(self, size: Size, modifier: SizeModifier) -> Ruleset:
        """Return a snapshot with one size row replaced."""
        return self._edited(size_modifiers={**self.size_modifiers, size: modifier})

    def with_archetype(self, profile: MovementProfile) -> Ruleset:
        """Return a snapshot with a movement archetype added or replaced."""
        return self._edited(archetypes={**self.archetypes, profile.name: profile})


__all__ = [
    "AbilityBlueprint",
    "EnemyTemplate",
    "AffinityDefinition",
    "SizeModifier",
    "MovementProfile",
    "Ruleset",
]
