"""Default template, affinity, size and archetype tables.

The tables here seed the default Ruleset. Designers edit them through
RulesetStore, which publishes a new immutable snapshot per edit; nothing
in this module is mutated at runtime.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from rpg_engine.core.constants import (
    ENEMY_XP_BY_CR,
    FRACTIONAL_CR_XP,
    XP_PER_HIGH_CR,
)
from rpg_engine.core.logging import get_logger
from rpg_engine.models.enums import (
    Ability,
    AttackChannel,
    DamageType,
    EffectType,
    SaveEffect,
    Size,
    Skill,
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


logger = get_logger(__name__)

A = Ability
D = DamageType


def _mods(
    strength: int,
    dexterity: int,
    constitution: int,
    intelligence: int,
    wisdom: int,
    charisma: int,
) -> dict[Ability, int]:
    return {
        A.STR: strength,
        A.DEX: dexterity,
        A.CON: constitution,
        A.INT: intelligence,
        A.WIS: wisdom,
        A.CHA: charisma,
    }


_SINGLE_DAMAGE = AbilityBlueprint(type=EffectType.DAMAGE)
_AREA_DAMAGE = AbilityBlueprint(
    type=EffectType.DAMAGE,
    target_scope=TargetScope.MULTIPLE,
    save_ability=A.DEX,
    save_effect=SaveEffect.HALF,
)


# =============================================================================
# Enemy Templates
# =============================================================================

BASELINE_TEMPLATE = "Agile"

DEFAULT_TEMPLATES: tuple[EnemyTemplate, ...] = (
    EnemyTemplate(
        name="Agile",
        attack_channel=AttackChannel.MELEE,
        modifiers=_mods(0, 4, 0, 0, 2, 0),
        saves=(A.DEX, A.WIS),
        skills=(Skill.ACROBATICS, Skill.STEALTH),
        abilities=(_SINGLE_DAMAGE,),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Brute",
        attack_channel=AttackChannel.MELEE,
        modifiers=_mods(4, 0, 4, -2, -2, -2),
        saves=(A.STR, A.CON),
        skills=(Skill.ATHLETICS, Skill.INTIMIDATION),
        abilities=(_SINGLE_DAMAGE,),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Tank",
        attack_channel=AttackChannel.MELEE,
        modifiers=_mods(2, -2, 6, -2, 0, -2),
        saves=(A.CON, A.STR),
        skills=(Skill.ATHLETICS,),
        abilities=(
            AbilityBlueprint(
                type=EffectType.STATUS,
                save_ability=A.STR,
                status=StatusName.PRONE.display_name,
                duration=1,
            ),
        ),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Brawler",
        attack_channel=AttackChannel.MELEE,
        modifiers=_mods(3, 2, 3, -1, 0, 0),
        saves=(A.STR, A.DEX),
        skills=(Skill.ACROBATICS, Skill.ATHLETICS),
        abilities=(_SINGLE_DAMAGE,),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Sniper",
        attack_channel=AttackChannel.RANGED,
        modifiers=_mods(0, 6, 0, 2, 2, 0),
        saves=(A.DEX, A.INT),
        skills=(Skill.STEALTH, Skill.PERCEPTION),
        abilities=(_SINGLE_DAMAGE,),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Grenadier",
        attack_channel=AttackChannel.RANGED,
        modifiers=_mods(0, 2, 2, 4, 0, 0),
        saves=(A.DEX, A.INT),
        skills=(Skill.INVESTIGATION,),
        abilities=(_AREA_DAMAGE,),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Caster",
        attack_channel=AttackChannel.MAGIC,
        modifiers=_mods(-2, 0, 0, 6, 2, 2),
        saves=(A.INT, A.WIS),
        skills=(Skill.ARCANA, Skill.HISTORY),
        abilities=(_AREA_DAMAGE,),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Healer",
        attack_channel=AttackChannel.MAGIC,
        modifiers=_mods(-2, 0, 2, 0, 6, 2),
        saves=(A.WIS, A.CHA),
        skills=(Skill.MEDICINE, Skill.INSIGHT),
        abilities=(AbilityBlueprint(type=EffectType.HEAL),),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Controller",
        attack_channel=AttackChannel.MAGIC,
        modifiers=_mods(-2, 0, 2, 2, 4, 4),
        saves=(A.CHA, A.WIS),
        skills=(Skill.PERSUASION, Skill.DECEPTION),
        abilities=(
            AbilityBlueprint(
                type=EffectType.STATUS,
                target_scope=TargetScope.MULTIPLE,
                save_ability=A.WIS,
                status=StatusName.STUNNED.display_name,
                duration=1,
            ),
        ),
        default_archetype="Bipedal",
    ),
    EnemyTemplate(
        name="Skirmisher",
        attack_channel=AttackChannel.MELEE,
        modifiers=_mods(2, 4, 2, 0, 0, 0),
        saves=(A.DEX, A.STR),
        skills=(Skill.STEALTH, Skill.SURVIVAL),
        abilities=(_SINGLE_DAMAGE,),
        default_archetype="Bestial",
    ),
    EnemyTemplate(
        name="Custom",
        attack_channel=AttackChannel.MELEE,
        modifiers=_mods(0, 0, 0, 0, 0, 0),
        default_archetype="Bipedal",
        composable=False,
    ),
)


# =============================================================================
# Affinities
# =============================================================================

DEFAULT_AFFINITIES: tuple[AffinityDefinition, ...] = (
    AffinityDefinition(
        name="Thermal",
        description="Infused with extreme heat or volcanic energy.",
        immunities=frozenset({D.FIRE}),
        vulnerabilities=frozenset({D.COLD}),
    ),
    AffinityDefinition(
        name="Cryo",
        description="Chilled to the core by frost and ice.",
        immunities=frozenset({D.COLD}),
        vulnerabilities=frozenset({D.FIRE}),
    ),
    AffinityDefinition(
        name="Voltaic",
        description="Crackling with stored electrical charge.",
        immunities=frozenset({D.ELECTRIC}),
        vulnerabilities=frozenset({D.ACID}),
    ),
    AffinityDefinition(
        name="Reinforced",
        description="Plated or armored against physical harm.",
        resistances=frozenset({D.SLASHING, D.PIERCING, D.BLUDGEONING}),
        vulnerabilities=frozenset({D.ELECTRIC}),
    ),
    AffinityDefinition(
        name="Phased",
        description="Partially out of step with reality.",
        resistances=frozenset({D.FORCE, D.PSYCHIC}),
        vulnerabilities=frozenset({D.RADIANT}),
    ),
    AffinityDefinition(
        name="Caustic",
        description="Dripping with corrosive compounds.",
        immunities=frozenset({D.ACID}),
        vulnerabilities=frozenset({D.FIRE}),
    ),
    AffinityDefinition(
        name="Luminous",
        description="Radiating holy or stellar light.",
        immunities=frozenset({D.RADIANT}),
        vulnerabilities=frozenset({D.NECROTIC}),
    ),
    AffinityDefinition(
        name="Entropic",
        description="Steeped in decay and unlife.",
        immunities=frozenset({D.NECROTIC}),
        vulnerabilities=frozenset({D.RADIANT}),
    ),
    AffinityDefinition(
        name="Neural",
        description="Guarded by a hardened, alien mind.",
        immunities=frozenset({D.PSYCHIC}),
        vulnerabilities=frozenset({D.FORCE}),
    ),
    AffinityDefinition(
        name="Kinetic",
        description="Built to absorb shock and concussive force.",
        resistances=frozenset({D.THUNDER}),
        vulnerabilities=frozenset({D.FORCE}),
    ),
)


# =============================================================================
# Sizes and Movement Archetypes
# =============================================================================

DEFAULT_SIZE_MODIFIERS: dict[Size, SizeModifier] = {
    Size.SMALL: SizeModifier(strength=-4, dexterity=4, constitution=0, armor_class=0),
    Size.MEDIUM: SizeModifier(),
    Size.LARGE: SizeModifier(strength=4, dexterity=-4, constitution=2, armor_class=1),
    Size.HUGE: SizeModifier(strength=8, dexterity=-6, constitution=4, armor_class=2),
    Size.GARGANTUAN: SizeModifier(strength=12, dexterity=-8, constitution=6, armor_class=3),
    Size.COLOSSAL: SizeModifier(strength=16, dexterity=-10, constitution=8, armor_class=4),
}

BASELINE_ARCHETYPE = "Bipedal"

DEFAULT_ARCHETYPES: tuple[MovementProfile, ...] = (
    MovementProfile(name="Bipedal", ground=30),
    MovementProfile(name="Bestial", ground=50),
    MovementProfile(name="Aerial", ground=10, swim=60, fly=60),
    MovementProfile(name="Marine", swim=40),
    MovementProfile(name="Amphibian", ground=30, swim=30),
    MovementProfile(name="Crawler", ground=30, climb=30),
    MovementProfile(name="Hoverer", fly=30),
    MovementProfile(name="Sentry"),
)


def default_ruleset() -> Ruleset:
    """Build the version-1 ruleset from the default tables."""
    return Ruleset(
        templates={template.name: template for template in DEFAULT_TEMPLATES},
        affinities={affinity.name: affinity for affinity in DEFAULT_AFFINITIES},
        size_modifiers=dict(DEFAULT_SIZE_MODIFIERS),
        archetypes={profile.name: profile for profile in DEFAULT_ARCHETYPES},
        baseline_template=BASELINE_TEMPLATE,
        baseline_archetype=BASELINE_ARCHETYPE,
    )


def enemy_xp(challenge_rating: float) -> int:
    """Experience awarded for defeating an enemy.

    Example:
        >>> enemy_xp(0.5), enemy_xp(3), enemy_xp(8)
        (10, 700, 4000)
    """
    if challenge_rating < 1:
        return FRACTIONAL_CR_XP
    whole = int(challenge_rating)
    if whole in ENEMY_XP_BY_CR:
        return ENEMY_XP_BY_CR[whole]
    return int(challenge_rating * XP_PER_HIGH_CR)


# =============================================================================
# Configuration Surface
# =============================================================================


class RulesetStore:
    """Holder of the current ruleset snapshot.

    Readers take ``store.current`` once and use that snapshot for the whole
    computation. Writers pass an edit function to :meth:`update`; the edit
    runs against the latest snapshot and the result is published
    atomically.

    Example:
        >>> store = RulesetStore()
        >>> store.update(lambda rules: rules.without_affinity("Kinetic")).version
        2
    """

    def __init__(self, initial: Ruleset | None = None) -> None:
        self._lock = threading.Lock()
        self._current = initial or default_ruleset()

    @property
    def current(self) -> Ruleset:
        """The latest published snapshot."""
        return self._current

    def update(self, edit: Callable[[Ruleset], Ruleset]) -> Ruleset:
        """Apply a copy-on-write edit and publish the result.

        Args:
            edit: Function from the current snapshot to the edited one.

        Returns:
            The newly published snapshot.
        """
        with self._lock:
            edited = edit(self._current)
            self._current = edited
        logger.info("Ruleset updated", version=edited.version)
        return edited

    def reset(self) -> Ruleset:
        """Publish a fresh default ruleset, continuing the version sequence."""
        return self.update(
            lambda rules: default_ruleset().model_copy(update={"version": rules.version + 1})
        )


__all__ = [
    "BASELINE_TEMPLATE",
    "BASELINE_ARCHETYPE",
    "DEFAULT_TEMPLATES",
    "DEFAULT_AFFINITIES",
    "DEFAULT_SIZE_MODIFIERS",
    "DEFAULT_ARCHETYPES",
    "default_ruleset",
    "enemy_xp",
    "RulesetStore",
]
