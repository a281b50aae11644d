"""Status effect bookkeeping and status-driven combat rules.

Durations are counted in whole rounds. An actor's effects tick down once
at the end of that actor's turn, so every effect loses one round per
combat round. Effects that reach zero are removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rpg_engine.core.constants import DEFAULT_DURATION
from rpg_engine.core.logging import get_logger
from rpg_engine.models.actor import CombatActor, StatusEffect, coerce_int
from rpg_engine.models.enums import (
    UNTARGETABLE_STATUSES,
    AttackChannel,
    RollType,
    StatusName,
)


if TYPE_CHECKING:
    from collections.abc import Iterable

    from rpg_engine.models.combat import Roster

logger = get_logger(__name__)


# =============================================================================
# Tracker
# =============================================================================


def tick_statuses(actor: CombatActor) -> CombatActor:
    """Decrement every effect by one round and drop the expired ones."""
    if not actor.status_effects:
        return actor
    remaining = []
    for effect in actor.status_effects:
        duration = effect.duration - 1
        if duration > 0:
            remaining.append(StatusEffect(name=effect.name, duration=duration))
        else:
            logger.info("Status expired", actor_id=actor.id, status=effect.name)
    return actor.evolve(status_effects=remaining)


def apply_status(actor: CombatActor, name: str, duration: int | None = None) -> CombatActor:
    """Add an effect, overwriting the duration of an existing one.

    Names match case-insensitively; the existing entry keeps its spelling
    and position. Missing or malformed durations become one round.
    """
    rounds = coerce_int(duration, DEFAULT_DURATION, minimum=1)
    wanted = name.strip().lower()
    effects = list(actor.status_effects)
    for index, effect in enumerate(effects):
        if effect.name.strip().lower() == wanted:
            effects[index] = StatusEffect(name=effect.name, duration=rounds)
            break
    else:
        effects.append(StatusEffect(name=name.strip(), duration=rounds))
    logger.debug("Status applied", actor_id=actor.id, status=name, duration=rounds)
    return actor.evolve(status_effects=effects)


def apply_statuses(actor: CombatActor, effects: Iterable[StatusEffect]) -> CombatActor:
    """Apply several effects in order with overwrite semantics."""
    for effect in effects:
        actor = apply_status(actor, effect.name, effect.duration)
    return actor


def remove_status(actor: CombatActor, name: str) -> CombatActor:
    """Remove an effect by case-insensitive name; absent names are a no-op."""
    wanted = name.strip().lower()
    remaining = [e for e in actor.status_effects if e.name.strip().lower() != wanted]
    if len(remaining) == len(actor.status_effects):
        return actor
    return actor.evolve(status_effects=remaining)


def apply_status_updates(
    roster: Roster, updates: dict[str, list[StatusEffect]]
) -> Roster:
    """Apply per-actor status updates to a roster; unknown ids are skipped."""
    changed = []
    for actor_id, effects in updates.items():
        actor = roster.get(actor_id)
        if actor is None:
            logger.warning("Status update for unknown actor", actor_id=actor_id)
            continue
        changed.append(apply_statuses(actor, effects))
    return roster.replace_many(changed)


# =============================================================================
# Status Rules
# =============================================================================


def _has(actor: CombatActor, *names: StatusName) -> bool:
    return any(actor.has_status(name.value) for name in names)


def can_be_targeted(actor: CombatActor) -> bool:
    """Whether an actor may be picked as a target.

    Invisible, hidden or disappeared actors are out of play for targeting.
    """
    return not _has(actor, *UNTARGETABLE_STATUSES)


@dataclass(frozen=True)
class StatPenalties:
    """Flat penalties imposed by status effects."""

    attack: int = 0
    check: int = 0
    armor_class: int = 0


def stat_penalties(actor: CombatActor) -> StatPenalties:
    """Sum the attack, check and AC penalties of an actor's effects.

    Example:
        >>> from rpg_engine.models.actor import CombatActor
        >>> stat_penalties(CombatActor(status_effects=["Prone", "Stunned"]))
        StatPenalties(attack=-2, check=0, armor_class=-5)
    """
    attack = check = armor_class = 0
    if _has(actor, StatusName.PRONE):
        attack -= 2
    if _has(actor, StatusName.POISONED):
        attack -= 2
        check -= 2
    if _has(actor, StatusName.STUNNED, StatusName.PARALYZED):
        armor_class -= 5
    return StatPenalties(attack=attack, check=check, armor_class=armor_class)


def status_roll_mode(
    attacker: CombatActor,
    target: CombatActor | None,
    channel: AttackChannel = AttackChannel.MELEE,
    requested: RollType = RollType.NORMAL,
) -> RollType:
    """Combine the requested roll mode with status-driven modes.

    Any mix of advantage and disadvantage cancels to a normal roll.

    Args:
        attacker: The rolling actor.
        target: The actor being attacked, if any.
        channel: Melee or ranged; only matters against prone targets.
        requested: Mode asked for by the player or ability.

    Returns:
        The effective roll mode.
    """
    advantage = requested == RollType.ADVANTAGE
    disadvantage = requested == RollType.DISADVANTAGE

    if _has(attacker, StatusName.BLINDED, StatusName.POISONED, StatusName.PRONE):
        disadvantage = True
    if _has(attacker, StatusName.INVISIBLE):
        advantage = True

    if target is not None:
        if _has(target, StatusName.PRONE):
            if channel == AttackChannel.RANGED:
                disadvantage = True
            else:
                advantage = True
        if _has(
            target,
            StatusName.BLINDED,
            StatusName.STUNNED,
            StatusName.PARALYZED,
            StatusName.UNCONSCIOUS,
        ):
            advantage = True
        if _has(target, StatusName.INVISIBLE):
            disadvantage = True

    if advantage and disadvantage:
        return RollType.NORMAL
    if advantage:
        return RollType.ADVANTAGE
    if disadvantage:
        return RollType.DISADVANTAGE
    return RollType.NORMAL


__all__ = [
    "tick_statuses",
    "apply_status",
    "apply_statuses",
    "remove_status",
    "apply_status_updates",
    "can_be_targeted",
    "StatPenalties",
    "stat_penalties",
    "status_roll_mode",
]
