"""Turn order management over a session's combat state.

The TurnOrder model handles the list arithmetic. This module adds the
parts that need the roster: rolling initiative, resolving ids to actors,
skipping defeated actors, ticking status effects, and keeping the turn
order in step when actors are deleted.

Resolution is id-only by default. Turn orders written by older saves may
hold actor names instead of ids; ``legacy_name_lookup`` resolves those
against a unique name match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rpg_engine.core.exceptions import TurnManagementError
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.status import tick_statuses
from rpg_engine.models.combat import CombatState, Roster, TurnOrder
from rpg_engine.models.enums import Ability, ActorAlignment, MoveDirection


if TYPE_CHECKING:
    from rpg_engine.engine.dice import DiceEvaluator
    from rpg_engine.models.actor import CombatActor

logger = get_logger(__name__)


@dataclass(frozen=True)
class InitiativeEntry:
    """One initiative roll.

    Attributes:
        actor_id: The rolling actor.
        roll: d20 plus dexterity modifier.
        dexterity_modifier: Kept for display and tie inspection.
    """

    actor_id: str
    roll: int
    dexterity_modifier: int


# =============================================================================
# Resolution
# =============================================================================


def resolve_entry(
    entry: str,
    roster: Roster,
    *,
    legacy_name_lookup: bool = False,
) -> CombatActor | None:
    """Resolve one turn-order entry to an actor.

    Args:
        entry: Actor id, or a name when legacy lookup is enabled.
        roster: Roster to resolve against.
        legacy_name_lookup: Accept a unique name match when no id matches.

    Returns:
        The actor, or None when nothing (or more than one name) matches.
    """
    actor = roster.get(entry)
    if actor is None and legacy_name_lookup:
        actor = roster.find_unique_by_name(entry)
        if actor is not None:
            logger.info("Turn-order entry resolved by name", entry=entry, actor_id=actor.id)
    return actor


def resolve_turn_order(
    turn_order: TurnOrder,
    roster: Roster,
    *,
    legacy_name_lookup: bool = False,
    strict: bool = False,
) -> list[CombatActor]:
    """Resolve a turn order to actors, dropping unresolved entries.

    Unresolved entries mean the turn order and roster have drifted apart.
    They are logged as a warning, or raised in strict mode.

    Args:
        turn_order: The turn order to resolve.
        roster: Roster to resolve against.
        legacy_name_lookup: Accept unique name matches.
        strict: Raise instead of filtering.

    Returns:
        Resolved actors in turn order.

    Raises:
        TurnManagementError: In strict mode, if any entry is unresolved.
    """
    resolved: list[CombatActor] = []
    unresolved: list[str] = []
    for entry in turn_order.actor_ids:
        actor = resolve_entry(entry, roster, legacy_name_lookup=legacy_name_lookup)
        if actor is None:
            unresolved.append(entry)
        else:
            resolved.append(actor)

    if unresolved:
        if strict:
            raise TurnManagementError(
                "Turn order references actors missing from the roster",
                unresolved_ids=unresolved,
            )
        logger.warning(
            "Dropping unresolved turn-order entries",
            unresolved_ids=unresolved,
            round=turn_order.round,
        )
    return resolved


def hostile_combatants(state: CombatState) -> list[CombatActor]:
    """Enemy-aligned actors currently in the turn order."""
    in_order = set(state.turn_order.actor_ids)
    return [
        actor
        for actor in state.roster.enemies
        if actor.id in in_order and actor.alignment == ActorAlignment.ENEMY
    ]


# =============================================================================
# Combat Lifecycle
# =============================================================================


def roll_initiative(roster: Roster, dice: DiceEvaluator) -> list[InitiativeEntry]:
    """Roll d20 + DEX for every non-neutral actor, highest first.

    Companions left out of the party sit the fight out. Ties keep roster
    order (party, companions, enemies).
    """
    benched = {companion.id for companion in roster.companions if not companion.in_party}
    entries = []
    for actor in roster.merged:
        if actor.id in benched:
            continue
        if actor.alignment == ActorAlignment.NEUTRAL and not (actor.is_player or actor.in_party):
            continue
        modifier = actor.modifier(Ability.DEX)
        result = dice.roll_d20(modifier)
        entries.append(InitiativeEntry(actor.id, result.total, modifier))
    entries.sort(key=lambda entry: entry.roll, reverse=True)
    return entries


def start_combat(state: CombatState, dice: DiceEvaluator) -> CombatState:
    """Roll initiative and begin round 1."""
    entries = roll_initiative(state.roster, dice)
    turn_order = state.turn_order.start([entry.actor_id for entry in entries])
    logger.info(
        "Combat started",
        combatants=len(entries),
        first=turn_order.current_actor_id,
    )
    return state.with_turn_order(turn_order)


def end_combat(state: CombatState) -> CombatState:
    """Return to idle; actors stay in the roster."""
    logger.info("Combat ended", round=state.turn_order.round)
    return state.with_turn_order(state.turn_order.end())


def advance_turn(state: CombatState) -> CombatState:
    """End the current actor's turn and hand it to the next living actor.

    The outgoing actor's status effects tick down by one round. Actors at
    0 HP are skipped; if everyone is down the turn stops on the next
    entry rather than spinning.
    """
    turn_order = state.turn_order
    if not turn_order.actor_ids:
        return state

    roster = state.roster
    outgoing = roster.get(turn_order.current_actor_id or "")
    if outgoing is not None:
        roster = roster.replace(tick_statuses(outgoing))

    turn_order = turn_order.advance()
    for _ in range(len(turn_order.actor_ids) - 1):
        actor = roster.get(turn_order.current_actor_id or "")
        if actor is None or not actor.is_defeated:
            break
        turn_order = turn_order.advance()

    logger.info(
        "Turn advanced",
        actor_id=turn_order.current_actor_id,
        round=turn_order.round,
    )
    return CombatState(roster=roster, turn_order=turn_order)


# =============================================================================
# Roster and Order Edits
# =============================================================================


def add_to_turn_order(state: CombatState, actor_id: str) -> CombatState:
    """Append an actor to the turn order unless already present."""
    return state.with_turn_order(state.turn_order.add(actor_id))


def remove_from_turn_order(state: CombatState, actor_id: str) -> CombatState:
    """Remove an actor from the turn order; absent ids are a no-op."""
    return state.with_turn_order(state.turn_order.remove(actor_id))


def move_in_turn_order(
    state: CombatState, actor_id: str, direction: MoveDirection | str
) -> CombatState:
    """Swap an actor with its neighbour; no-op at either end."""
    return state.with_turn_order(state.turn_order.move(actor_id, MoveDirection(direction)))


def add_enemy(state: CombatState, actor: CombatActor) -> CombatState:
    """Stage an actor in the encounter roster without adding it to the turn order."""
    return state.with_roster(state.roster.with_enemies([*state.roster.enemies, actor]))


def delete_actor(state: CombatState, actor_id: str) -> CombatState:
    """Delete an actor from the roster and the turn order."""
    logger.info("Actor deleted", actor_id=actor_id)
    return CombatState(
        roster=state.roster.remove(actor_id),
        turn_order=state.turn_order.remove(actor_id),
    )


def clear_scene(state: CombatState) -> CombatState:
    """Drop every encounter actor and end combat; party and companions stay."""
    logger.info("Scene cleared", removed=len(state.roster.enemies))
    return CombatState(roster=state.roster.with_enemies([]), turn_order=TurnOrder())


__all__ = [
    "InitiativeEntry",
    "resolve_entry",
    "resolve_turn_order",
    "hostile_combatants",
    "roll_initiative",
    "start_combat",
    "end_combat",
    "advance_turn",
    "add_to_turn_order",
    "remove_from_turn_order",
    "move_in_turn_order",
    "add_enemy",
    "delete_actor",
    "clear_scene",
]
