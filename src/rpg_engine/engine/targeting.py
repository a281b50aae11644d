"""Target pools and target selection for combat actions.

The pool decides who may be picked at all; the selection classes decide
how clicks on that pool turn into the list of target ids an action is
confirmed with. Selections are immutable: ``toggle`` returns a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from rpg_engine.core.logging import get_logger
from rpg_engine.engine.status import can_be_targeted
from rpg_engine.models.enums import ActorAlignment, SourceKind, TargetScope


if TYPE_CHECKING:
    from rpg_engine.models.actor import CombatActor
    from rpg_engine.models.combat import ActionSource, CombatState, Roster

logger = get_logger(__name__)


# =============================================================================
# Pools
# =============================================================================


def party_side(roster: Roster) -> list[CombatActor]:
    """Players, in-party companions and allied combat actors."""
    return [
        *roster.party,
        *(companion for companion in roster.companions if companion.in_party),
        *(actor for actor in roster.enemies if actor.alignment == ActorAlignment.ALLY),
    ]


def hostile_side(roster: Roster) -> list[CombatActor]:
    """Encounter actors that are not allied with the party."""
    return [actor for actor in roster.enemies if actor.alignment != ActorAlignment.ALLY]


def is_hostile_actor(actor: CombatActor, roster: Roster) -> bool:
    """Whether an actor acts for the opposition rather than the party."""
    party_ids = {member.id for member in party_side(roster)}
    return actor.alignment == ActorAlignment.ENEMY and actor.id not in party_ids


def select_target_pool(
    state: CombatState,
    actor_id: str,
    source: ActionSource,
) -> list[CombatActor]:
    """Actors an action from ``source`` may target.

    Healing sources pick from the acting actor's own side, downed members
    included. Everything else picks from the other side, limited to
    living actors. Both exclude actors that cannot be targeted.

    Args:
        state: Current combat snapshot.
        actor_id: The acting actor.
        source: The weapon, ability or item being used.

    Returns:
        Candidate targets in roster order. Empty if the actor is unknown.
    """
    roster = state.roster
    actor = roster.get(actor_id)
    if actor is None:
        logger.warning("Target pool requested for unknown actor", actor_id=actor_id)
        return []

    hostile = is_hostile_actor(actor, roster)
    if source.is_heal:
        if hostile:
            allies = [a for a in roster.enemies if a.alignment == ActorAlignment.ENEMY]
        else:
            allies = party_side(roster)
        return [target for target in allies if can_be_targeted(target)]

    opponents = party_side(roster) if hostile else hostile_side(roster)
    return [
        target
        for target in opponents
        if target.id != actor_id and not target.is_defeated and can_be_targeted(target)
    ]


# =============================================================================
# Selections
# =============================================================================


@dataclass(frozen=True)
class WeaponSelection:
    """Weapon attack slots, filled main hand first.

    Attributes:
        attacks_per_hand: Slots per hand.
        dual_wielding: Whether an off hand contributes the same number of slots.
        main_hand: Target ids in filled main-hand slots.
        off_hand: Target ids in filled off-hand slots.
    """

    attacks_per_hand: int = 1
    dual_wielding: bool = False
    main_hand: tuple[str, ...] = ()
    off_hand: tuple[str, ...] = ()

    @property
    def capacity(self) -> int:
        return self.attacks_per_hand * (2 if self.dual_wielding else 1)

    @property
    def is_full(self) -> bool:
        return len(self.main_hand) + len(self.off_hand) >= self.capacity

    def toggle(self, target_id: str) -> WeaponSelection:
        """Assign the next open slot, repeats included.

        Once every slot is taken, clicking a target that holds slots frees
        all of them; clicking any other target does nothing.
        """
        if len(self.main_hand) < self.attacks_per_hand:
            return replace(self, main_hand=(*self.main_hand, target_id))
        if self.dual_wielding and len(self.off_hand) < self.attacks_per_hand:
            return replace(self, off_hand=(*self.off_hand, target_id))
        if target_id in self.main_hand or target_id in self.off_hand:
            return replace(
                self,
                main_hand=tuple(t for t in self.main_hand if t != target_id),
                off_hand=tuple(t for t in self.off_hand if t != target_id),
            )
        return self

    def target_ids(self) -> list[str]:
        return [*self.main_hand, *self.off_hand]


@dataclass(frozen=True)
class MultiTargetSelection:
    """All-or-nothing selection of every valid target."""

    valid_ids: tuple[str, ...] = ()
    selected: bool = False

    def toggle(self, target_id: str) -> MultiTargetSelection:
        """Select or clear the whole group; clicks outside the pool do nothing."""
        if target_id not in self.valid_ids:
            return self
        return replace(self, selected=not self.selected)

    def target_ids(self) -> list[str]:
        return list(self.valid_ids) if self.selected else []


@dataclass(frozen=True)
class SingleTargetSelection:
    """Repeat count on the one target of a single-target ability or item.

    Clicking a different target replaces the current one. With
    ``max_repeats`` of 1 each click on the selected target flips it off;
    higher limits add another instance until the limit, after which the
    next click clears it.
    """

    max_repeats: int = 1
    counts: dict[str, int] = field(default_factory=dict)

    def toggle(self, target_id: str) -> SingleTargetSelection:
        current = self.counts.get(target_id, 0)
        if current >= max(1, self.max_repeats):
            return replace(self, counts={})
        return replace(self, counts={target_id: current + 1})

    def target_ids(self) -> list[str]:
        return [target_id for target_id, count in self.counts.items() for _ in range(count)]


TargetSelection = WeaponSelection | MultiTargetSelection | SingleTargetSelection


def new_selection(
    actor: CombatActor,
    source: ActionSource,
    pool: list[CombatActor],
    *,
    dual_wielding: bool = False,
    max_repeats: int = 1,
) -> TargetSelection:
    """Create the empty selection matching a source.

    Args:
        actor: The acting actor; its attack count sets the slots per hand.
        source: The weapon, ability or item being used.
        pool: Valid targets from :func:`select_target_pool`.
        dual_wielding: Weapon mode only; adds off-hand slots.
        max_repeats: Single-target mode only; instances per target.
    """
    if source.kind == SourceKind.WEAPON:
        return WeaponSelection(
            attacks_per_hand=actor.number_of_attacks, dual_wielding=dual_wielding
        )
    if source.effect is not None and source.effect.target_scope == TargetScope.MULTIPLE:
        return MultiTargetSelection(valid_ids=tuple(target.id for target in pool))
    return SingleTargetSelection(max_repeats=max_repeats)


__all__ = [
    "party_side",
    "hostile_side",
    "is_hostile_actor",
    "select_target_pool",
    "WeaponSelection",
    "MultiTargetSelection",
    "SingleTargetSelection",
    "TargetSelection",
    "new_selection",
]
