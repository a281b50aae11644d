"""Combat state and action models.

This module defines the roster the engine resolves ids against, the
initiative turn order, and the records that flow through the attack
resolution pipeline: actions going in, roll requests and roll results
in the middle, and the resolution bundle coming out.

Models:
    Roster: Party, companions and enemies of one session.
    TurnOrder: Ordered actor ids with current index and round counter.
    CombatState: Roster plus turn order, the snapshot engine calls transform.
    ActionSource: The weapon, ability or item an action is performed with.
    CombatAction: A confirmed or draft action by one actor.
    RollRequest: One roll the dice resolver has to make.
    DiceRoll: One resolved roll.
    GroupOutcome: Aggregated result of a multi-target saving throw.
    VictoryData: Defeated enemies handed to loot generation.
    ResolutionBundle: Everything one action resolution produced.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field, model_validator

from rpg_engine.models.actor import (
    RECORD_CONFIG,
    AbilityEffect,
    Attack,
    CombatActor,
    StatusEffect,
)
from rpg_engine.models.enums import (
    Ability,
    AttackChannel,
    DamageType,
    EffectType,
    MoveDirection,
    RollKind,
    RollOutcome,
    RollType,
    SaveEffect,
    SourceKind,
)


# =============================================================================
# Roster
# =============================================================================


class Roster(BaseModel):
    """All actors of a session, grouped the way the host stores them.

    Attributes:
        party: Player characters.
        companions: Companions; only those with ``in_party`` join heal pools.
        enemies: Staged or active combat actors, hostile or otherwise.
    """

    model_config = RECORD_CONFIG

    party: list[CombatActor] = Field(default_factory=list)
    companions: list[CombatActor] = Field(default_factory=list)
    enemies: list[CombatActor] = Field(default_factory=list)

    @property
    def merged(self) -> list[CombatActor]:
        """Party, then companions, then enemies."""
        return [*self.party, *self.companions, *self.enemies]

    def get(self, actor_id: str) -> CombatActor | None:
        """Find an actor by id."""
        for actor in self.merged:
            if actor.id == actor_id:
                return actor
        return None

    def find_unique_by_name(self, name: str) -> CombatActor | None:
        """Find the single actor carrying a name; ambiguous names match nothing."""
        matches = [actor for actor in self.merged if actor.name == name]
        return matches[0] if len(matches) == 1 else None

    def replace(self, actor: CombatActor) -> Roster:
        """Return a roster with the actor sharing ``actor.id`` swapped out.

        Unknown ids leave the roster unchanged.
        """
        def swap(group: list[CombatActor]) -> list[CombatActor]:
            return [actor if member.id == actor.id else member for member in group]

        return Roster(
            party=swap(self.party),
            companions=swap(self.companions),
            enemies=swap(self.enemies),
        )

    def replace_many(self, actors: list[CombatActor]) -> Roster:
        """Return a roster with several actors swapped out."""
        roster = self
        for actor in actors:
            roster = roster.replace(actor)
        return roster

    def remove(self, actor_id: str) -> Roster:
        """Return a roster without the given actor."""
        def keep(group: list[CombatActor]) -> list[CombatActor]:
            return [member for member in group if member.id != actor_id]

        return Roster(
            party=keep(self.party),
            companions=keep(self.companions),
            enemies=keep(self.enemies),
        )

    def with_enemies(self, enemies: list[CombatActor]) -> Roster:
        """Return a roster with the enemy list replaced."""
        return Roster(party=self.party, companions=self.companions, enemies=enemies)


# =============================================================================
# Turn Order
# =============================================================================


class TurnOrder(BaseModel):
    """Ordered initiative sequence of actor ids.

    The sequence is separate from the roster; ids are resolved against the
    roster when needed. Every mutating method returns a new TurnOrder.

    Attributes:
        actor_ids: Actor ids in initiative order.
        current_turn_index: Index of the acting entry.
        round: Round counter; 0 means no combat is running.

    Example:
        >>> order = TurnOrder().add("a").add("b").start()
        >>> order.advance().current_actor_id
        'b'
    """

    model_config = RECORD_CONFIG

    actor_ids: list[str] = Field(default_factory=list)
    current_turn_index: Annotated[int, Field(ge=0)] = 0
    round: Annotated[int, Field(ge=0)] = 0

    @property
    def is_active(self) -> bool:
        """Active once started and while the index points at an entry."""
        return self.round >= 1 and self.current_turn_index < len(self.actor_ids)

    @property
    def current_actor_id(self) -> str | None:
        """Id of the acting entry, or None when idle."""
        if not self.is_active:
            return None
        return self.actor_ids[self.current_turn_index]

    def _with(self, **changes: Any) -> TurnOrder:
        data = {
            "actor_ids": self.actor_ids,
            "current_turn_index": self.current_turn_index,
            "round": self.round,
        }
        data.update(changes)
        return TurnOrder(**data)

    def start(self, actor_ids: list[str] | None = None) -> TurnOrder:
        """Begin round 1 at the top of the order.

        Args:
            actor_ids: Optional replacement order, e.g. fresh initiative.
        """
        ids = list(dict.fromkeys(actor_ids if actor_ids is not None else self.actor_ids))
        return TurnOrder(actor_ids=ids, current_turn_index=0, round=1 if ids else 0)

    def end(self) -> TurnOrder:
        """Return to idle, keeping nothing."""
        return TurnOrder()

    def add(self, actor_id: str) -> TurnOrder:
        """Append an id unless it is already present."""
        if actor_id in self.actor_ids:
            return self
        return self._with(actor_ids=[*self.actor_ids, actor_id])

    def remove(self, actor_id: str) -> TurnOrder:
        """Remove every entry for an id.

        Entries removed before the current index pull the index back so it
        keeps pointing at the same actor. Removing the acting entry hands
        the turn to whoever followed it.
        """
        if actor_id not in self.actor_ids:
            return self
        removed_before = sum(
            1 for entry in self.actor_ids[: self.current_turn_index] if entry == actor_id
        )
        remaining = [entry for entry in self.actor_ids if entry != actor_id]
        index = self.current_turn_index - removed_before
        if index >= len(remaining):
            index = 0
        return self._with(actor_ids=remaining, current_turn_index=index)

    def move(self, actor_id: str, direction: MoveDirection) -> TurnOrder:
        """Swap an entry with its neighbour; no-op at either boundary."""
        if actor_id not in self.actor_ids:
            return self
        index = self.actor_ids.index(actor_id)
        target = index - 1 if MoveDirection(direction) == MoveDirection.UP else index + 1
        if target < 0 or target >= len(self.actor_ids):
            return self
        ids = list(self.actor_ids)
        ids[index], ids[target] = ids[target], ids[index]
        return self._with(actor_ids=ids)

    def advance(self) -> TurnOrder:
        """Move to the next entry, starting a new round on wrap-around."""
        if not self.actor_ids:
            return self
        index = self.current_turn_index + 1
        round_number = self.round
        if index >= len(self.actor_ids):
            index = 0
            round_number += 1
        return self._with(current_turn_index=index, round=round_number)


class CombatState(BaseModel):
    """Snapshot of a session's combat: roster plus turn order."""

    model_config = RECORD_CONFIG

    roster: Roster = Field(default_factory=Roster)
    turn_order: TurnOrder = Field(default_factory=TurnOrder)

    @property
    def is_active(self) -> bool:
        return self.turn_order.is_active

    def with_roster(self, roster: Roster) -> CombatState:
        return CombatState(roster=roster, turn_order=self.turn_order)

    def with_turn_order(self, turn_order: TurnOrder) -> CombatState:
        return CombatState(roster=self.roster, turn_order=turn_order)


# =============================================================================
# Actions and Rolls
# =============================================================================


class ActionSource(BaseModel):
    """What an action is performed with.

    Weapons carry an Attack; abilities and items carry an AbilityEffect.
    A weapon with no attack gets a plain 1d6 strike under its own name.
    """

    model_config = RECORD_CONFIG

    kind: SourceKind
    name: str = Field(min_length=1)
    attack: Attack | None = None
    effect: AbilityEffect | None = None

    @model_validator(mode="after")
    def default_weapon_attack(self) -> ActionSource:
        if self.kind == SourceKind.WEAPON and self.attack is None:
            self.attack = Attack(name=self.name)
        return self

    @property
    def is_heal(self) -> bool:
        """Whether the source heals rather than harms."""
        return self.effect is not None and self.effect.type == EffectType.HEAL


class CombatAction(BaseModel):
    """An action by one actor against one or more targets.

    ``target_ids`` holds one entry per effect instance, so a target that
    fills two weapon slots appears twice.
    """

    model_config = RECORD_CONFIG

    actor_id: str
    source: ActionSource
    target_ids: list[str] = Field(default_factory=list)
    roll_mode: RollType = RollType.NORMAL
    heroic: bool = False


class RollRequest(BaseModel):
    """One roll for the dice resolver.

    Attack and healing requests are rolled by ``roller_id``; saving throw
    requests are rolled by the target, so ``roller_id`` is the target and
    ``source_actor_id`` is the actor that caused the save.
    """

    model_config = RECORD_CONFIG

    kind: RollKind
    roller_id: str
    target_id: str
    source_actor_id: str
    source_name: str
    check_name: str
    mode: RollType = RollType.NORMAL
    heroic: bool = False
    to_hit: int | None = None
    crit_range: int = 20
    channel: AttackChannel = AttackChannel.MELEE
    dc: int | None = None
    save_ability: Ability | None = None
    save_effect: SaveEffect | None = None
    damage_dice: str | None = None
    damage_type: DamageType | None = None
    heal_dice: str | None = None
    status: str | None = None
    status_duration: int | None = None


class DiceRoll(BaseModel):
    """One resolved roll, as shown to players and narrators."""

    model_config = RECORD_CONFIG

    kind: RollKind
    roller_name: str
    check_name: str
    source_name: str = ""
    target_id: str | None = None
    target_name: str | None = None
    die_roll: int = 0
    bonus: int = 0
    total: int = 0
    dc: int | None = None
    outcome: RollOutcome | None = None
    mode: RollType = RollType.NORMAL
    dice: list[int] = Field(default_factory=list)
    dice_string: str | None = None
    hp_before: int | None = None
    hp_after: int | None = None
    is_heroic: bool = False
    notes: str | None = None


class GroupOutcome(BaseModel):
    """Aggregate of a saving throw rolled by several targets at once.

    The group succeeds when any member succeeds.
    """

    model_config = RECORD_CONFIG

    check_name: str
    passed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """Whether any member succeeded."""
        return bool(self.passed)


class VictoryData(BaseModel):
    """Payload for the loot-generation collaborator."""

    model_config = RECORD_CONFIG

    defeated: list[CombatActor] = Field(default_factory=list)
    total_xp: int = 0


class ResolutionBundle(BaseModel):
    """Everything produced by resolving one action.

    Attributes:
        rolls: Individual rolls in resolution order.
        summary: Human-readable log lines joined by newlines.
        group_outcomes: Group saving throw results.
        hp_updates: Net HP delta per actor id; positive heals.
        status_updates: Status effects to apply per actor id.
        victory_data: Present once every hostile combatant is down.
        heroic_consumed: Whether the action spent a heroic point.
    """

    model_config = RECORD_CONFIG

    rolls: list[DiceRoll] = Field(default_factory=list)
    summary: str = ""
    group_outcomes: list[GroupOutcome] = Field(default_factory=list)
    hp_updates: dict[str, int] = Field(default_factory=dict)
    status_updates: dict[str, list[StatusEffect]] = Field(default_factory=dict)
    victory_data: VictoryData | None = None
    heroic_consumed: bool = False


__all__ = [
    "Roster",
    "TurnOrder",
    "CombatState",
    "ActionSource",
    "CombatAction",
    "RollRequest",
    "DiceRoll",
    "GroupOutcome",
    "VictoryData",
    "ResolutionBundle",
]
