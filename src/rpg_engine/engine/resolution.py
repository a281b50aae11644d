"""Attack resolution pipeline.

An action goes through four steps:

1. ``confirm_action`` spends the heroic point, if any.
2. ``build_roll_requests`` expands the action into one RollRequest per
   attack or effect instance.
3. ``resolve_requests`` rolls every request through a dice evaluator and
   collects rolls, HP deltas and status updates into a ResolutionBundle.
4. ``apply_resolution`` writes the bundle onto the roster and reports
   victory once every hostile combatant is down.

``perform_action`` runs all four.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rpg_engine.core.constants import (
    DEFAULT_HEAL_DICE,
    DEFAULT_SAVE_DC,
    HEROIC_MULTIPLIER,
)
from rpg_engine.core.exceptions import CombatError
from rpg_engine.core.logging import get_logger
from rpg_engine.engine.dice import safe_formula
from rpg_engine.engine.library import enemy_xp
from rpg_engine.engine.status import (
    apply_status_updates,
    stat_penalties,
    status_roll_mode,
)
from rpg_engine.engine.targeting import is_hostile_actor, select_target_pool
from rpg_engine.engine.turn_order import hostile_combatants
from rpg_engine.models.actor import StatusEffect
from rpg_engine.models.combat import (
    CombatAction,
    CombatState,
    DiceRoll,
    GroupOutcome,
    ResolutionBundle,
    RollRequest,
    VictoryData,
)
from rpg_engine.models.enums import (
    AttackChannel,
    DamageType,
    EffectType,
    RollKind,
    RollOutcome,
    SaveEffect,
    SourceKind,
    TargetScope,
)


if TYPE_CHECKING:
    from rpg_engine.engine.dice import DiceEvaluator
    from rpg_engine.models.actor import CombatActor

logger = get_logger(__name__)

GroupResolver = Callable[[list[DiceRoll]], list[GroupOutcome]]


# =============================================================================
# Heroic Gate
# =============================================================================


def toggle_heroic(actor: CombatActor, enabled: bool) -> bool:
    """Return the heroic flag after a toggle.

    Turning the flag on needs a positive heroic-point balance. Nothing is
    spent here; see :func:`confirm_action`.
    """
    if enabled and actor.heroic_points <= 0:
        logger.debug("Heroic toggle refused", actor_id=actor.id)
        return False
    return enabled


def confirm_action(action: CombatAction, state: CombatState) -> tuple[CombatAction, CombatState]:
    """Spend exactly one heroic point for a heroic action.

    A heroic flag the actor cannot pay for is demoted to a normal action.

    Returns:
        The action as it will be resolved, and the state after payment.

    Raises:
        CombatError: If the acting actor is not in the roster.
    """
    actor = state.roster.get(action.actor_id)
    if actor is None:
        raise CombatError("Acting actor not found", combatant_id=action.actor_id)
    if not action.heroic:
        return action, state
    if actor.heroic_points <= 0:
        logger.info("Heroic action demoted, no points left", actor_id=actor.id)
        return action.model_copy(update={"heroic": False}), state

    paid = actor.evolve(heroic_points=actor.heroic_points - 1)
    logger.info("Heroic point spent", actor_id=actor.id, remaining=paid.heroic_points)
    return action, state.with_roster(state.roster.replace(paid))


# =============================================================================
# Request Building
# =============================================================================


def _ability_attack_bonus(actor: CombatActor) -> int:
    if actor.attacks:
        return actor.attacks[0].to_hit
    return actor.proficiency_bonus


def build_roll_requests(action: CombatAction, state: CombatState) -> list[RollRequest]:
    """Expand an action into individual roll requests.

    - Multi-target effects hit every actor in the target pool.
    - Weapon attacks by hostile actors repeat ``number_of_attacks`` times
      per target; party-side attacks (players, companions, allies) roll
      once per filled slot.
    - Effects with a save ability become saving throws rolled by each
      target against the effect DC.
    - Heal effects become healing rolls, with no roll to hit.

    Target ids outside the pool are dropped with a warning.

    Raises:
        CombatError: If the acting actor is not in the roster.
    """
    roster = state.roster
    actor = roster.get(action.actor_id)
    if actor is None:
        raise CombatError("Acting actor not found", combatant_id=action.actor_id)

    source = action.source
    pool = {target.id: target for target in select_target_pool(state, actor.id, source)}
    effect = source.effect

    if effect is not None and effect.target_scope == TargetScope.MULTIPLE:
        target_ids = list(pool)
    else:
        target_ids = [target_id for target_id in action.target_ids if target_id in pool]
        dropped = [target_id for target_id in action.target_ids if target_id not in pool]
        if dropped:
            logger.warning("Dropping invalid targets", actor_id=actor.id, target_ids=dropped)

    requests: list[RollRequest] = []
    common = {
        "source_actor_id": actor.id,
        "source_name": source.name,
        "heroic": action.heroic,
    }

    if source.kind == SourceKind.WEAPON and source.attack is not None:
        attack = source.attack
        # Party members already pick one slot per attack
        repeats = actor.number_of_attacks if is_hostile_actor(actor, roster) else 1
        for target_id in target_ids:
            mode = status_roll_mode(actor, pool[target_id], attack.channel, action.roll_mode)
            requests.extend(
                RollRequest(
                    kind=RollKind.ATTACK,
                    roller_id=actor.id,
                    target_id=target_id,
                    check_name=attack.name,
                    mode=mode,
                    to_hit=attack.to_hit,
                    crit_range=attack.crit_range,
                    channel=attack.channel,
                    damage_dice=attack.damage_dice,
                    damage_type=attack.damage_type,
                    **common,
                )
                for _ in range(repeats)
            )
        return requests

    if effect is None:
        logger.warning("Action source has nothing to resolve", source=source.name)
        return requests

    for target_id in target_ids:
        target = pool[target_id]
        if effect.type == EffectType.HEAL:
            requests.append(
                RollRequest(
                    kind=RollKind.HEALING,
                    roller_id=actor.id,
                    target_id=target_id,
                    check_name=source.name,
                    heal_dice=effect.heal_dice or DEFAULT_HEAL_DICE,
                    **common,
                )
            )
        elif effect.save_ability is not None:
            requests.append(
                RollRequest(
                    kind=RollKind.SAVING_THROW,
                    roller_id=target_id,
                    target_id=target_id,
                    check_name=f"{effect.save_ability.display_name} Save",
                    dc=effect.dc or DEFAULT_SAVE_DC,
                    save_ability=effect.save_ability,
                    save_effect=effect.save_effect or SaveEffect.NEGATE,
                    damage_dice=effect.damage_dice,
                    damage_type=effect.damage_type,
                    status=effect.status,
                    status_duration=effect.duration,
                    **common,
                )
            )
        else:
            requests.append(
                RollRequest(
                    kind=RollKind.ATTACK,
                    roller_id=actor.id,
                    target_id=target_id,
                    check_name=source.name,
                    mode=status_roll_mode(actor, target, AttackChannel.MAGIC, action.roll_mode),
                    to_hit=_ability_attack_bonus(actor),
                    channel=AttackChannel.MAGIC,
                    damage_dice=effect.damage_dice,
                    damage_type=effect.damage_type,
                    status=effect.status,
                    status_duration=effect.duration,
                    **common,
                )
            )
    return requests


# =============================================================================
# Damage Math
# =============================================================================


def apply_damage_modifiers(
    amount: int, damage_type: DamageType | None, target: CombatActor
) -> tuple[int, str | None]:
    """Apply immunity, vulnerability and resistance to a damage amount.

    Returns:
        The final amount and a tag naming the modifier that applied.

    Example:
        >>> from rpg_engine.models.actor import CombatActor
        >>> apply_damage_modifiers(7, DamageType.FIRE, CombatActor(resistances=["fire"]))
        (3, 'resistant')
    """
    if damage_type is None:
        return amount, None
    if damage_type in target.immunities:
        return 0, "immune"
    if damage_type in target.vulnerabilities:
        return amount * 2, "vulnerable"
    if damage_type in target.resistances:
        return amount // 2, "resistant"
    return amount, None


# =============================================================================
# Resolution
# =============================================================================


@dataclass
class _Tally:
    """Mutable accumulator for one action's resolution."""

    hit_points: dict[str, int]
    temporary: dict[str, int]
    rolls: list[DiceRoll] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    hp_updates: dict[str, int] = field(default_factory=dict)
    status_updates: dict[str, list[StatusEffect]] = field(default_factory=dict)

    def change_hp(self, target: CombatActor, delta: int) -> tuple[int, int]:
        """Track HP across requests; temporary HP soaks damage first."""
        before = self.hit_points.get(target.id, target.current_hit_points)
        if delta < 0:
            temporary = self.temporary.get(target.id, target.temporary_hit_points)
            absorbed = min(temporary, -delta)
            self.temporary[target.id] = temporary - absorbed
            after = max(0, before + delta + absorbed)
        else:
            after = min(target.max_hit_points, before + delta)
        self.hit_points[target.id] = after
        self.hp_updates[target.id] = self.hp_updates.get(target.id, 0) + delta
        return before, after

    def add_status(self, target: CombatActor, name: str, duration: int) -> None:
        self.status_updates.setdefault(target.id, []).append(
            StatusEffect(name=name, duration=duration)
        )
        self.lines.append(f"  -> Applied {name} to {target.name} for {duration} rounds.")


def _status_duration(request: RollRequest) -> int:
    duration = request.status_duration or 1
    return duration * HEROIC_MULTIPLIER if request.heroic else duration


def _roll_damage(
    tally: _Tally,
    request: RollRequest,
    roller: CombatActor,
    target: CombatActor,
    dice: DiceEvaluator,
    *,
    critical: bool = False,
    multiplier: int = 1,
    half: bool = False,
) -> None:
    formula = safe_formula(request.damage_dice)
    roll = dice.roll_damage(formula, is_critical=critical, multiplier=multiplier)
    amount = max(1, roll.total)
    if half:
        amount //= 2
    amount, tag = apply_damage_modifiers(amount, request.damage_type, target)
    before, after = tally.change_hp(target, -amount)

    type_label = request.damage_type.display_name if request.damage_type else "Untyped"
    check_name = f"{request.check_name} ({type_label})" + (" (Half)" if half else "")
    tally.rolls.append(
        DiceRoll(
            kind=RollKind.DAMAGE,
            roller_name=roller.name,
            check_name=check_name,
            source_name=request.source_name,
            target_id=target.id,
            target_name=target.name,
            die_roll=sum(roll.dice),
            bonus=roll.modifier,
            total=amount,
            dice=roll.dice,
            dice_string=roll.expression,
            hp_before=before,
            hp_after=after,
            is_heroic=request.heroic,
            notes=tag,
        )
    )
    suffix = f" ({tag})" if tag else ""
    tally.lines.append(f"  -> {target.name} takes {amount} {type_label.lower()} damage{suffix}.")


def _resolve_attack(
    tally: _Tally,
    request: RollRequest,
    roller: CombatActor,
    target: CombatActor,
    dice: DiceEvaluator,
) -> None:
    bonus = (request.to_hit or 0) + stat_penalties(roller).attack
    roll = dice.roll_d20(
        bonus,
        roll_type=request.mode,
        forced_natural=20 if request.heroic else None,
    )
    armor_class = max(0, target.armor_class + stat_penalties(target).armor_class)
    natural = roll.natural

    if request.heroic or natural >= request.crit_range:
        outcome = RollOutcome.CRITICAL_HIT
    elif natural == 1:
        outcome = RollOutcome.MISS
    else:
        outcome = RollOutcome.HIT if roll.total >= armor_class else RollOutcome.MISS

    tally.rolls.append(
        DiceRoll(
            kind=RollKind.ATTACK,
            roller_name=roller.name,
            check_name=request.check_name,
            source_name=request.source_name,
            target_id=target.id,
            target_name=target.name,
            die_roll=natural,
            bonus=bonus,
            total=roll.total,
            dc=armor_class,
            outcome=outcome,
            mode=request.mode,
            dice=[*roll.dice, *roll.dropped],
            is_heroic=request.heroic,
        )
    )
    tally.lines.append(
        f"{roller.name} attacks {target.name} with {request.check_name}: "
        f"{outcome.display_name} ({roll.total} vs AC {armor_class})"
    )

    if not outcome.is_success:
        return
    if request.damage_dice:
        _roll_damage(
            tally, request, roller, target, dice,
            critical=outcome == RollOutcome.CRITICAL_HIT,
        )
    if request.status:
        tally.add_status(target, request.status, _status_duration(request))


def _resolve_save(
    tally: _Tally,
    request: RollRequest,
    source_actor: CombatActor,
    target: CombatActor,
    dice: DiceEvaluator,
) -> None:
    ability = request.save_ability
    bonus = stat_penalties(target).check
    if ability is not None:
        bonus += target.modifier(ability)
        if target.saving_throws.get(ability):
            bonus += target.proficiency_bonus
    roll = dice.roll_d20(bonus, roll_type=request.mode)
    dc = request.dc or DEFAULT_SAVE_DC
    natural = roll.natural

    if natural == 20:
        outcome = RollOutcome.CRITICAL_SUCCESS
    elif natural == 1:
        outcome = RollOutcome.CRITICAL_FAIL
    else:
        outcome = RollOutcome.SUCCESS if roll.total >= dc else RollOutcome.FAIL

    tally.rolls.append(
        DiceRoll(
            kind=RollKind.SAVING_THROW,
            roller_name=target.name,
            check_name=request.check_name,
            source_name=request.source_name,
            target_id=target.id,
            target_name=target.name,
            die_roll=natural,
            bonus=bonus,
            total=roll.total,
            dc=dc,
            outcome=outcome,
            mode=request.mode,
            dice=[*roll.dice, *roll.dropped],
            is_heroic=request.heroic and not request.damage_dice,
        )
    )
    tally.lines.append(
        f"{target.name} makes a {request.check_name} against {request.source_name} "
        f"from {source_actor.name}: {outcome.display_name} ({roll.total} vs DC {dc})"
    )

    multiplier = HEROIC_MULTIPLIER if request.heroic else 1
    if not outcome.is_success:
        if request.status:
            tally.add_status(target, request.status, _status_duration(request))
        if request.damage_dice:
            _roll_damage(tally, request, source_actor, target, dice, multiplier=multiplier)
    elif request.save_effect == SaveEffect.HALF and request.damage_dice:
        _roll_damage(
            tally, request, source_actor, target, dice, multiplier=multiplier, half=True
        )
    else:
        tally.lines.append("  -> Save successful, no effect.")


def _resolve_heal(
    tally: _Tally,
    request: RollRequest,
    roller: CombatActor,
    target: CombatActor,
    dice: DiceEvaluator,
) -> None:
    multiplier = HEROIC_MULTIPLIER if request.heroic else 1
    formula = safe_formula(request.heal_dice or DEFAULT_HEAL_DICE)
    roll = dice.roll_damage(formula, multiplier=multiplier)
    amount = max(0, roll.total)
    before, after = tally.change_hp(target, amount)

    tally.rolls.append(
        DiceRoll(
            kind=RollKind.HEALING,
            roller_name=roller.name,
            check_name=request.check_name,
            source_name=request.source_name,
            target_id=target.id,
            target_name=target.name,
            die_roll=sum(roll.dice),
            bonus=roll.modifier,
            total=amount,
            dice=roll.dice,
            dice_string=roll.expression,
            hp_before=before,
            hp_after=after,
            is_heroic=request.heroic,
        )
    )
    tally.lines.append(
        f"{roller.name} heals {target.name} for {amount} HP using {request.source_name}."
    )


def resolve_group_checks(rolls: list[DiceRoll]) -> list[GroupOutcome]:
    """Aggregate saving throws that several targets rolled against one source.

    Saves are grouped by source and check name; groups of one are left
    out. A group succeeds when any member succeeds.
    """
    groups: dict[tuple[str, str], list[DiceRoll]] = {}
    for roll in rolls:
        if roll.kind == RollKind.SAVING_THROW:
            groups.setdefault((roll.source_name, roll.check_name), []).append(roll)

    outcomes = []
    for (source_name, check_name), members in groups.items():
        if len(members) < 2:
            continue
        passed: list[str] = []
        failed: list[str] = []
        for member in members:
            succeeded = member.outcome is not None and member.outcome.is_success
            (passed if succeeded else failed).append(member.target_name or member.roller_name)
        outcomes.append(
            GroupOutcome(
                check_name=f"{source_name} {check_name}".strip(),
                passed=passed,
                failed=failed,
            )
        )
    return outcomes


def _group_line(outcome: GroupOutcome) -> str:
    verdict = "Success" if outcome.success else "Failure"
    return (
        f"[GROUP RESULT]: {outcome.check_name}: {verdict} "
        f"({len(outcome.passed)} passed, {len(outcome.failed)} failed)"
    )


def resolve_requests(
    requests: list[RollRequest],
    state: CombatState,
    dice: DiceEvaluator,
    *,
    group_resolver: GroupResolver = resolve_group_checks,
) -> ResolutionBundle:
    """Roll every request and collect the results.

    HP is tracked across requests, so a target's second hit in the same
    action starts from what the first one left. Nothing is written back to
    the roster; see :func:`apply_resolution`.

    Args:
        requests: Requests from :func:`build_roll_requests`.
        state: Snapshot the requests were built against.
        dice: Dice evaluator to roll through.
        group_resolver: Aggregates multi-target saves into group outcomes.

    Returns:
        The resolution bundle, without victory data.
    """
    roster = state.roster
    tally = _Tally(
        hit_points={actor.id: actor.current_hit_points for actor in roster.merged},
        temporary={actor.id: actor.temporary_hit_points for actor in roster.merged},
    )

    for request in requests:
        roller = roster.get(request.roller_id)
        target = roster.get(request.target_id)
        source_actor = roster.get(request.source_actor_id)
        if roller is None or target is None or source_actor is None:
            logger.warning(
                "Skipping roll request with unknown actors",
                roller_id=request.roller_id,
                target_id=request.target_id,
            )
            continue

        if request.kind == RollKind.ATTACK:
            _resolve_attack(tally, request, roller, target, dice)
        elif request.kind == RollKind.SAVING_THROW:
            _resolve_save(tally, request, source_actor, target, dice)
        elif request.kind == RollKind.HEALING:
            _resolve_heal(tally, request, roller, target, dice)

    group_outcomes = group_resolver(tally.rolls)
    tally.lines.extend(_group_line(outcome) for outcome in group_outcomes)

    return ResolutionBundle(
        rolls=tally.rolls,
        summary="\n".join(tally.lines),
        group_outcomes=group_outcomes,
        hp_updates=tally.hp_updates,
        status_updates=tally.status_updates,
        heroic_consumed=any(request.heroic for request in requests),
    )


def resolve_action(
    action: CombatAction,
    state: CombatState,
    dice: DiceEvaluator,
    *,
    group_resolver: GroupResolver = resolve_group_checks,
) -> ResolutionBundle:
    """Build and resolve the roll requests of a confirmed action."""
    requests = build_roll_requests(action, state)
    bundle = resolve_requests(requests, state, dice, group_resolver=group_resolver)
    logger.info(
        "Action resolved",
        actor_id=action.actor_id,
        source=action.source.name,
        requests=len(requests),
        rolls=len(bundle.rolls),
        heroic=action.heroic,
    )
    return bundle


# =============================================================================
# Applying Results
# =============================================================================


def apply_hp_delta(actor: CombatActor, delta: int) -> CombatActor:
    """Apply a net HP change.

    Damage drains temporary HP before HP and stops at 0. Healing stops at
    the maximum and never restores temporary HP.

    Example:
        >>> from rpg_engine.models.actor import CombatActor
        >>> actor = CombatActor(max_hit_points=20, current_hit_points=20,
        ...                     max_temporary_hit_points=5, temporary_hit_points=5)
        >>> hurt = apply_hp_delta(actor, -8)
        >>> hurt.temporary_hit_points, hurt.current_hit_points
        (0, 17)
    """
    if delta == 0:
        return actor
    if delta > 0:
        return actor.evolve(
            current_hit_points=min(actor.max_hit_points, actor.current_hit_points + delta)
        )
    damage = -delta
    absorbed = min(actor.temporary_hit_points, damage)
    return actor.evolve(
        temporary_hit_points=actor.temporary_hit_points - absorbed,
        current_hit_points=max(0, actor.current_hit_points - (damage - absorbed)),
    )


def check_victory(state: CombatState) -> VictoryData | None:
    """Victory payload once every hostile combatant is at 0 HP.

    Only applies while combat is active and at least one hostile actor is
    in the turn order.
    """
    if not state.is_active:
        return None
    hostiles = hostile_combatants(state)
    if not hostiles or not all(actor.is_defeated for actor in hostiles):
        return None
    total_xp = sum(enemy_xp(actor.challenge_rating) for actor in hostiles)
    logger.info("Encounter won", defeated=len(hostiles), total_xp=total_xp)
    return VictoryData(defeated=hostiles, total_xp=total_xp)


def apply_resolution(
    bundle: ResolutionBundle, state: CombatState
) -> tuple[CombatState, VictoryData | None]:
    """Write HP and status updates onto the roster and check for victory."""
    roster = state.roster
    changed = []
    for actor_id, delta in bundle.hp_updates.items():
        actor = roster.get(actor_id)
        if actor is None:
            logger.warning("HP update for unknown actor", actor_id=actor_id)
            continue
        changed.append(apply_hp_delta(actor, delta))
    roster = roster.replace_many(changed)
    roster = apply_status_updates(roster, bundle.status_updates)

    updated = state.with_roster(roster)
    return updated, check_victory(updated)


def perform_action(
    action: CombatAction,
    state: CombatState,
    dice: DiceEvaluator,
    *,
    group_resolver: GroupResolver = resolve_group_checks,
) -> tuple[CombatState, ResolutionBundle]:
    """Confirm, resolve and apply one action.

    Returns:
        The new combat state and the bundle, with victory data filled in
        when the action ended the encounter.
    """
    confirmed, state = confirm_action(action, state)
    bundle = resolve_action(confirmed, state, dice, group_resolver=group_resolver)
    state, victory = apply_resolution(bundle, state)
    bundle = bundle.model_copy(
        update={"victory_data": victory, "heroic_consumed": confirmed.heroic}
    )
    return state, bundle


__all__ = [
    "GroupResolver",
    "toggle_heroic",
    "confirm_action",
    "build_roll_requests",
    "apply_damage_modifiers",
    "resolve_group_checks",
    "resolve_requests",
    "resolve_action",
    "apply_hp_delta",
    "check_victory",
    "apply_resolution",
    "perform_action",
]
