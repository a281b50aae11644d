"""Tests for combat state and action models."""

from __future__ import annotations

from typing import Any

import pytest

from rpg_engine.models.actor import CombatActor
from rpg_engine.models.combat import (
    ActionSource,
    CombatState,
    GroupOutcome,
    Roster,
    TurnOrder,
)
from rpg_engine.models.enums import MoveDirection, SourceKind


class TestRoster:
    """Tests for the Roster model."""

    def test_merged_order(self, hero: Any, goblin: Any) -> None:
        """Test party, then companions, then enemies."""
        companion = CombatActor(id="dog", name="Rex", in_party=True)
        roster = Roster(party=[hero], companions=[companion], enemies=[goblin])

        assert [actor.id for actor in roster.merged] == ["hero", "dog", "goblin"]

    def test_get(self, roster: Roster) -> None:
        """Test id lookup."""
        assert roster.get("goblin").name == "Goblin"
        assert roster.get("nobody") is None

    def test_find_unique_by_name(self, hero: Any) -> None:
        """Test ambiguous names match nothing."""
        twins = [CombatActor(id="a", name="Twin"), CombatActor(id="b", name="Twin")]
        roster = Roster(party=[hero], enemies=twins)

        assert roster.find_unique_by_name("Ayla").id == "hero"
        assert roster.find_unique_by_name("Twin") is None

    def test_replace_is_copy_on_write(self, roster: Roster, goblin: Any) -> None:
        """Test replace returns a new roster and leaves the old one intact."""
        hurt = goblin.evolve(current_hit_points=2)

        updated = roster.replace(hurt)

        assert updated.get("goblin").current_hit_points == 2
        assert roster.get("goblin").current_hit_points == 10

    def test_replace_unknown_is_noop(self, roster: Roster) -> None:
        """Test replacing an unknown id changes nothing."""
        stranger = CombatActor(id="stranger")

        assert roster.replace(stranger).merged == roster.merged

    def test_remove(self, roster: Roster) -> None:
        """Test removing an actor."""
        assert roster.remove("goblin").enemies == []


class TestTurnOrder:
    """Tests for TurnOrder transitions."""

    def test_idle_by_default(self) -> None:
        """Test a fresh turn order is idle."""
        order = TurnOrder()

        assert order.is_active is False
        assert order.current_actor_id is None

    def test_start_dedupes(self) -> None:
        """Test start begins round 1 with unique ids."""
        order = TurnOrder().start(["a", "b", "a"])

        assert order.actor_ids == ["a", "b"]
        assert order.round == 1
        assert order.current_actor_id == "a"

    def test_start_empty_stays_idle(self) -> None:
        """Test starting with nobody leaves the order idle."""
        assert TurnOrder().start([]).is_active is False

    def test_add_ignores_duplicates(self) -> None:
        """Test adding a present id is a no-op."""
        order = TurnOrder(actor_ids=["a"])

        assert order.add("a") is order
        assert order.add("b").actor_ids == ["a", "b"]

    def test_advance_wraps_into_new_round(self) -> None:
        """Test the round counter increments on wrap-around."""
        order = TurnOrder().start(["a", "b"])

        order = order.advance()
        assert (order.current_actor_id, order.round) == ("b", 1)

        order = order.advance()
        assert (order.current_actor_id, order.round) == ("a", 2)

    def test_remove_before_current_keeps_actor(self) -> None:
        """Test removing an earlier entry keeps the same actor acting."""
        order = TurnOrder(actor_ids=["a", "b", "c"], current_turn_index=2, round=1)

        updated = order.remove("a")

        assert updated.current_actor_id == "c"
        assert updated.current_turn_index == 1

    def test_remove_current_hands_turn_on(self) -> None:
        """Test removing the acting entry passes the turn to the next one."""
        order = TurnOrder(actor_ids=["a", "b", "c"], current_turn_index=1, round=1)

        assert order.remove("b").current_actor_id == "c"

    def test_remove_last_current_wraps(self) -> None:
        """Test removing the acting last entry wraps to the top."""
        order = TurnOrder(actor_ids=["a", "b"], current_turn_index=1, round=3)

        updated = order.remove("b")

        assert updated.current_actor_id == "a"
        assert updated.round == 3

    def test_remove_unknown_is_noop(self) -> None:
        """Test removing an absent id returns the same order."""
        order = TurnOrder(actor_ids=["a"])

        assert order.remove("z") is order

    @pytest.mark.parametrize(
        ("actor_id", "direction", "expected"),
        [
            ("b", MoveDirection.UP, ["b", "a", "c"]),
            ("b", MoveDirection.DOWN, ["a", "c", "b"]),
            ("a", MoveDirection.UP, ["a", "b", "c"]),
            ("c", "down", ["a", "b", "c"]),
        ],
    )
    def test_move(self, actor_id: str, direction: Any, expected: list[str]) -> None:
        """Test swaps with neighbours and no-ops at the boundaries."""
        order = TurnOrder(actor_ids=["a", "b", "c"])

        assert order.move(actor_id, direction).actor_ids == expected

    def test_end_resets(self) -> None:
        """Test end returns to an empty idle order."""
        order = TurnOrder().start(["a"]).end()

        assert order == TurnOrder()


class TestCombatState:
    """Tests for the CombatState snapshot."""

    def test_with_helpers(self, combat_state: CombatState) -> None:
        """Test copy helpers swap one part and keep the other."""
        idle = combat_state.with_turn_order(TurnOrder())

        assert combat_state.is_active is True
        assert idle.is_active is False
        assert idle.roster == combat_state.roster


class TestActionSource:
    """Tests for ActionSource defaults."""

    def test_weapon_gets_default_attack(self) -> None:
        """Test a weapon without an attack strikes for 1d6 under its name."""
        source = ActionSource(kind=SourceKind.WEAPON, name="Club")

        assert source.attack.name == "Club"
        assert source.attack.damage_dice == "1d6"
        assert source.is_heal is False

    def test_heal_source(self) -> None:
        """Test heal detection."""
        source = ActionSource(kind="item", name="Potion", effect={"type": "heal"})

        assert source.attack is None
        assert source.is_heal is True


class TestGroupOutcome:
    """Tests for GroupOutcome."""

    def test_success_when_anyone_passes(self) -> None:
        """Test a group passes if any member passed."""
        assert GroupOutcome(check_name="x", passed=["A"], failed=["B"]).success
        assert not GroupOutcome(check_name="x", failed=["A", "B"]).success
