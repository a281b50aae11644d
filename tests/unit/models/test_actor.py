"""Tests for combat actor models."""

from __future__ import annotations

import pytest

from rpg_engine.models.actor import (
    Attack,
    CombatActor,
    StatusEffect,
    calculate_modifier,
    coerce_int,
    coerce_number,
    format_modifier,
)
from rpg_engine.models.enums import Ability, ActorAlignment, DamageType, Skill


class TestCoercionHelpers:
    """Tests for loose number coercion."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("3", 3.0),
            (2.5, 2.5),
            (None, 7),
            ("nan", 7),
            (float("inf"), 7),
            ("abc", 7),
            (True, 7),
            (-1, 7),
        ],
    )
    def test_coerce_number(self, raw: object, expected: float) -> None:
        """Test malformed inputs fall back to the default."""
        assert coerce_number(raw, 7) == expected

    def test_coerce_number_without_minimum(self) -> None:
        """Test negative values survive when no minimum is set."""
        assert coerce_number(-3, 0, minimum=None) == -3

    def test_coerce_int_truncates(self) -> None:
        """Test fractional values truncate toward zero."""
        assert coerce_int("4.9", 0) == 4

    @pytest.mark.parametrize(
        ("score", "expected"),
        [(1, -5), (8, -1), (10, 0), (11, 0), (12, 1), (20, 5), (30, 10)],
    )
    def test_calculate_modifier(self, score: int, expected: int) -> None:
        """Test modifier calculation floors toward negative infinity."""
        assert calculate_modifier(score) == expected

    def test_format_modifier(self) -> None:
        """Test signed modifier rendering."""
        assert format_modifier(3) == "+3"
        assert format_modifier(0) == "+0"
        assert format_modifier(-2) == "-2"


class TestAttack:
    """Tests for the Attack model."""

    def test_defaults(self) -> None:
        """Test an empty attack is a 1d6 bludgeoning strike."""
        attack = Attack()

        assert attack.name == "Strike"
        assert attack.damage_dice == "1d6"
        assert attack.damage_type == DamageType.BLUDGEONING
        assert attack.crit_range == 20

    def test_crit_range_clamped(self) -> None:
        """Test crit range stays on the die."""
        assert Attack(crit_range=25).crit_range == 20
        assert Attack(crit_range="junk").crit_range == 20
        assert Attack(crit_range=18).crit_range == 18

    def test_negative_to_hit_kept(self) -> None:
        """Test negative to-hit bonuses are allowed."""
        assert Attack(to_hit=-1).to_hit == -1

    def test_display_name_damage_type(self) -> None:
        """Test lenient damage type lookup."""
        assert Attack(damage_type="Piercing").damage_type == DamageType.PIERCING


class TestStatusEffect:
    """Tests for the StatusEffect model."""

    @pytest.mark.parametrize("raw", [None, 0, -2, "soon"])
    def test_bad_duration_becomes_one(self, raw: object) -> None:
        """Test malformed durations become one round."""
        assert StatusEffect(name="Stunned", duration=raw).duration == 1


class TestCombatActorCoercion:
    """Tests for CombatActor field coercion."""

    def test_defaults(self) -> None:
        """Test a bare actor is a neutral 10-everything stat block."""
        actor = CombatActor()

        assert actor.name == "Unnamed Entity"
        assert actor.alignment == ActorAlignment.NEUTRAL
        assert actor.is_ally is False
        assert all(score == 10 for score in actor.ability_scores.values())
        assert set(actor.skills) == set(Skill)
        assert actor.id

    def test_malformed_record(self) -> None:
        """Test a messy camelCase record loads with safe defaults."""
        actor = CombatActor.model_validate(
            {
                "name": "   ",
                "challengeRating": "nan",
                "maxHitPoints": 20,
                "currentHitPoints": 50,
                "abilityScores": {"strength": {"score": "14"}, "luck": 18, "wisdom": None},
                "savingThrows": {"dexterity": {"proficient": True}},
                "numberOfAttacks": 0,
                "isAlly": True,
                "statusEffects": ["Poisoned", "", {"name": "Prone", "duration": 3}],
                "resistances": ["fire", "laser"],
            }
        )

        assert actor.name == "Unnamed Entity"
        assert actor.challenge_rating == 0
        assert actor.current_hit_points == 20
        assert actor.ability_scores[Ability.STR] == 14
        assert actor.ability_scores[Ability.WIS] == 10
        assert actor.saving_throws[Ability.DEX] is True
        assert actor.number_of_attacks == 1
        assert actor.alignment == ActorAlignment.ALLY
        assert actor.is_ally is True
        assert [(s.name, s.duration) for s in actor.status_effects] == [
            ("Poisoned", 1),
            ("Prone", 3),
        ]
        assert actor.resistances == {DamageType.FIRE}

    def test_explicit_alignment_beats_legacy_flag(self) -> None:
        """Test isAlly only fills in a missing alignment."""
        actor = CombatActor.model_validate({"alignment": "neutral", "isAlly": True})

        assert actor.alignment == ActorAlignment.NEUTRAL

    def test_negative_hit_points_become_zero(self) -> None:
        """Test negative HP coerces to zero."""
        actor = CombatActor(max_hit_points=10, current_hit_points=-4)

        assert actor.current_hit_points == 0
        assert actor.is_defeated is True

    def test_temporary_hit_points_clamped(self) -> None:
        """Test temp HP never exceeds its cap."""
        actor = CombatActor(max_temporary_hit_points=5, temporary_hit_points=9)

        assert actor.temporary_hit_points == 5

    def test_rejects_unknown_fields(self) -> None:
        """Test records with unknown fields are rejected."""
        with pytest.raises(ValueError):
            CombatActor.model_validate({"name": "X", "favouriteColour": "red"})


class TestCombatActorInvariants:
    """Tests for invariants enforced after validation."""

    def test_immunity_beats_resistance(self) -> None:
        """Test a type present in several defense sets keeps the strongest."""
        actor = CombatActor(
            immunities={"fire"},
            resistances={"fire", "cold"},
            vulnerabilities={"fire", "cold", "acid"},
        )

        assert actor.immunities == {DamageType.FIRE}
        assert actor.resistances == {DamageType.COLD}
        assert actor.vulnerabilities == {DamageType.ACID}

    def test_duplicate_statuses_last_wins(self) -> None:
        """Test only the last entry per status name survives."""
        actor = CombatActor(
            status_effects=[
                {"name": "Stunned", "duration": 1},
                {"name": "Prone", "duration": 2},
                {"name": "Stunned", "duration": 4},
            ]
        )

        assert [(s.name, s.duration) for s in actor.status_effects] == [
            ("Prone", 2),
            ("Stunned", 4),
        ]

    def test_has_status_case_insensitive(self) -> None:
        """Test status lookup ignores case and padding."""
        actor = CombatActor(status_effects=["Poisoned"])

        assert actor.has_status(" poisoned ")
        assert not actor.has_status("stunned")


class TestCombatActorEvolve:
    """Tests for copy-on-write updates."""

    def test_evolve_returns_new_actor(self) -> None:
        """Test evolve leaves the original untouched."""
        actor = CombatActor(name="Orc", max_hit_points=15, current_hit_points=15)

        hurt = actor.evolve(current_hit_points=9)

        assert hurt.current_hit_points == 9
        assert actor.current_hit_points == 15
        assert hurt.id == actor.id

    def test_evolve_revalidates(self) -> None:
        """Test evolve re-runs coercion and clamping."""
        actor = CombatActor(max_hit_points=15, current_hit_points=15)

        assert actor.evolve(current_hit_points=-5).current_hit_points == 0
        assert actor.evolve(max_hit_points=8).current_hit_points == 8

    def test_evolve_keeps_alignment(self) -> None:
        """Test the computed ally flag does not leak back into alignment."""
        actor = CombatActor(alignment="enemy")

        assert actor.evolve(name="Renamed").alignment == ActorAlignment.ENEMY

    def test_record_round_trip(self) -> None:
        """Test the camelCase record loads back into an equal actor."""
        actor = CombatActor(
            name="Scout",
            alignment="ally",
            status_effects=[{"name": "Hidden", "duration": 2}],
            resistances={"cold"},
        )

        record = actor.to_record()

        assert "currentHitPoints" in record
        assert CombatActor.model_validate(record) == actor
