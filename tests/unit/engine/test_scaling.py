"""Tests for the stat scaling engine."""

from __future__ import annotations

from typing import Any

import pytest

from rpg_engine.engine.scaling import (
    attack_count_for,
    damage_dice_for,
    effective_challenge_rating,
    proficiency_bonus_for,
    rank_abilities,
    rescale_pool,
    round_half_up,
    scale_actor,
)
from rpg_engine.models.actor import AbilityEffect, Attack, CombatActor, SpecialAbility
from rpg_engine.models.enums import Ability, EffectType, Skill


@pytest.fixture
def brute() -> CombatActor:
    """A CR 3 Brute with one attack and one damaging special."""
    return CombatActor(
        template="Brute",
        challenge_rating=3,
        attacks=[Attack(name="Slam")],
        special_abilities=[
            SpecialAbility(name="Crush", effect=AbilityEffect(type=EffectType.DAMAGE)),
            SpecialAbility(name="Roar", effect=AbilityEffect(type=EffectType.STATUS)),
        ],
    )


class TestFormulaHelpers:
    """Tests for the bracketed formulas."""

    @pytest.mark.parametrize(
        ("challenge_rating", "expected"),
        [(1, 2), (4, 2), (5, 3), (9.5, 3), (10, 4), (20, 6)],
    )
    def test_proficiency_bonus(self, challenge_rating: float, expected: int) -> None:
        """Test proficiency grows every five CR."""
        assert proficiency_bonus_for(challenge_rating) == expected

    @pytest.mark.parametrize(
        ("challenge_rating", "expected"),
        [(1, 1), (4.9, 1), (5, 2), (10, 2), (11, 3), (16, 3), (17, 4), (30, 4)],
    )
    def test_attack_count(self, challenge_rating: float, expected: int) -> None:
        """Test attack count brackets."""
        assert attack_count_for(challenge_rating) == expected

    @pytest.mark.parametrize(
        ("challenge_rating", "expected"),
        [(1, "1d6"), (5, "2d6"), (9, "3d6"), (13, "4d6"), (16, "4d6"), (17, "5d6")],
    )
    def test_damage_dice(self, challenge_rating: float, expected: str) -> None:
        """Test damage dice brackets."""
        assert damage_dice_for(challenge_rating) == expected

    @pytest.mark.parametrize(
        ("previous", "maximum", "new_max", "expected"),
        [
            (5, 10, 20, 10),
            (10, 10, 30, 30),
            (1, 4, 6, 2),
            (1, 3, 4, 1),
            (0, 10, 20, 0),
            (3, 0, 12, 12),
        ],
    )
    def test_rescale_pool(self, previous: int, maximum: int, new_max: int, expected: int) -> None:
        """Test ratio preservation with half-up rounding."""
        assert rescale_pool(previous, maximum, new_max) == expected

    def test_round_half_up(self) -> None:
        """Test halves round up."""
        assert round_half_up(1.5) == 2
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2

    def test_effective_challenge_rating(self) -> None:
        """Test CR 0 counts as 1 in derived math."""
        assert effective_challenge_rating(CombatActor(challenge_rating=0)) == 1
        assert effective_challenge_rating(CombatActor(challenge_rating=0.5)) == 0.5

    def test_rank_abilities_tie_break(self) -> None:
        """Test ties keep canonical ability order."""
        scores = {ability: 10 for ability in Ability}
        scores[Ability.CON] = 14
        scores[Ability.STR] = 14

        assert rank_abilities(scores)[:3] == [Ability.STR, Ability.CON, Ability.DEX]


class TestScaleActor:
    """Tests for scale_actor."""

    def test_normal_brute(self, brute: CombatActor, ruleset: Any) -> None:
        """Test the full stat block of a CR 3 Brute."""
        scaled = scale_actor(brute, ruleset, base_score=8)

        assert scaled.ability_scores == {
            Ability.STR: 12,
            Ability.DEX: 8,
            Ability.CON: 12,
            Ability.INT: 6,
            Ability.WIS: 6,
            Ability.CHA: 6,
        }
        assert scaled.proficiency_bonus == 2
        assert scaled.max_hit_points == 39
        assert scaled.current_hit_points == 39
        assert scaled.max_temporary_hit_points == 0
        assert scaled.armor_class == 10
        assert scaled.number_of_attacks == 1
        assert scaled.attacks[0].damage_dice == "1d6+1"
        assert scaled.attacks[0].to_hit == 3
        assert scaled.attacks[0].ability == Ability.STR
        assert scaled.attacks[0].name == "Slam"
        assert [a for a, proficient in scaled.saving_throws.items() if proficient] == [
            Ability.STR,
            Ability.CON,
        ]
        assert scaled.skills[Skill.ATHLETICS].proficient is True
        assert scaled.skills[Skill.ATHLETICS].passive_score == 13
        assert scaled.skills[Skill.INTIMIDATION].passive_score == 10
        assert scaled.skills[Skill.STEALTH].proficient is False
        assert scaled.skills[Skill.STEALTH].passive_score == 9
        assert scaled.speed == 30

    def test_special_abilities(self, brute: CombatActor, ruleset: Any) -> None:
        """Test specials get a DC and damaging ones get CR dice."""
        scaled = scale_actor(brute, ruleset, base_score=8)
        crush, roar = scaled.special_abilities

        assert crush.effect.dc == 11
        assert crush.effect.damage_dice == "2d6"
        assert roar.effect.dc == 11
        assert roar.effect.damage_dice is None

    def test_elite_brute(self, brute: CombatActor, ruleset: Any) -> None:
        """Test elite rank bonuses."""
        scaled = scale_actor(brute.evolve(rank="elite"), ruleset, base_score=8)

        assert scaled.ability_scores[Ability.STR] == 14
        assert scaled.max_hit_points == 42
        assert scaled.max_temporary_hit_points == 9
        assert scaled.temporary_hit_points == 9
        assert scaled.armor_class == 12

    def test_ship_doubles_pools(self, brute: CombatActor, ruleset: Any) -> None:
        """Test ships double HP and attack count."""
        scaled = scale_actor(brute.evolve(is_ship=True), ruleset, base_score=8)

        assert scaled.max_hit_points == 78
        assert scaled.number_of_attacks == 2

    def test_size_adds_armor_class(self, brute: CombatActor, ruleset: Any) -> None:
        """Test only the size AC modifier applies."""
        scaled = scale_actor(brute.evolve(size="huge"), ruleset, base_score=8)

        assert scaled.armor_class == 12
        assert scaled.ability_scores[Ability.STR] == 12

    def test_zero_challenge_rating(self, ruleset: Any) -> None:
        """Test CR 0 scales like CR 1 but keeps its stored CR."""
        scaled = scale_actor(CombatActor(template="Brute", challenge_rating=0), ruleset, 8)

        assert scaled.max_hit_points == 13
        assert scaled.challenge_rating == 0

    def test_fractional_challenge_rating(self, ruleset: Any) -> None:
        """Test fractional CR scales HP proportionally."""
        scaled = scale_actor(CombatActor(template="Brute", challenge_rating=0.5), ruleset, 8)

        assert scaled.max_hit_points == 6

    def test_hit_point_floor(self, ruleset: Any) -> None:
        """Test max HP never drops below five."""
        frail = CombatActor(template="Caster", challenge_rating=0.25)

        assert scale_actor(frail, ruleset, 8).max_hit_points == 5

    def test_ratio_preserved(self, brute: CombatActor, ruleset: Any) -> None:
        """Test a wounded actor stays proportionally wounded."""
        first = scale_actor(brute, ruleset, 8)
        wounded = first.evolve(current_hit_points=13)

        rescaled = scale_actor(wounded.evolve(challenge_rating=6), ruleset, 8)

        assert rescaled.max_hit_points == 78
        assert rescaled.current_hit_points == 26

    def test_idempotent(self, brute: CombatActor, ruleset: Any) -> None:
        """Test scaling a scaled actor changes nothing."""
        once = scale_actor(brute, ruleset, 8)

        assert scale_actor(once, ruleset, 8) == once

    def test_monotonic_in_challenge_rating(self, ruleset: Any) -> None:
        """Test HP, AC and proficiency never fall as CR rises."""
        previous = None
        for challenge_rating in range(1, 21):
            actor = CombatActor(template="Tank", challenge_rating=challenge_rating)
            scaled = scale_actor(actor, ruleset, 8)
            if previous is not None:
                assert scaled.max_hit_points >= previous.max_hit_points
                assert scaled.armor_class >= previous.armor_class
                assert scaled.proficiency_bonus >= previous.proficiency_bonus
            previous = scaled

    def test_malformed_base_score(self, brute: CombatActor, ruleset: Any) -> None:
        """Test a malformed base score falls back to 10."""
        scaled = scale_actor(brute, ruleset, base_score="junk")  # type: ignore[arg-type]

        assert scaled.ability_scores[Ability.INT] == 8

    def test_high_base_score_not_capped(self, brute: CombatActor, ruleset: Any) -> None:
        """Test scores follow base + template + rank above 30."""
        boss = brute.evolve(rank="Boss")

        scaled = scale_actor(boss, ruleset, base_score=28)

        assert scaled.ability_scores[Ability.STR] == 36
        assert scaled.ability_scores[Ability.DEX] == 32
        assert scaled.ability_scores[Ability.CON] == 36
        assert scaled.ability_scores[Ability.INT] == 30
        assert [a for a, proficient in scaled.saving_throws.items() if proficient] == [
            Ability.STR,
            Ability.CON,
        ]

    def test_does_not_mutate_input(self, brute: CombatActor, ruleset: Any) -> None:
        """Test the input actor is untouched."""
        scale_actor(brute, ruleset, 8)

        assert brute.max_hit_points == 10
        assert brute.attacks[0].damage_dice == "1d6"

    def test_unknown_template_uses_baseline(self, ruleset: Any) -> None:
        """Test unknown templates scale as the baseline role."""
        scaled = scale_actor(CombatActor(template="Wizard", challenge_rating=1), ruleset, 8)

        assert scaled.ability_scores[Ability.DEX] == 12
