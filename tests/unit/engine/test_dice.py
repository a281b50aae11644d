"""Tests for the dice rolling system."""

from __future__ import annotations

import pytest

from rpg_engine.core.exceptions import DiceRollError
from rpg_engine.engine.dice import (
    DiceRoller,
    is_simple_formula,
    multiply_dice,
    safe_formula,
)
from rpg_engine.models.enums import RollType


class TestFormulaHelpers:
    """Tests for formula validation and rewriting."""

    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("1d6", True),
            ("2d6+3", True),
            ("1d8 + 2 - 1", True),
            ("7", True),
            ("banana", False),
            ("1d6*2", False),
            ("", False),
            (None, False),
        ],
    )
    def test_is_simple_formula(self, expression: str | None, expected: bool) -> None:
        """Test simple dice notation detection."""
        assert is_simple_formula(expression) is expected

    def test_safe_formula(self) -> None:
        """Test unparseable formulas fall back to 1d4."""
        assert safe_formula("2d6 + 3") == "2d6+3"
        assert safe_formula("banana") == "1d4"
        assert safe_formula(None, fallback="1d8") == "1d8"

    @pytest.mark.parametrize(
        ("expression", "factor", "expected"),
        [
            ("2d6+3", 2, "4d6+3"),
            ("d8", 2, "2d8"),
            ("1d6+1d4", 3, "3d6+3d4"),
            ("1d6", 1, "1d6"),
        ],
    )
    def test_multiply_dice(self, expression: str, factor: int, expected: str) -> None:
        """Test dice counts scale and flat modifiers do not."""
        assert multiply_dice(expression, factor) == expected


class TestDiceRoller:
    """Tests for DiceRoller."""

    def test_basic_roll(self, dice_roller: DiceRoller) -> None:
        """Test a basic roll stays in range."""
        for _ in range(50):
            result = dice_roller.roll("2d6+3")
            assert 5 <= result.total <= 15
            assert len(result.dice) == 2
            assert result.modifier == 3

    def test_empty_expression(self, dice_roller: DiceRoller) -> None:
        """Test empty expressions are rejected."""
        with pytest.raises(DiceRollError):
            dice_roller.roll("  ")

    def test_invalid_expression(self, dice_roller: DiceRoller) -> None:
        """Test invalid expressions raise DiceRollError with the expression."""
        with pytest.raises(DiceRollError) as exc_info:
            dice_roller.roll("2d")

        assert exc_info.value.details["expression"] == "2d"

    def test_advantage_keeps_highest(self, dice_roller: DiceRoller) -> None:
        """Test advantage keeps one d20 and drops the other."""
        for _ in range(20):
            result = dice_roller.roll("1d20+2", roll_type=RollType.ADVANTAGE)
            assert len(result.dice) == 1
            assert len(result.dropped) == 1
            assert result.natural >= result.dropped[0]
            assert result.total == result.natural + 2

    def test_disadvantage_keeps_lowest(self, dice_roller: DiceRoller) -> None:
        """Test disadvantage keeps the lower d20."""
        for _ in range(20):
            result = dice_roller.roll("1d20", roll_type=RollType.DISADVANTAGE)
            assert result.natural <= result.dropped[0]

    def test_seed_reproducible(self) -> None:
        """Test a fixed seed reproduces the same rolls."""
        first = DiceRoller(seed=99).roll("4d6+1d20").dice
        second = DiceRoller(seed=99).roll("4d6+1d20").dice

        assert first == second


class TestRollD20:
    """Tests for d20 checks."""

    def test_range(self, dice_roller: DiceRoller) -> None:
        """Test the natural face and total."""
        for _ in range(50):
            result = dice_roller.roll_d20(5)
            assert 1 <= result.natural <= 20
            assert result.total == result.natural + 5
            assert result.is_critical == (result.natural == 20)
            assert result.is_fumble == (result.natural == 1)

    def test_negative_bonus(self, dice_roller: DiceRoller) -> None:
        """Test negative modifiers build a valid expression."""
        result = dice_roller.roll_d20(-2)

        assert result.expression == "1d20-2"
        assert result.total == result.natural - 2

    def test_forced_natural(self, dice_roller: DiceRoller) -> None:
        """Test a forced face bypasses the dice."""
        result = dice_roller.roll_d20(3, forced_natural=20)

        assert result.natural == 20
        assert result.total == 23
        assert result.is_critical is True


class TestRollDamage:
    """Tests for damage rolls."""

    def test_normal_damage(self, dice_roller: DiceRoller) -> None:
        """Test ordinary damage."""
        result = dice_roller.roll_damage("1d8+3")

        assert 4 <= result.total <= 11
        assert result.is_critical is False

    def test_critical_doubles_dice(self, dice_roller: DiceRoller) -> None:
        """Test the default crit rule doubles the dice, not the modifier."""
        result = dice_roller.roll_damage("1d8+3", is_critical=True)

        assert len(result.dice) == 2
        assert result.modifier == 3
        assert 5 <= result.total <= 19
        assert result.roll_type == RollType.CRITICAL

    def test_critical_doubles_damage(self) -> None:
        """Test the alternative crit rule doubles the total."""
        roller = DiceRoller(seed=3, critical_rule="double_damage")

        result = roller.roll_damage("1d8+3", is_critical=True)

        assert result.total % 2 == 0
        assert 8 <= result.total <= 22
        assert len(result.dice) == 1

    def test_multiplier(self, dice_roller: DiceRoller) -> None:
        """Test heroic multipliers scale the dice count."""
        result = dice_roller.roll_damage("2d6", multiplier=2)

        assert len(result.dice) == 4
        assert 4 <= result.total <= 24
