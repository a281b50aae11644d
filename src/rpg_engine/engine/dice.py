"""Dice rolling on top of the d20 library.

DiceRoller is the default dice evaluator the resolution pipeline rolls
through. Anything with the same ``roll_d20`` and ``roll_damage`` methods
(see DiceEvaluator) can stand in for it, which is how tests script exact
rolls.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

import d20

from rpg_engine.core.constants import FALLBACK_DICE
from rpg_engine.core.exceptions import DiceRollError
from rpg_engine.core.logging import get_logger
from rpg_engine.models.enums import RollType


logger = get_logger(__name__)

_DICE_TERM = re.compile(r"(\d*)d(\d+)")
_SIMPLE_FORMULA = re.compile(r"^\s*(\d+d\d+|\d+)(\s*[+-]\s*\d+)*\s*$")


@dataclass(frozen=True)
class DiceExpression:
    """Result of one roll.

    Attributes:
        expression: The expression as requested.
        total: Final total including modifiers.
        dice: Kept die faces.
        modifier: Static modifier (total minus kept dice).
        is_critical: Whether the kept d20 showed a 20.
        is_fumble: Whether the kept d20 showed a 1.
        roll_type: Mode the roll was made in.
        dropped: Die faces discarded by advantage or disadvantage.
    """

    expression: str
    total: int
    dice: list[int]
    modifier: int
    is_critical: bool
    is_fumble: bool
    roll_type: RollType
    dropped: list[int] = field(default_factory=list)

    @property
    def natural(self) -> int:
        """The kept die face of a d20 roll."""
        return self.dice[0] if self.dice else 0


class DiceEvaluator(Protocol):
    """What the resolution pipeline needs from a dice roller."""

    def roll_d20(
        self,
        bonus: int,
        *,
        roll_type: RollType = RollType.NORMAL,
        forced_natural: int | None = None,
    ) -> DiceExpression: ...

    def roll_damage(
        self,
        damage_expression: str,
        *,
        is_critical: bool = False,
        multiplier: int = 1,
    ) -> DiceExpression: ...


def is_simple_formula(expression: str | None) -> bool:
    """Whether a formula is plain ``XdY+Z`` style notation or a flat number.

    Example:
        >>> is_simple_formula("2d6+3"), is_simple_formula("banana")
        (True, False)
    """
    return bool(expression) and bool(_SIMPLE_FORMULA.match(expression or ""))


def safe_formula(expression: str | None, fallback: str = FALLBACK_DICE) -> str:
    """Return the formula if it is simple notation, otherwise the fallback."""
    if is_simple_formula(expression):
        return (expression or "").replace(" ", "")
    logger.warning("Unparseable dice formula, using fallback", expression=expression)
    return fallback


def multiply_dice(expression: str, factor: int) -> str:
    """Multiply the count of every dice term.

    Example:
        >>> multiply_dice("2d6+3", 2)
        '4d6+3'
    """
    if factor == 1:
        return expression

    def scale(match: re.Match[str]) -> str:
        count = int(match.group(1) or 1) * factor
        return f"{count}d{match.group(2)}"

    return _DICE_TERM.sub(scale, expression)


class DiceRoller:
    """Dice roller backed by the d20 library.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> result = roller.roll("2d6+3")
        >>> 5 <= result.total <= 15
        True
    """

    def __init__(self, *, seed: int | None = None, critical_rule: str = "double_dice") -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
            critical_rule: 'double_dice' doubles the dice count on a crit,
                'double_damage' doubles the rolled total.
        """
        self._seed = seed
        self._critical_rule = critical_rule
        if seed is not None:
            random.seed(seed)
        logger.info("DiceRoller initialized", seed=seed, critical_rule=critical_rule)

    def roll(
        self,
        expression: str,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        """Roll dice according to the given expression.

        Args:
            expression: Dice expression (e.g., '1d20+5', '2d6+3').
            roll_type: Advantage and disadvantage rewrite every d20 term.

        Returns:
            DiceExpression containing roll results.

        Raises:
            DiceRollError: If the expression is empty or invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        modified_expression = expression
        if roll_type == RollType.ADVANTAGE:
            modified_expression = re.sub(r"\b1?d20\b", "2d20kh1", expression)
        elif roll_type == RollType.DISADVANTAGE:
            modified_expression = re.sub(r"\b1?d20\b", "2d20kl1", expression)

        try:
            result = d20.roll(modified_expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        kept = self._extract_dice_values(result.expr)
        dropped = self._extract_dice_values(result.expr, dropped=True)
        natural = kept[0] if "d20" in expression.lower() and kept else None

        rolled = DiceExpression(
            expression=expression,
            total=result.total,
            dice=kept,
            modifier=result.total - sum(kept),
            is_critical=natural == 20,
            is_fumble=natural == 1,
            roll_type=roll_type,
            dropped=dropped,
        )
        logger.debug("Dice rolled", expression=expression, total=result.total)
        return rolled

    def _extract_dice_values(self, expr: Any, *, dropped: bool = False) -> list[int]:
        """Collect die faces from a d20 expression tree.

        Args:
            expr: The d20 expression tree.
            dropped: Collect discarded faces instead of kept ones.

        Returns:
            Die faces in roll order.
        """
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept != dropped:
                        values.append(die.number)
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values

    def roll_d20(
        self,
        bonus: int,
        *,
        roll_type: RollType = RollType.NORMAL,
        forced_natural: int | None = None,
    ) -> DiceExpression:
        """Roll a d20 check, attack or save.

        Args:
            bonus: Modifier added to the kept die.
            roll_type: Normal, advantage or disadvantage.
            forced_natural: Skip the dice and use this face (heroic rolls).

        Returns:
            DiceExpression whose first die is the kept d20.
        """
        sign = "+" if bonus >= 0 else ""
        expression = f"1d20{sign}{bonus}"
        if forced_natural is not None:
            return DiceExpression(
                expression=expression,
                total=forced_natural + bonus,
                dice=[forced_natural],
                modifier=bonus,
                is_critical=forced_natural == 20,
                is_fumble=forced_natural == 1,
                roll_type=roll_type,
            )
        return self.roll(expression, roll_type=roll_type)

    def roll_damage(
        self,
        damage_expression: str,
        *,
        is_critical: bool = False,
        multiplier: int = 1,
    ) -> DiceExpression:
        """Roll damage or healing.

        Args:
            damage_expression: Formula such as '2d6+3'.
            is_critical: Apply the configured critical hit rule.
            multiplier: Extra dice multiplier, e.g. 2 for heroic actions.

        Returns:
            DiceExpression containing the roll.
        """
        expression = multiply_dice(damage_expression, multiplier)
        if not is_critical:
            return self.roll(expression)

        if self._critical_rule == "double_damage":
            result = self.roll(expression)
            return DiceExpression(
                expression=f"({expression}) x 2",
                total=result.total * 2,
                dice=result.dice,
                modifier=result.modifier * 2,
                is_critical=True,
                is_fumble=False,
                roll_type=RollType.CRITICAL,
            )

        doubled = self.roll(multiply_dice(expression, 2))
        return DiceExpression(
            expression=doubled.expression,
            total=doubled.total,
            dice=doubled.dice,
            modifier=doubled.modifier,
            is_critical=True,
            is_fumble=False,
            roll_type=RollType.CRITICAL,
        )


__all__ = [
    "RollType",
    "DiceExpression",
    "DiceEvaluator",
    "DiceRoller",
    "is_simple_formula",
    "safe_formula",
    "multiply_dice",
]
