"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the encounter rules engine test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator, Iterable


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from rpg_engine.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "RPG_ENGINE_DEBUG": "true",
        "RPG_ENGINE_LOG_LEVEL": "DEBUG",
        "RPG_ENGINE_RULES_BASE_SCORE": "10",
        "RPG_ENGINE_SESSION_MAX_PENDING_ACTIONS": "2",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Dice Fixtures
# =============================================================================


class ScriptedDice:
    """Dice evaluator that returns pre-arranged results.

    d20 rolls pop naturals from ``d20``; damage and healing rolls pop
    totals from ``damage``. Every call is recorded for assertions.
    """

    def __init__(self, d20: Iterable[int] = (), damage: Iterable[int] = ()) -> None:
        self.d20 = list(d20)
        self.damage = list(damage)
        self.d20_calls: list[dict[str, Any]] = []
        self.damage_calls: list[dict[str, Any]] = []

    def roll_d20(
        self,
        bonus: int,
        *,
        roll_type: Any = None,
        forced_natural: int | None = None,
    ) -> Any:
        from rpg_engine.engine.dice import DiceExpression
        from rpg_engine.models.enums import RollType

        mode = roll_type or RollType.NORMAL
        natural = forced_natural if forced_natural is not None else self.d20.pop(0)
        self.d20_calls.append({"bonus": bonus, "roll_type": mode, "natural": natural})
        return DiceExpression(
            expression=f"1d20{bonus:+d}",
            total=natural + bonus,
            dice=[natural],
            modifier=bonus,
            is_critical=natural == 20,
            is_fumble=natural == 1,
            roll_type=mode,
        )

    def roll_damage(
        self,
        damage_expression: str,
        *,
        is_critical: bool = False,
        multiplier: int = 1,
    ) -> Any:
        from rpg_engine.engine.dice import DiceExpression
        from rpg_engine.models.enums import RollType

        total = self.damage.pop(0)
        self.damage_calls.append(
            {
                "expression": damage_expression,
                "is_critical": is_critical,
                "multiplier": multiplier,
            }
        )
        return DiceExpression(
            expression=damage_expression,
            total=total,
            dice=[total],
            modifier=0,
            is_critical=is_critical,
            is_fumble=False,
            roll_type=RollType.CRITICAL if is_critical else RollType.NORMAL,
        )


@pytest.fixture
def scripted_dice() -> type[ScriptedDice]:
    """Provide the ScriptedDice class for building rigged evaluators.

    Returns:
        The ScriptedDice class.
    """
    return ScriptedDice


@pytest.fixture
def dice_roller() -> Any:
    """Create a DiceRoller with a fixed seed for reproducible tests.

    Returns:
        DiceRoller instance with fixed seed.
    """
    from rpg_engine.engine.dice import DiceRoller

    return DiceRoller(seed=42)


# =============================================================================
# Ruleset Fixtures
# =============================================================================


@pytest.fixture
def ruleset() -> Any:
    """Provide the default ruleset snapshot.

    Returns:
        Ruleset built from the default tables.
    """
    from rpg_engine.engine.library import default_ruleset

    return default_ruleset()


# =============================================================================
# Actor Fixtures
# =============================================================================


@pytest.fixture
def hero() -> Any:
    """Create a player character with one heroic point.

    Returns:
        CombatActor for the player.
    """
    from rpg_engine.models.actor import Attack, CombatActor
    from rpg_engine.models.enums import ActorAlignment, DamageType

    return CombatActor(
        id="hero",
        name="Ayla",
        alignment=ActorAlignment.ALLY,
        is_player=True,
        heroic_points=1,
        max_hit_points=30,
        current_hit_points=30,
        armor_class=15,
        ability_scores={"strength": 16, "dexterity": 14, "constitution": 14},
        attacks=[
            Attack(
                name="Longsword",
                to_hit=5,
                damage_dice="1d8+3",
                damage_type=DamageType.SLASHING,
            )
        ],
    )


@pytest.fixture
def goblin() -> Any:
    """Create a hostile goblin.

    Returns:
        CombatActor for the goblin.
    """
    from rpg_engine.models.actor import Attack, CombatActor
    from rpg_engine.models.enums import ActorAlignment, DamageType

    return CombatActor(
        id="goblin",
        name="Goblin",
        alignment=ActorAlignment.ENEMY,
        challenge_rating=1,
        max_hit_points=10,
        current_hit_points=10,
        armor_class=12,
        ability_scores={"dexterity": 14},
        attacks=[
            Attack(
                name="Scimitar",
                to_hit=4,
                damage_dice="1d6+2",
                damage_type=DamageType.SLASHING,
            )
        ],
    )


@pytest.fixture
def roster(hero: Any, goblin: Any) -> Any:
    """Create a roster with the hero in the party and the goblin as enemy.

    Returns:
        Roster instance.
    """
    from rpg_engine.models.combat import Roster

    return Roster(party=[hero], enemies=[goblin])


@pytest.fixture
def combat_state(roster: Any) -> Any:
    """Create an active combat with the hero acting first.

    Returns:
        CombatState in round 1.
    """
    from rpg_engine.models.combat import CombatState, TurnOrder

    return CombatState(
        roster=roster,
        turn_order=TurnOrder(actor_ids=["hero", "goblin"], current_turn_index=0, round=1),
    )
