"""Experience curve, kill rewards and level-up stat growth."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_BALANCE, GameBalance


@dataclass(frozen=True)
class LevelUp:
    new_level: int
    new_max_health: int
    new_attack: int
    new_defense: int
    remaining_experience: int

    def as_dict(self) -> dict:
        return {
            "newLevel": self.new_level,
            "newMaxHealth": self.new_max_health,
            "newAttack": self.new_attack,
            "newDefense": self.new_defense,
        }


def exp_for_level(level: int, balance: GameBalance = DEFAULT_BALANCE) -> int:
    """Experience needed to step up *into* ``level``."""
    return math.floor(balance.exp_curve_base * balance.exp_curve_growth ** (level - 1))


def kill_experience(defender_level: int, is_boss: bool = False,
                    balance: GameBalance = DEFAULT_BALANCE) -> int:
    exp = balance.exp_per_defender_level * max(1, defender_level)
    return exp * (balance.boss_exp_multiplier if is_boss else 1)


def stats_for_level(level: int, balance: GameBalance = DEFAULT_BALANCE):
    """(max_health, attack, defense) of a character at ``level``."""
    n = level - 1
    return (
        balance.health_base + n * balance.health_per_level,
        balance.attack_base + n * balance.attack_per_level,
        balance.defense_base + n * balance.defense_per_level,
    )


def check_level_up(level: int, experience: int,
                   balance: GameBalance = DEFAULT_BALANCE) -> Optional[LevelUp]:
    """One level per fight at most; surplus experience carries over."""
    needed = exp_for_level(level + 1, balance)
    if experience < needed:
        return None
    new_level = level + 1
    max_health, attack, defense = stats_for_level(new_level, balance)
    return LevelUp(new_level, max_health, attack, defense, experience - needed)
