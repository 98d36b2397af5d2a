"""Shared game-balance constants.

Every tunable number the world core uses lives on :class:`GameBalance`. The
Flask app keeps one instance under ``app.config["GAME_BALANCE"]``; tests build
their own with :func:`dataclasses.replace`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class GameBalance:
    # travel (units per minute)
    travel_speed_land: float = 50.0
    travel_speed_water: float = 80.0
    min_travel_ms: int = 60_000
    move_limit: int = 5000
    home_radius: float = 10.0

    # interaction ranges, inclusive
    attack_range: float = 100.0
    shop_range: float = 100.0
    trade_range: float = 50.0
    inspect_range: float = 500.0
    home_heal_radius: float = 50.0

    # combat
    attack_roll: Tuple[float, float] = (0.8, 1.2)
    hit_variance: Tuple[float, float] = (0.85, 1.15)
    min_hit: int = 1

    # progression
    exp_per_defender_level: int = 10
    boss_exp_multiplier: int = 5
    exp_curve_base: int = 100
    exp_curve_growth: float = 1.5
    health_base: int = 100
    health_per_level: int = 20
    attack_base: int = 10
    attack_per_level: int = 3
    defense_base: int = 5
    defense_per_level: int = 2

    # pvp plunder
    plunder_stacks: int = 3
    plunder_fraction: Tuple[float, float] = (0.1, 0.3)

    # map
    max_terrain_area: int = 64


DEFAULT_BALANCE = GameBalance()

# New characters start here until they pick a home.
START_POS = (0, 0)
BOAT_ITEM_NAME = "boat"
