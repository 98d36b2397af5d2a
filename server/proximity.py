"""Range checks that gate attack, shop, trade and inspect.

One comparison for every call site: Euclidean distance, boundary inclusive
(``distance <= max_distance``), done on squared values so integer positions
compare exactly.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Tuple

from .config import DEFAULT_BALANCE, GameBalance

Point = Tuple[float, float]


class Interaction(str, Enum):
    attack = "attack"
    shop = "shop"
    trade = "trade"
    inspect = "inspect"
    home_heal = "home_heal"


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def within_range(a: Point, b: Point, max_distance: float) -> bool:
    if max_distance < 0:
        return False
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    return dx * dx + dy * dy <= max_distance * max_distance


def range_for(interaction: Interaction, balance: GameBalance = DEFAULT_BALANCE) -> float:
    return {
        Interaction.attack: balance.attack_range,
        Interaction.shop: balance.shop_range,
        Interaction.trade: balance.trade_range,
        Interaction.inspect: balance.inspect_range,
        Interaction.home_heal: balance.home_heal_radius,
    }[Interaction(interaction)]


def can_interact(a: Point, b: Point, interaction: Interaction,
                 balance: GameBalance = DEFAULT_BALANCE) -> bool:
    return within_range(a, b, range_for(interaction, balance))
