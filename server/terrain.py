"""
Terrain classification for the infinite world.

A tile's kind is decided from five noise fields sampled at its coordinate
(continent, elevation, moisture, detail and a winding river band). The
decision is an ordered rule table: rules are tried top to bottom and the first
one that returns a kind wins, so water always beats beach, beach beats cliff,
and so on down to grass.

``classify`` is total and pure. It is the single source of truth for both the
map renderer and the travel rules ("do I need a boat to go there?").
"""
from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .noise import fractal


class TerrainKind(str, Enum):
    grass = "grass"
    dirt = "dirt"
    water = "water"
    deep_water = "deepWater"
    forest = "forest"
    trees = "trees"
    cliff = "cliff"
    flowers = "flowers"
    path = "path"
    sand = "sand"


BOAT_TERRAIN = frozenset({TerrainKind.water, TerrainKind.deep_water})

# seed offsets of the individual fields
ELEVATION_SEED = 10000
MOISTURE_SEED = 50000
DETAIL_SEED = 100000
RIVER_BASE_SEED = 77777
RIVER_JITTER_SEED = 88888
RIVER_WINDING = 0.004


@dataclass(frozen=True)
class TerrainSample:
    continent: float
    elevation: float
    moisture: float
    detail: float
    river: float

    @property
    def height(self) -> float:
        return 0.5 * self.continent + 0.5 * self.elevation


Rule = Callable[[TerrainSample], Optional[TerrainKind]]


def _ocean(s: TerrainSample) -> Optional[TerrainKind]:
    if s.continent < 0.2:
        return TerrainKind.water if s.continent >= 0.12 else TerrainKind.deep_water
    return None


def _lake(s: TerrainSample) -> Optional[TerrainKind]:
    if s.height < 0.28 and 0.25 < s.continent < 0.35 and s.elevation < 0.3:
        return TerrainKind.water
    return None


def _river(s: TerrainSample) -> Optional[TerrainKind]:
    if s.river < 0.04 and 0.35 < s.height < 0.7 and s.continent > 0.3:
        return TerrainKind.deep_water if s.river < 0.02 else TerrainKind.water
    return None


def _beach(s: TerrainSample) -> Optional[TerrainKind]:
    return TerrainKind.sand if 0.2 < s.continent < 0.28 else None


def _cliff(s: TerrainSample) -> Optional[TerrainKind]:
    return TerrainKind.cliff if s.height > 0.78 else None


def _woodland(s: TerrainSample) -> Optional[TerrainKind]:
    if s.moisture > 0.55 and 0.4 < s.height < 0.75:
        if s.moisture > 0.7 and s.detail > 0.4:
            return TerrainKind.forest
        if s.moisture > 0.6:
            return TerrainKind.trees
    return None


def _scattered_trees(s: TerrainSample) -> Optional[TerrainKind]:
    if s.detail > 0.72 and s.moisture > 0.48 and s.height > 0.4:
        return TerrainKind.trees
    return None


def _path(s: TerrainSample) -> Optional[TerrainKind]:
    if 0.47 < s.detail < 0.53 and 0.38 < s.height < 0.68:
        return TerrainKind.path
    return None


def _flowers(s: TerrainSample) -> Optional[TerrainKind]:
    if s.detail > 0.85 and s.moisture > 0.42 and s.height > 0.4:
        return TerrainKind.flowers
    return None


def _dirt(s: TerrainSample) -> Optional[TerrainKind]:
    if s.moisture < 0.32 and 0.45 < s.height < 0.68 and s.detail > 0.6:
        return TerrainKind.dirt
    return None


# Order is priority: first non-None wins.
RULES: Tuple[Tuple[str, Rule], ...] = (
    ("ocean", _ocean),
    ("lake", _lake),
    ("river", _river),
    ("beach", _beach),
    ("cliff", _cliff),
    ("woodland", _woodland),
    ("scattered_trees", _scattered_trees),
    ("path", _path),
    ("flowers", _flowers),
    ("dirt", _dirt),
)
DEFAULT_KIND = TerrainKind.grass


def _coord(v) -> float:
    # Python ints are unbounded; anything past the float range sits on its edge.
    try:
        return float(v)
    except OverflowError:
        return sys.float_info.max if v > 0 else -sys.float_info.max


class TerrainField:
    """Deterministic terrain for one world seed."""

    def __init__(self, seed: int = 0, rules: Tuple[Tuple[str, Rule], ...] = RULES):
        self.seed = int(seed)
        self.rules = rules

    def sample(self, world_x: int, world_y: int) -> TerrainSample:
        x, y = _coord(world_x), _coord(world_y)
        seed = self.seed
        continent = fractal(x, y, 4, 0.5, 0.002, seed)
        elevation = fractal(x, y, 5, 0.5, 0.006, seed + ELEVATION_SEED)
        moisture = fractal(x, y, 4, 0.5, 0.01, seed + MOISTURE_SEED)
        detail = fractal(x, y, 3, 0.5, 0.025, seed + DETAIL_SEED)

        river_base = fractal(x, y, 3, 0.6, 0.003, seed + RIVER_BASE_SEED)
        winding = (math.sin(x * RIVER_WINDING + river_base * 3) * 0.5
                   + math.cos(y * RIVER_WINDING + river_base * 3) * 0.5)
        jitter = fractal(x, y, 2, 0.5, 0.008, seed + RIVER_JITTER_SEED) * 0.2
        return TerrainSample(continent, elevation, moisture, detail, abs(winding + jitter))

    def classify(self, world_x: int, world_y: int) -> TerrainKind:
        s = self.sample(world_x, world_y)
        for _name, rule in self.rules:
            kind = rule(s)
            if kind is not None:
                return kind
        return DEFAULT_KIND

    def requires_boat(self, world_x: int, world_y: int) -> bool:
        return self.classify(world_x, world_y) in BOAT_TERRAIN

    def classify_area(self, min_x: int, min_y: int, max_x: int, max_y: int) -> List[List[str]]:
        """Row-major kinds for the inclusive rectangle, one row per y."""
        return [
            [self.classify(x, y).value for x in range(min_x, max_x + 1)]
            for y in range(min_y, max_y + 1)
        ]


_FIELDS: Dict[int, TerrainField] = {}


def field_for(seed: int = 0) -> TerrainField:
    """Shared immutable field per seed."""
    f = _FIELDS.get(seed)
    if f is None:
        f = _FIELDS[seed] = TerrainField(seed)
    return f


def classify(world_x: int, world_y: int, seed: int = 0) -> TerrainKind:
    return field_for(seed).classify(world_x, world_y)


def is_water(world_x: int, world_y: int, seed: int = 0) -> bool:
    return field_for(seed).requires_boat(world_x, world_y)
