"""
Fractal value noise over the infinite world plane.

Lattice corners get a pseudo-random value from a sine scrambler of
``cx * 374761393 + cy * 668265263 + seed``; the four corners around a point are
blended with the quintic fade so cell edges do not show. ``fractal`` stacks
octaves of that, each at twice the frequency and ``persistence`` times the
amplitude of the last, normalised back to [0, 1).

Both functions are pure: same arguments, same float, on every machine and in
every process. The renderer and the server therefore agree on the terrain
without ever shipping a grid.
"""
from __future__ import annotations

import math

P1 = 374761393
P2 = 668265263
OCTAVE_SEED_STEP = 1000

_BELOW_ONE = math.nextafter(1.0, 0.0)


def _scramble(h: float) -> float:
    """frac(sin(h) * 10000), kept inside [0, 1)."""
    if not math.isfinite(h):
        return 0.0
    v = math.sin(h) * 10000.0
    return min(v - math.floor(v), _BELOW_ONE)


def _fade(t: float) -> float:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _corner(cx: int, cy: int, seed: int) -> float:
    return _scramble(float(cx) * P1 + float(cy) * P2 + seed)


def noise2d(x: float, y: float, seed: int = 0) -> float:
    """Smoothed value noise in [0, 1)."""
    if not (math.isfinite(x) and math.isfinite(y)):
        return 0.0
    x0 = math.floor(x)
    y0 = math.floor(y)
    sx = _fade(x - x0)
    sy = _fade(y - y0)

    n00 = _corner(x0, y0, seed)
    n10 = _corner(x0 + 1, y0, seed)
    n01 = _corner(x0, y0 + 1, seed)
    n11 = _corner(x0 + 1, y0 + 1, seed)

    nx0 = n00 * (1 - sx) + n10 * sx
    nx1 = n01 * (1 - sx) + n11 * sx
    return min(nx0 * (1 - sy) + nx1 * sy, _BELOW_ONE)


def fractal(x: float, y: float, octaves: int = 4, persistence: float = 0.5,
            scale: float = 0.01, seed: int = 0) -> float:
    """Multi-octave noise in [0, 1); octave ``i`` uses ``seed + i * 1000``."""
    value = 0.0
    amplitude = 1.0
    frequency = scale
    total = 0.0
    for octave in range(octaves):
        value += amplitude * noise2d(x * frequency, y * frequency, seed + octave * OCTAVE_SEED_STEP)
        total += amplitude
        amplitude *= persistence
        frequency *= 2
    if total <= 0:
        return 0.0
    return max(0.0, min(value / total, _BELOW_ONE))
