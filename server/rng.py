"""
Deterministic keyed RNG for combat and loot.

Every draw is a pure function of (seed, key): the two are hashed with BLAKE2s
into a 64-bit integer and mapped onto [0, 1). Nothing is stateful, so a fight
replays exactly from its seed, and draws never depend on how many other draws
happened before them.

    rng = KeyedRNG(seed=918273, namespace="fight")
    roll = rng.uniform("round.3.attacker", 0.85, 1.15)
    qty = rng.randi("loot.2.qty", 1, 3)
"""
from __future__ import annotations

import hashlib
from typing import List, Sequence, TypeVar

T = TypeVar("T")

_U64 = 1 << 64


def _to_uint64(seed: int, key: str, namespace: str = "") -> int:
    h = hashlib.blake2s(digest_size=8)
    h.update(str(int(seed)).encode("utf-8"))
    if namespace:
        h.update(b"|")
        h.update(namespace.encode("utf-8"))
    h.update(b"|")
    h.update(key.encode("utf-8"))
    return int.from_bytes(h.digest(), "big")


def randf(seed: int, key: str, namespace: str = "") -> float:
    """Uniform float in [0,1)."""
    return _to_uint64(seed, key, namespace) / float(_U64)


def uniform(seed: int, key: str, lo: float, hi: float, namespace: str = "") -> float:
    """Uniform float in [lo, hi)."""
    return lo + (hi - lo) * randf(seed, key, namespace)


def randi(seed: int, key: str, a: int, b: int, namespace: str = "") -> int:
    """Uniform integer in [a, b] inclusive."""
    if a > b:
        a, b = b, a
    return a + _to_uint64(seed, key, namespace) % (b - a + 1)


def coinflip(seed: int, key: str, p: float, namespace: str = "") -> bool:
    """Bernoulli(p); p outside [0,1] is clamped."""
    p = min(1.0, max(0.0, p))
    return randf(seed, key, namespace) < p


def sample(seed: int, key: str, seq: Sequence[T], k: int, namespace: str = "") -> List[T]:
    """k distinct elements, partial Fisher-Yates."""
    k = max(0, min(k, len(seq)))
    idxs = list(range(len(seq)))
    for i in range(k):
        j = randi(seed, f"{key}.swap.{i}", i, len(idxs) - 1, namespace)
        idxs[i], idxs[j] = idxs[j], idxs[i]
    return [seq[i] for i in idxs[:k]]


class KeyedRNG:
    """Carries (seed, namespace) so call sites only pass keys."""
    __slots__ = ("seed", "namespace")

    def __init__(self, seed: int, namespace: str = ""):
        self.seed = int(seed)
        self.namespace = namespace or ""

    def randf(self, key: str) -> float:
        return randf(self.seed, key, self.namespace)

    def uniform(self, key: str, lo: float, hi: float) -> float:
        return uniform(self.seed, key, lo, hi, self.namespace)

    def randi(self, key: str, a: int, b: int) -> int:
        return randi(self.seed, key, a, b, self.namespace)

    def coinflip(self, key: str, p: float) -> bool:
        return coinflip(self.seed, key, p, self.namespace)

    def sample(self, key: str, seq: Sequence[T], k: int) -> List[T]:
        return sample(self.seed, key, seq, k, self.namespace)

    def with_namespace(self, extra: str) -> "KeyedRNG":
        ns = f"{self.namespace}.{extra}" if self.namespace else extra
        return KeyedRNG(self.seed, ns)
