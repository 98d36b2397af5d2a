# server/loot.py
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .rng import KeyedRNG


@dataclass(frozen=True)
class LootEntry:
    item_id: str
    name: str = ""
    drop_chance: float = 0.0
    min_quantity: int = 1
    max_quantity: int = 1
    gold_min: int = 0
    gold_max: int = 0


@dataclass(frozen=True)
class LootDrop:
    item_id: str
    name: str
    quantity: int

    def as_dict(self) -> dict:
        return {"item_id": self.item_id, "name": self.name, "quantity": self.quantity}


def roll_loot(table: Sequence[LootEntry], rng: KeyedRNG) -> Tuple[int, List[LootDrop]]:
    """Every entry pays its gold range and independently rolls its item drop."""
    gold = 0
    drops: List[LootDrop] = []
    for i, entry in enumerate(table):
        if entry.gold_min > 0 or entry.gold_max > 0:
            gold += rng.randi(f"loot.{i}.gold", entry.gold_min, entry.gold_max)
        if entry.item_id and rng.coinflip(f"loot.{i}.drop", entry.drop_chance):
            qty = rng.randi(f"loot.{i}.qty", entry.min_quantity, entry.max_quantity)
            if qty > 0:
                drops.append(LootDrop(entry.item_id, entry.name or entry.item_id, qty))
    return gold, drops


def plunder(stacks: Sequence[Tuple[str, str, int]], rng: KeyedRNG, max_stacks: int,
            fraction: Tuple[float, float]) -> List[LootDrop]:
    """PvP spoils: a few random (item_id, name, qty) stacks, a slice of each, at least 1."""
    picked = rng.sample("plunder.stacks", [s for s in stacks if s[2] > 0], max_stacks)
    out: List[LootDrop] = []
    for item_id, name, qty in picked:
        share = rng.uniform(f"plunder.{item_id}", fraction[0], fraction[1])
        take = min(qty, max(1, int(qty * share)))
        out.append(LootDrop(item_id, name or item_id, take))
    return out
