# server/combat.py
"""
Round-based fight resolution.

``resolve`` is deterministic for a given seed: every roll comes from a keyed
RNG, so a fight stored with its seed can be replayed exactly. Each round the
attacker strikes first and the defender answers only if still standing. Every
hit does at least one point of damage, so a fight can last at most as many
rounds as the defender has health.

The resolver never touches storage. It returns a :class:`CombatOutcome`; the
caller writes the new health values, rewards and loot.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_BALANCE, GameBalance
from .loot import LootDrop, LootEntry, roll_loot
from .progression import LevelUp, check_level_up, kill_experience
from .rng import KeyedRNG


class Side(str, Enum):
    attacker = "attacker"
    defender = "defender"


@dataclass
class CombatParticipant:
    current_health: int
    max_health: int
    attack: int
    defense: int
    level: int = 1
    experience: int = 0
    is_boss: bool = False


@dataclass(frozen=True)
class CombatRound:
    round: int
    actor: Side
    damage: int
    target_health: int

    def as_dict(self) -> dict:
        return {"round": self.round, "action": f"{self.actor.value}_hit",
                "damage": self.damage, "targetHealth": self.target_health}


@dataclass(frozen=True)
class CombatOutcome:
    winner: Side
    rounds: int
    damage_dealt: int
    damage_taken: int
    attacker_health: int
    defender_health: int
    seed: int
    gold_gained: int = 0
    exp_gained: int = 0
    loot: Tuple[LootDrop, ...] = ()
    level_up: Optional[LevelUp] = None
    log: Tuple[CombatRound, ...] = field(default_factory=tuple)

    @property
    def attacker_won(self) -> bool:
        return self.winner == Side.attacker

    def as_dict(self) -> dict:
        return {
            "result": self.winner.value,
            "rounds": self.rounds,
            "damageDealt": self.damage_dealt,
            "damageTaken": self.damage_taken,
            "playerHealth": self.attacker_health,
            "opponentHealth": self.defender_health,
            "goldGained": self.gold_gained,
            "expGained": self.exp_gained,
            "lootItems": [d.as_dict() for d in self.loot],
            "levelUp": self.level_up.as_dict() if self.level_up else None,
            "combatLog": [r.as_dict() for r in self.log],
        }


def base_damage(attack: int, defense: int, attack_roll: float, defense_roll: float) -> int:
    return max(1, math.floor(attack * attack_roll - defense * defense_roll / 2))


def _hit(base: int, rng: KeyedRNG, key: str, balance: GameBalance) -> int:
    variance = rng.uniform(key, *balance.hit_variance)
    return max(1, balance.min_hit, math.floor(base * variance))


def resolve(attacker: CombatParticipant, defender: CombatParticipant, rng_seed: int, *,
            loot_table: Sequence[LootEntry] = (),
            balance: GameBalance = DEFAULT_BALANCE) -> CombatOutcome:
    rng = KeyedRNG(rng_seed, "combat")

    # One roll per side for the whole fight, then per-hit variance.
    attack_roll = rng.uniform("roll.attacker", *balance.attack_roll)
    defense_roll = rng.uniform("roll.defender", *balance.attack_roll)
    attacker_base = base_damage(attacker.attack, defender.defense, attack_roll, defense_roll)
    defender_base = base_damage(defender.attack, attacker.defense, defense_roll, attack_roll)

    a_hp = attacker.current_health
    d_hp = defender.current_health
    rounds = 0
    dealt = taken = 0
    log: List[CombatRound] = []

    while a_hp > 0 and d_hp > 0:
        rounds += 1
        hit = _hit(attacker_base, rng, f"round.{rounds}.attacker", balance)
        d_hp -= hit
        dealt += hit
        log.append(CombatRound(rounds, Side.attacker, hit, max(0, d_hp)))
        if d_hp <= 0:
            break
        hit = _hit(defender_base, rng, f"round.{rounds}.defender", balance)
        a_hp -= hit
        taken += hit
        log.append(CombatRound(rounds, Side.defender, hit, max(0, a_hp)))

    winner = Side.attacker if d_hp <= 0 < a_hp else Side.defender
    gold = exp = 0
    drops: Tuple[LootDrop, ...] = ()
    level_up = None
    if winner == Side.attacker:
        exp = kill_experience(defender.level, defender.is_boss, balance)
        gold, dropped = roll_loot(loot_table, rng.with_namespace("loot"))
        drops = tuple(dropped)
        level_up = check_level_up(attacker.level, attacker.experience + exp, balance)

    return CombatOutcome(
        winner=winner,
        rounds=rounds,
        damage_dealt=dealt,
        damage_taken=taken,
        attacker_health=max(0, a_hp),
        defender_health=max(0, d_hp),
        seed=rng_seed,
        gold_gained=gold,
        exp_gained=exp,
        loot=drops,
        level_up=level_up,
        log=tuple(log),
    )
