import pytest

from server.combat import CombatParticipant, Side, base_damage, resolve
from server.config import GameBalance
from server.loot import LootEntry, plunder, roll_loot
from server.progression import check_level_up, exp_for_level, kill_experience, stats_for_level
from server.rng import KeyedRNG


def hero(**kw):
    base = dict(current_health=100, max_health=100, attack=10, defense=5)
    base.update(kw)
    return CombatParticipant(**base)


def test_strong_attacker_wins_fast():
    attacker = hero(level=10, attack=20)
    monster = CombatParticipant(current_health=10, max_health=10, attack=3, defense=2, level=1)
    out = resolve(attacker, monster, rng_seed=1234)
    assert out.winner == Side.attacker
    assert out.rounds <= 2
    assert out.damage_dealt >= 10
    assert out.defender_health == 0
    assert out.exp_gained == 10


def test_same_seed_same_fight():
    a = hero()
    d = hero(attack=9, defense=6)
    assert resolve(a, d, 99) == resolve(a, d, 99)
    assert resolve(a, d, 99).log != resolve(a, d, 100).log


@pytest.mark.parametrize("seed", range(25))
def test_fight_terminates_and_damage_adds_up(seed):
    a = hero(attack=1, defense=500)
    d = hero(attack=1, defense=500, current_health=40, max_health=40)
    out = resolve(a, d, seed)
    dealt = sum(r.damage for r in out.log if r.actor == Side.attacker)
    taken = sum(r.damage for r in out.log if r.actor == Side.defender)
    assert out.damage_dealt == dealt
    assert out.damage_taken == taken
    assert out.attacker_health >= 0 and out.defender_health >= 0
    # minimum hit of 1 bounds the fight by the defender's health
    assert out.rounds <= 40


def test_loser_keeps_reduced_health_and_gets_nothing():
    weak = hero(current_health=5, attack=1, defense=0)
    brute = hero(current_health=500, max_health=500, attack=50, defense=50)
    out = resolve(weak, brute, 7, loot_table=[LootEntry("gem", drop_chance=1.0, gold_min=5, gold_max=5)])
    assert out.winner == Side.defender
    assert out.attacker_health == 0
    assert out.gold_gained == 0 and out.exp_gained == 0
    assert out.loot == () and out.level_up is None
    assert out.as_dict()["result"] == "defender"


def test_victory_rolls_loot_and_levels_up():
    a = hero(attack=200, level=1, experience=140)
    d = CombatParticipant(current_health=5, max_health=5, attack=1, defense=0, level=2)
    table = [LootEntry("fang", "Wolf Fang", drop_chance=1.0, min_quantity=2, max_quantity=2,
                       gold_min=4, gold_max=4)]
    out = resolve(a, d, 5, loot_table=table)
    assert out.attacker_won
    assert out.gold_gained == 4
    assert [(x.item_id, x.quantity) for x in out.loot] == [("fang", 2)]
    assert out.exp_gained == 20
    assert out.level_up is not None
    assert out.level_up.new_level == 2
    assert out.level_up.remaining_experience == 10
    body = out.as_dict()
    assert body["levelUp"] == {"newLevel": 2, "newMaxHealth": 120, "newAttack": 13, "newDefense": 7}
    assert body["lootItems"] == [{"item_id": "fang", "name": "Wolf Fang", "quantity": 2}]


def test_boss_pays_more_experience():
    a = hero(attack=500)
    boss = CombatParticipant(current_health=1, max_health=1, attack=1, defense=0, level=3, is_boss=True)
    assert resolve(a, boss, 1).exp_gained == 150


def test_base_damage_floor_of_one():
    assert base_damage(1, 1000, 0.8, 1.2) == 1
    assert base_damage(20, 2, 1.0, 1.0) == 19


def test_exp_curve():
    assert exp_for_level(2) == 150
    assert exp_for_level(3) == 225
    assert kill_experience(4) == 40
    assert kill_experience(4, is_boss=True) == 200
    assert stats_for_level(3) == (140, 16, 9)


def test_one_level_per_fight():
    lu = check_level_up(1, 10_000)
    assert lu.new_level == 2
    assert lu.remaining_experience == 10_000 - 150
    assert check_level_up(1, 149) is None


def test_custom_balance_is_used():
    b = GameBalance(exp_per_defender_level=1, boss_exp_multiplier=2)
    assert kill_experience(5, True, b) == 10


def test_roll_loot_respects_chance_and_ranges():
    rng = KeyedRNG(3, "loot")
    table = [
        LootEntry("never", drop_chance=0.0),
        LootEntry("always", drop_chance=1.0, min_quantity=1, max_quantity=3, gold_min=2, gold_max=6),
    ]
    gold, drops = roll_loot(table, rng)
    assert 2 <= gold <= 6
    assert [d.item_id for d in drops] == ["always"]
    assert 1 <= drops[0].quantity <= 3


def test_plunder_takes_a_slice_of_few_stacks():
    stacks = [("a", "A", 10), ("b", "B", 1), ("c", "C", 100), ("d", "D", 50), ("e", "E", 0)]
    spoils = plunder(stacks, KeyedRNG(11, "plunder"), 3, (0.1, 0.3))
    assert len(spoils) == 3
    owned = {s[0]: s[2] for s in stacks}
    for drop in spoils:
        assert drop.item_id != "e"
        assert 1 <= drop.quantity <= owned[drop.item_id]
        assert drop.quantity <= max(1, int(owned[drop.item_id] * 0.3))
    assert plunder(stacks, KeyedRNG(11, "plunder"), 3, (0.1, 0.3)) == spoils
