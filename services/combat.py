"""Fights against the store: monsters (PvE) and other characters (PvP).

A fight is resolved in memory from a snapshot of both rows, then written back
with compare-and-set on each row's ``version``. For a monster the write also
requires ``is_active``, so when two players kill the same monster at once only
the first commit wins and the second gets ``alreadyDefeated`` with nothing
written.
"""
import datetime as dt
import logging
import secrets
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

import sqlalchemy as sa

from app.models import db, Character, CombatLog, InventoryItem, Item, MonsterLoot, WorldNpc
from server.combat import CombatOutcome, CombatParticipant, resolve
from server.errors import (
    ContentionFailure, MonsterDefeated, NotEnoughItems, NotFound, SelfTarget, TargetDefeated, TooFar,
    TooWeak,
)
from server.loot import LootEntry, plunder
from server.proximity import Interaction, can_interact, distance
from server.rng import KeyedRNG
from services import players, travel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """A row as it was read before the fight; ``version`` guards the write."""
    row_id: str
    version: int
    participant: CombatParticipant


def snapshot_character(ch: Character) -> Snapshot:
    return Snapshot(ch.character_id, ch.version, CombatParticipant(
        current_health=ch.current_health,
        max_health=ch.max_health,
        attack=ch.base_attack,
        defense=ch.base_defense,
        level=ch.level,
        experience=ch.experience,
    ))


def snapshot_npc(npc: WorldNpc) -> Snapshot:
    return Snapshot(npc.npc_id, npc.version, CombatParticipant(
        current_health=npc.current_health,
        max_health=npc.max_health,
        attack=npc.attack,
        defense=npc.defense,
        level=npc.level,
        is_boss=npc.is_boss,
    ))


def loot_table_for(npc: WorldNpc) -> List[LootEntry]:
    if not npc.loot_table:
        return []
    rows = MonsterLoot.query.filter_by(loot_table=npc.loot_table).order_by(MonsterLoot.id).all()
    return [
        LootEntry(
            item_id=r.item_id or "",
            name=(r.item.display_name or r.item.name) if r.item else "",
            drop_chance=r.drop_chance,
            min_quantity=r.min_quantity,
            max_quantity=r.max_quantity,
            gold_min=r.gold_min,
            gold_max=r.gold_max,
        )
        for r in rows
    ]


def new_seed() -> int:
    return secrets.randbits(63)


def _respawn_due(npc: WorldNpc, now: dt.datetime) -> bool:
    if npc.last_killed_at is None:
        return True
    return now >= npc.last_killed_at + dt.timedelta(minutes=npc.respawn_minutes)


def _ensure_alive(npc: WorldNpc, now: dt.datetime) -> WorldNpc:
    """Respawn a dead monster whose timer ran out; reject one that is still down."""
    if npc.is_active:
        return npc
    if not _respawn_due(npc, now):
        left = npc.last_killed_at + dt.timedelta(minutes=npc.respawn_minutes) - now
        raise MonsterDefeated("This monster was already defeated.",
                              respawnMinutes=max(1, -(-int(left.total_seconds()) // 60)))
    try:
        res = db.session.execute(
            sa.update(WorldNpc)
            .where(WorldNpc.npc_id == npc.npc_id,
                   WorldNpc.version == npc.version,
                   WorldNpc.is_active.is_(False))
            .values(is_active=True, current_health=WorldNpc.max_health, version=WorldNpc.version + 1)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    if res.rowcount:
        logger.info("monster_respawned npc_id=%s", npc.npc_id)
    db.session.refresh(npc)
    return npc


def _character_values(snap: Snapshot, outcome: CombatOutcome) -> Dict:
    values = {"current_health": outcome.attacker_health}
    if outcome.attacker_won:
        values["experience"] = snap.participant.experience + outcome.exp_gained
        values["gold"] = Character.gold + outcome.gold_gained
    lu = outcome.level_up
    if lu is not None:
        values.update(
            level=lu.new_level,
            experience=lu.remaining_experience,
            max_health=lu.new_max_health,
            current_health=lu.new_max_health,
            base_attack=lu.new_attack,
            base_defense=lu.new_defense,
        )
    return values


def _log(outcome: CombatOutcome, attacker_id: str, *, npc_id: Optional[str] = None,
         defender_id: Optional[str] = None, now=None) -> None:
    db.session.add(CombatLog(
        attacker_character_id=attacker_id,
        world_npc_id=npc_id,
        defender_character_id=defender_id,
        winner=outcome.winner.value,
        rounds=outcome.rounds,
        damage_dealt=outcome.damage_dealt,
        damage_taken=outcome.damage_taken,
        gold_gained=outcome.gold_gained,
        experience_gained=outcome.exp_gained,
        seed=outcome.seed,
        created_at=now or travel.utcnow(),
    ))


def commit_monster_fight(attacker: Snapshot, monster: Snapshot, outcome: CombatOutcome,
                         now: Optional[dt.datetime] = None) -> None:
    """Write a resolved PvE fight, or raise with nothing written."""
    now = now or travel.utcnow()
    values = {"current_health": outcome.defender_health, "version": WorldNpc.version + 1}
    if outcome.attacker_won:
        values.update(is_active=False, current_health=0, last_killed_at=now)
    try:
        res = db.session.execute(
            sa.update(WorldNpc)
            .where(WorldNpc.npc_id == monster.row_id,
                   WorldNpc.version == monster.version,
                   WorldNpc.is_active.is_(True))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            db.session.rollback()
            fresh = db.session.get(WorldNpc, monster.row_id, populate_existing=True)
            if fresh is None or not fresh.is_active:
                logger.info("monster_kill_lost npc_id=%s character_id=%s", monster.row_id, attacker.row_id)
                raise MonsterDefeated("Someone else defeated this monster first.")
            raise ContentionFailure("The monster changed in the meantime, try again")

        players.update_character(attacker.row_id, attacker.version, **_character_values(attacker, outcome))
        for drop in outcome.loot:
            players.add_items(attacker.row_id, drop.item_id, drop.quantity)
        _log(outcome, attacker.row_id, npc_id=monster.row_id, now=now)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def attack_monster(character_id: str, npc_id: str, user_id: Optional[str] = None,
                   now=None, seed: Optional[int] = None) -> Dict:
    now = now or travel.utcnow()
    ch = players.get_character(character_id, user_id)
    npc = db.session.get(WorldNpc, npc_id, populate_existing=True)
    if npc is None or npc.entity_type != "monster":
        raise NotFound("Monster not found")

    pos = travel.current_position(ch, now)
    there = (npc.world_x, npc.world_y)
    if not can_interact(pos, there, Interaction.attack, players.balance()):
        raise TooFar("You are too far away to attack.", distance=round(distance(pos, there)))
    if ch.current_health <= 0:
        raise TooWeak("You are too weak to fight. Rest at home first.")
    npc = _ensure_alive(npc, now)

    attacker = snapshot_character(ch)
    monster = snapshot_npc(npc)
    seed = new_seed() if seed is None else seed
    outcome = resolve(attacker.participant, monster.participant, seed,
                      loot_table=loot_table_for(npc), balance=players.balance())
    commit_monster_fight(attacker, monster, outcome, now)

    logger.info("combat_pve character_id=%s npc_id=%s winner=%s rounds=%s seed=%s",
                ch.character_id, npc.npc_id, outcome.winner.value, outcome.rounds, seed)
    out = outcome.as_dict()
    out.update(ok=True, monsterName=npc.name, npc_id=npc.npc_id)
    return out


def _plunder_stacks(character_id: str) -> List[tuple]:
    rows = (
        db.session.query(InventoryItem.item_id, Item.name, InventoryItem.quantity)
        .join(Item, InventoryItem.item_id == Item.item_id)
        .filter(InventoryItem.character_id == character_id, InventoryItem.quantity > 0)
        .order_by(InventoryItem.item_id)
        .all()
    )
    return [tuple(r) for r in rows]


def commit_player_fight(attacker: Snapshot, defender: Snapshot, outcome: CombatOutcome,
                        now: Optional[dt.datetime] = None) -> None:
    now = now or travel.utcnow()
    try:
        players.update_character(attacker.row_id, attacker.version, **_character_values(attacker, outcome))
        players.update_character(defender.row_id, defender.version,
                                 current_health=outcome.defender_health)
        for drop in outcome.loot:
            try:
                players.take_items(defender.row_id, drop.item_id, drop.quantity)
            except NotEnoughItems:
                # spoils were rolled from a stack that shrank since the read
                raise ContentionFailure("The target's inventory changed, try again.",
                                        item_id=drop.item_id) from None
            players.add_items(attacker.row_id, drop.item_id, drop.quantity)
        _log(outcome, attacker.row_id, defender_id=defender.row_id, now=now)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def attack_player(character_id: str, target_id: str, user_id: Optional[str] = None,
                  now=None, seed: Optional[int] = None) -> Dict:
    now = now or travel.utcnow()
    if character_id == target_id:
        raise SelfTarget("You cannot attack yourself.")
    ch = players.get_character(character_id, user_id)
    target = players.get_character(target_id)

    pos = travel.current_position(ch, now)
    there = travel.current_position(target, now)
    b = players.balance()
    if not can_interact(pos, there, Interaction.attack, b):
        raise TooFar("You are too far away to attack.", distance=round(distance(pos, there)))
    if ch.current_health <= 0:
        raise TooWeak("You are too weak to fight. Rest at home first.")
    if target.current_health <= 0:
        raise TargetDefeated(f"{target.name} is already down.")

    attacker = snapshot_character(ch)
    defender = snapshot_character(target)
    seed = new_seed() if seed is None else seed
    outcome = resolve(attacker.participant, defender.participant, seed, balance=b)
    if outcome.attacker_won:
        spoils = plunder(_plunder_stacks(target.character_id), KeyedRNG(seed, "plunder"),
                         b.plunder_stacks, b.plunder_fraction)
        outcome = replace(outcome, loot=tuple(spoils))
    commit_player_fight(attacker, defender, outcome, now)

    logger.info("combat_pvp character_id=%s target_id=%s winner=%s rounds=%s seed=%s",
                ch.character_id, target.character_id, outcome.winner.value, outcome.rounds, seed)
    out = outcome.as_dict()
    out.update(ok=True, targetName=target.name, target_character_id=target.character_id)
    return out


def history(character_id: str, user_id: Optional[str] = None, limit: int = 50) -> List[Dict]:
    players.get_character(character_id, user_id)
    rows: Sequence[CombatLog] = (
        CombatLog.query
        .filter(sa.or_(CombatLog.attacker_character_id == character_id,
                       CombatLog.defender_character_id == character_id))
        .order_by(CombatLog.created_at.desc(), CombatLog.id.desc())
        .limit(max(1, min(limit, 100)))
        .all()
    )
    return [
        {
            "id": r.id,
            "attacker_character_id": r.attacker_character_id,
            "defender_character_id": r.defender_character_id,
            "npc_id": r.world_npc_id,
            "winner": r.winner,
            "rounds": r.rounds,
            "damageDealt": r.damage_dealt,
            "damageTaken": r.damage_taken,
            "goldGained": r.gold_gained,
            "expGained": r.experience_gained,
            "seed": r.seed,
            "created_at": r.created_at.isoformat() + "Z",
        }
        for r in rows
    ]
