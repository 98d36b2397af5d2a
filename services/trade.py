"""Player-to-player item trades.

``initiate`` only checks that both parties stand close enough and shows each
side's inventory. ``execute`` swaps the offered stacks in one transaction:
any missing item rolls the whole exchange back.
"""
import logging
from collections import Counter
from typing import Dict, Iterable, Optional

from app.models import db
from server.errors import SelfTarget, TooFar, ValidationRejection
from server.proximity import Interaction, can_interact, distance
from services import players, travel

logger = logging.getLogger(__name__)


def _parties(character_id: str, target_id: str, user_id: Optional[str], now):
    if character_id == target_id:
        raise SelfTarget("You cannot trade with yourself.")
    me = players.get_character(character_id, user_id)
    other = players.get_character(target_id)
    here = travel.current_position(me, now)
    there = travel.current_position(other, now)
    if not can_interact(here, there, Interaction.trade, players.balance()):
        raise TooFar("You are too far away to trade.", distance=round(distance(here, there)))
    return me, other


def _merge(lines: Iterable) -> Counter:
    totals: Counter = Counter()
    for line in lines:
        totals[line.item_id] += line.quantity
    return totals


def initiate(character_id: str, target_id: str, user_id: Optional[str] = None, now=None) -> Dict:
    me, other = _parties(character_id, target_id, user_id, now)
    logger.info("trade_initiated character_id=%s target_id=%s", me.character_id, other.character_id)
    return {
        "ok": True,
        "target": {"character_id": other.character_id, "name": other.name, "level": other.level},
        "myInventory": players.inventory(me.character_id),
        "targetInventory": players.inventory(other.character_id),
    }


def execute(character_id: str, target_id: str, my_items, target_items,
            user_id: Optional[str] = None, now=None) -> Dict:
    mine = _merge(my_items)
    theirs = _merge(target_items)
    if not mine and not theirs:
        raise ValidationRejection("Nothing to trade", fields=["my_items", "target_items"])
    me, other = _parties(character_id, target_id, user_id, now)

    try:
        for item_id, qty in sorted(mine.items()):
            players.take_items(me.character_id, item_id, qty)
        for item_id, qty in sorted(theirs.items()):
            players.take_items(other.character_id, item_id, qty)
        for item_id, qty in sorted(mine.items()):
            players.add_items(other.character_id, item_id, qty)
        for item_id, qty in sorted(theirs.items()):
            players.add_items(me.character_id, item_id, qty)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("trade_executed character_id=%s target_id=%s gave=%s got=%s",
                me.character_id, other.character_id, dict(mine), dict(theirs))
    return {
        "ok": True,
        "message": "Trade completed",
        "myInventory": players.inventory(me.character_id),
        "targetInventory": players.inventory(other.character_id),
    }
