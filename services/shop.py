"""Merchant shops: listing, buying and selling.

Gold, stock and inventory move in one transaction. Each side is a guarded
UPDATE (``gold >= total``, ``stock >= quantity``, ``quantity >= n``), so two
concurrent purchases can never spend the same coins or the last item twice.
"""
import logging
from typing import Dict, Optional

import sqlalchemy as sa

from app.models import db, Character, ShopItem, WorldNpc
from server.errors import NotEnoughGold, NotForSale, NotFound, OutOfStock, TooFar
from server.proximity import Interaction, can_interact, distance
from services import players, travel

logger = logging.getLogger(__name__)


def _merchant(npc_id: str) -> WorldNpc:
    npc = db.session.get(WorldNpc, npc_id)
    if npc is None or npc.entity_type != "merchant" or not npc.is_active:
        raise NotFound("Merchant not found")
    return npc


def _check_range(ch: Character, npc: WorldNpc, now) -> None:
    pos = travel.current_position(ch, now)
    there = (npc.world_x, npc.world_y)
    if not can_interact(pos, there, Interaction.shop, players.balance()):
        raise TooFar("You are too far away from the merchant.", distance=round(distance(pos, there)))


def _offer(npc_id: str, item_id: str) -> ShopItem:
    offer = ShopItem.query.filter_by(npc_id=npc_id, item_id=item_id).first()
    if offer is None:
        raise NotForSale("The merchant does not trade this item.")
    return offer


def listing(character_id: str, npc_id: str, user_id: Optional[str] = None, now=None) -> Dict:
    ch = players.get_character(character_id, user_id)
    npc = _merchant(npc_id)
    _check_range(ch, npc, now)
    offers = ShopItem.query.filter_by(npc_id=npc.npc_id).order_by(ShopItem.id).all()
    return {
        "ok": True,
        "merchant": npc.as_public(),
        "gold": ch.gold,
        "items": [
            {
                "item_id": o.item_id,
                "name": o.item.name,
                "display_name": o.item.display_name or o.item.name,
                "buy_price": o.buy_price,
                "sell_price": o.sell_price,
                "stock": o.stock,
            }
            for o in offers
        ],
        "inventory": players.inventory(ch.character_id),
    }


def buy(character_id: str, npc_id: str, item_id: str, quantity: int,
        user_id: Optional[str] = None, now=None) -> Dict:
    ch = players.get_character(character_id, user_id)
    npc = _merchant(npc_id)
    _check_range(ch, npc, now)
    offer = _offer(npc.npc_id, item_id)
    if offer.buy_price is None:
        raise NotForSale("The merchant does not sell this item.")
    total = offer.buy_price * quantity

    try:
        if offer.stock != -1:
            res = db.session.execute(
                sa.update(ShopItem)
                .where(ShopItem.id == offer.id, ShopItem.stock >= quantity)
                .values(stock=ShopItem.stock - quantity)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise OutOfStock("The merchant does not have that many in stock.", stock=offer.stock)
        res = db.session.execute(
            sa.update(Character)
            .where(Character.character_id == ch.character_id, Character.gold >= total)
            .values(gold=Character.gold - total, version=Character.version + 1)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise NotEnoughGold(f"Not enough gold. You need {total}.", needed=total, gold=ch.gold)
        players.add_items(ch.character_id, item_id, quantity)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    db.session.refresh(ch)
    logger.info("shop_buy character_id=%s npc_id=%s item_id=%s qty=%s total=%s",
                ch.character_id, npc.npc_id, item_id, quantity, total)
    return {
        "ok": True,
        "message": f"Bought {quantity}x {offer.item.display_name or offer.item.name} for {total} gold",
        "newGold": ch.gold,
        "inventory": players.inventory(ch.character_id),
    }


def sell(character_id: str, npc_id: str, item_id: str, quantity: int,
         user_id: Optional[str] = None, now=None) -> Dict:
    ch = players.get_character(character_id, user_id)
    npc = _merchant(npc_id)
    _check_range(ch, npc, now)
    offer = _offer(npc.npc_id, item_id)
    if offer.sell_price is None:
        raise NotForSale("The merchant does not buy this item.")
    total = offer.sell_price * quantity

    try:
        players.take_items(ch.character_id, item_id, quantity)
        db.session.execute(
            sa.update(Character)
            .where(Character.character_id == ch.character_id)
            .values(gold=Character.gold + total, version=Character.version + 1)
            .execution_options(synchronize_session=False)
        )
        if offer.stock != -1:
            db.session.execute(
                sa.update(ShopItem)
                .where(ShopItem.id == offer.id, ShopItem.stock != -1)
                .values(stock=ShopItem.stock + quantity)
                .execution_options(synchronize_session=False)
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    db.session.refresh(ch)
    logger.info("shop_sell character_id=%s npc_id=%s item_id=%s qty=%s total=%s",
                ch.character_id, npc.npc_id, item_id, quantity, total)
    return {
        "ok": True,
        "message": f"Sold {quantity}x {offer.item.display_name or offer.item.name} for {total} gold",
        "newGold": ch.gold,
        "inventory": players.inventory(ch.character_id),
    }
