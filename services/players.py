"""Player store access shared by the travel, combat, shop and trade services.

Reads go through the ORM. Writes that race with other requests are single
conditional UPDATE statements (decrement-with-check, version compare-and-set),
and a zero row count turns into a typed rejection. Callers own the transaction:
they commit on success and roll back on any exception.
"""
import logging
from typing import Dict, List, Optional

import sqlalchemy as sa
from flask import current_app

from app.models import db, Character, InventoryItem, Item
from server.config import BOAT_ITEM_NAME, DEFAULT_BALANCE, START_POS, GameBalance
from server.errors import (
    AlreadyTraveling, ContentionFailure, Forbidden, InvariantViolation, NotEnoughItems, NotFound,
    ValidationRejection,
)
from server.proximity import distance, within_range
from server.terrain import TerrainField, field_for

logger = logging.getLogger(__name__)


def balance() -> GameBalance:
    return current_app.config.get("GAME_BALANCE") or DEFAULT_BALANCE


def terrain() -> TerrainField:
    return field_for(int(current_app.config.get("WORLD_SEED", 0)))


def get_character(character_id: str, user_id: Optional[str] = None) -> Character:
    ch = db.session.get(Character, character_id, populate_existing=True)
    if ch is None or not ch.is_active:
        raise NotFound("Character not found")
    if user_id is not None and ch.user_id != user_id:
        raise Forbidden("That character is not yours")
    if ch.current_health < 0:
        logger.error("invariant_negative_health character_id=%s health=%s", ch.character_id, ch.current_health)
        raise InvariantViolation("Character health is negative")
    return ch


def has_boat(character_id: str) -> bool:
    row = (
        db.session.query(InventoryItem.id)
        .join(Item, InventoryItem.item_id == Item.item_id)
        .filter(InventoryItem.character_id == character_id,
                Item.name == BOAT_ITEM_NAME,
                InventoryItem.quantity > 0)
        .first()
    )
    return row is not None


def inventory(character_id: str) -> List[Dict]:
    rows = (
        InventoryItem.query.join(Item)
        .filter(InventoryItem.character_id == character_id, InventoryItem.quantity > 0)
        .order_by(Item.display_name, Item.name)
        .all()
    )
    return [
        {
            "item_id": r.item_id,
            "name": r.item.name,
            "display_name": r.item.display_name or r.item.name,
            "quantity": r.quantity,
        }
        for r in rows
    ]


def add_items(character_id: str, item_id: str, quantity: int) -> None:
    if quantity <= 0:
        return
    res = db.session.execute(
        sa.update(InventoryItem)
        .where(InventoryItem.character_id == character_id, InventoryItem.item_id == item_id)
        .values(quantity=InventoryItem.quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        db.session.add(InventoryItem(character_id=character_id, item_id=item_id, quantity=quantity))
        try:
            db.session.flush()
        except sa.exc.IntegrityError as e:
            raise ContentionFailure("Inventory changed concurrently, try again") from e


def take_items(character_id: str, item_id: str, quantity: int) -> None:
    """Remove ``quantity`` or raise NotEnoughItems; empty stacks are deleted."""
    res = db.session.execute(
        sa.update(InventoryItem)
        .where(InventoryItem.character_id == character_id,
               InventoryItem.item_id == item_id,
               InventoryItem.quantity >= quantity)
        .values(quantity=InventoryItem.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise NotEnoughItems("Not enough items in the inventory", item_id=item_id)
    db.session.execute(
        sa.delete(InventoryItem)
        .where(InventoryItem.character_id == character_id,
               InventoryItem.item_id == item_id,
               InventoryItem.quantity <= 0)
        .execution_options(synchronize_session=False)
    )


def update_character(character_id: str, seen_version: int, **values) -> None:
    """Compare-and-set on ``character.version``; bumps it on success."""
    res = db.session.execute(
        sa.update(Character)
        .where(Character.character_id == character_id, Character.version == seen_version)
        .values(version=Character.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        logger.warning("character_cas_lost character_id=%s seen_version=%s", character_id, seen_version)
        raise ContentionFailure("Your character changed in the meantime, try again")


def get_stats(character_id: str, user_id: Optional[str] = None, now=None) -> Dict:
    """Stats for the profile panel; resting at home heals to full."""
    from services import travel

    ch = get_character(character_id, user_id)
    pos = travel.current_position(ch, now)
    home = ch.home or (0, 0)
    if ch.current_health < ch.max_health and within_range(pos, home, balance().home_heal_radius):
        res = db.session.execute(
            sa.update(Character)
            .where(Character.character_id == ch.character_id,
                   Character.current_health < Character.max_health)
            .values(current_health=Character.max_health, version=Character.version + 1)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        if res.rowcount:
            logger.info("home_heal character_id=%s", ch.character_id)
        ch = get_character(character_id)
    out = ch.as_public()
    out["position"] = {"x": pos[0], "y": pos[1]}
    out["has_boat"] = has_boat(ch.character_id)
    return out


def nearby_players(character_id: str, user_id: Optional[str] = None, now=None) -> List[Dict]:
    from services import travel

    now = now or travel.utcnow()
    ch = get_character(character_id, user_id)
    pos = travel.current_position(ch, now)
    reach = balance().inspect_range
    # bounding box over the whole journey segment in SQL, exact circle in Python
    to_x = sa.func.coalesce(Character.travel_target_x, Character.world_x)
    to_y = sa.func.coalesce(Character.travel_target_y, Character.world_y)
    rows = (
        Character.query
        .filter(Character.character_id != ch.character_id,
                Character.is_active.is_(True),
                sa.or_(Character.world_x >= pos[0] - reach, to_x >= pos[0] - reach),
                sa.or_(Character.world_x <= pos[0] + reach, to_x <= pos[0] + reach),
                sa.or_(Character.world_y >= pos[1] - reach, to_y >= pos[1] - reach),
                sa.or_(Character.world_y <= pos[1] + reach, to_y <= pos[1] + reach))
        .limit(200)
        .all()
    )
    out = []
    for other in rows:
        there = travel.peek_position(other, now)
        if within_range(pos, there, reach):
            out.append({
                "character_id": other.character_id,
                "name": other.name,
                "level": other.level,
                "world_x": there[0],
                "world_y": there[1],
                "traveling": other.travel_end_time is not None and other.travel_end_time > now,
                "distance": distance(pos, there),
            })
    out.sort(key=lambda p: p["distance"])
    return out[:50]


def list_characters(user_id: str) -> List[Dict]:
    rows = (
        Character.query
        .filter_by(user_id=user_id, is_active=True)
        .order_by(Character.created_at)
        .all()
    )
    return [c.as_public() for c in rows]


def create_character(user_id: str, name: str) -> Dict:
    name = (name or "").strip()
    if not 2 <= len(name) <= 40:
        raise ValidationRejection("Name must be 2-40 characters", fields=["name"])
    b = balance()
    ch = Character(
        user_id=user_id,
        name=name,
        current_health=b.health_base,
        max_health=b.health_base,
        base_attack=b.attack_base,
        base_defense=b.defense_base,
        world_x=START_POS[0],
        world_y=START_POS[1],
    )
    try:
        db.session.add(ch)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("character_created character_id=%s user_id=%s", ch.character_id, user_id)
    return ch.as_public()


def set_home(character_id: str, user_id: Optional[str] = None, now=None) -> Dict:
    """Register where the character stands as home; not while travelling."""
    from services import travel

    ch = get_character(character_id, user_id)
    traveler, _ = travel.settle(ch, now)
    if traveler.journey is not None:
        raise AlreadyTraveling("Finish or cancel your journey first.")
    try:
        update_character(ch.character_id, ch.version,
                         home_x=traveler.position[0], home_y=traveler.position[1])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("home_set character_id=%s at=%s", ch.character_id, traveler.position)
    return {"ok": True, "home_x": traveler.position[0], "home_y": traveler.position[1]}
