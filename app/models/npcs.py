from server.travel import utcnow
from .base import db, Model, gen_uuid


class WorldNpc(Model):
    """NPC store row. Monsters fight; merchants run a shop."""
    __tablename__ = "world_npcs"
    __table_args__ = (
        db.CheckConstraint("current_health >= 0", name="ck_world_npc_health"),
    )

    npc_id = db.Column(db.String(64), primary_key=True, default=gen_uuid)
    name = db.Column(db.String(128), nullable=False)
    entity_type = db.Column(db.String(16), nullable=False, default="monster")  # monster|merchant
    world_x = db.Column(db.Integer, nullable=False)
    world_y = db.Column(db.Integer, nullable=False)

    level = db.Column(db.Integer, nullable=False, default=1)
    current_health = db.Column(db.Integer, nullable=False, default=10)
    max_health = db.Column(db.Integer, nullable=False, default=10)
    attack = db.Column(db.Integer, nullable=False, default=1)
    defense = db.Column(db.Integer, nullable=False, default=0)
    is_boss = db.Column(db.Boolean, nullable=False, default=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    respawn_minutes = db.Column(db.Integer, nullable=False, default=5)
    last_killed_at = db.Column(db.DateTime)
    loot_table = db.Column(db.String(64), index=True)

    # compare-and-set guard for health writes
    version = db.Column(db.Integer, nullable=False, default=0)

    def as_public(self) -> dict:
        return {
            "npc_id": self.npc_id,
            "name": self.name,
            "entity_type": self.entity_type,
            "world_x": self.world_x,
            "world_y": self.world_y,
            "level": self.level,
            "current_health": self.current_health,
            "max_health": self.max_health,
            "is_active": self.is_active,
            "is_boss": self.is_boss,
        }


class MonsterLoot(Model):
    __tablename__ = "monster_loot"

    id = db.Column(db.Integer, primary_key=True)
    loot_table = db.Column(db.String(64), nullable=False, index=True)
    item_id = db.Column(db.String(64), db.ForeignKey("items.item_id"))
    drop_chance = db.Column(db.Float, nullable=False, default=0.0)
    min_quantity = db.Column(db.Integer, nullable=False, default=1)
    max_quantity = db.Column(db.Integer, nullable=False, default=1)
    gold_min = db.Column(db.Integer, nullable=False, default=0)
    gold_max = db.Column(db.Integer, nullable=False, default=0)

    item = db.relationship("Item", lazy="joined")


class ShopItem(Model):
    __tablename__ = "shop_items"
    __table_args__ = (
        db.UniqueConstraint("npc_id", "item_id", name="uq_shop_npc_item"),
    )

    id = db.Column(db.Integer, primary_key=True)
    npc_id = db.Column(db.String(64), db.ForeignKey("world_npcs.npc_id"), nullable=False, index=True)
    item_id = db.Column(db.String(64), db.ForeignKey("items.item_id"), nullable=False)
    buy_price = db.Column(db.Integer)    # what the player pays; NULL = not sold
    sell_price = db.Column(db.Integer)   # what the player gets; NULL = not bought
    stock = db.Column(db.Integer, nullable=False, default=-1)  # -1 = unlimited

    item = db.relationship("Item", lazy="joined")


class CombatLog(Model):
    __tablename__ = "combat_log"

    id = db.Column(db.Integer, primary_key=True)
    attacker_character_id = db.Column(db.String, db.ForeignKey("character.character_id"), nullable=False, index=True)
    world_npc_id = db.Column(db.String(64), db.ForeignKey("world_npcs.npc_id"))
    defender_character_id = db.Column(db.String, db.ForeignKey("character.character_id"))
    winner = db.Column(db.String(16), nullable=False)
    rounds = db.Column(db.Integer, nullable=False)
    damage_dealt = db.Column(db.Integer, nullable=False, default=0)
    damage_taken = db.Column(db.Integer, nullable=False, default=0)
    gold_gained = db.Column(db.Integer, nullable=False, default=0)
    experience_gained = db.Column(db.Integer, nullable=False, default=0)
    seed = db.Column(db.BigInteger, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
