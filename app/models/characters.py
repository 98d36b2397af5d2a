from server.config import DEFAULT_BALANCE as _B
from server.travel import utcnow
from .base import db, Model, gen_uuid


class Character(Model):
    """Player store row: position, travel columns and combat stats."""
    __tablename__ = "character"
    __table_args__ = (
        db.CheckConstraint("current_health >= 0", name="ck_character_health"),
        db.CheckConstraint("gold >= 0", name="ck_character_gold"),
    )

    character_id = db.Column(db.String, primary_key=True, default=gen_uuid)
    user_id = db.Column(db.String, db.ForeignKey("users.user_id"), nullable=False, index=True)
    name = db.Column(db.String(40), nullable=False, index=True)

    # progression
    level = db.Column(db.Integer, nullable=False, default=1)
    experience = db.Column(db.BigInteger, nullable=False, default=0)
    gold = db.Column(db.Integer, nullable=False, default=0)
    current_health = db.Column(db.Integer, nullable=False, default=_B.health_base)
    max_health = db.Column(db.Integer, nullable=False, default=_B.health_base)
    base_attack = db.Column(db.Integer, nullable=False, default=_B.attack_base)
    base_defense = db.Column(db.Integer, nullable=False, default=_B.defense_base)

    # committed position; also the origin of the journey in flight
    world_x = db.Column(db.Integer, nullable=False, default=0)
    world_y = db.Column(db.Integer, nullable=False, default=0)
    home_x = db.Column(db.Integer)
    home_y = db.Column(db.Integer)

    # journey in flight: all four set, or all NULL
    travel_target_x = db.Column(db.Integer)
    travel_target_y = db.Column(db.Integer)
    travel_start_time = db.Column(db.DateTime)
    travel_end_time = db.Column(db.DateTime, index=True)

    # bumped by every stat/gold write (combat, shop, trade)
    version = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def home(self):
        if self.home_x is None or self.home_y is None:
            return None
        return (self.home_x, self.home_y)

    def as_public(self) -> dict:
        return {
            "character_id": self.character_id,
            "name": self.name,
            "level": self.level,
            "experience": self.experience,
            "gold": self.gold,
            "current_health": self.current_health,
            "max_health": self.max_health,
            "base_attack": self.base_attack,
            "base_defense": self.base_defense,
            "world_x": self.world_x,
            "world_y": self.world_y,
            "home_x": self.home_x,
            "home_y": self.home_y,
        }
