from .base import db, Model


class Item(Model):
    __tablename__ = "items"

    item_id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True, index=True)
    display_name = db.Column(db.String(128))
    type = db.Column(db.String(32), nullable=False, default="material")
    rarity = db.Column(db.String(16), nullable=False, default="common")
    description = db.Column(db.Text)


class InventoryItem(Model):
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("character_id", "item_id", name="uq_inventory_character_item"),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    character_id = db.Column(db.String, db.ForeignKey("character.character_id"), nullable=False, index=True)
    item_id = db.Column(db.String(64), db.ForeignKey("items.item_id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    item = db.relationship("Item", lazy="joined")
