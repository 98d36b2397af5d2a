from .base import db, Model, metadata

# Import model modules so tables register with metadata
from .users import User                      # noqa: F401
from .characters import Character            # noqa: F401
from .items import Item, InventoryItem       # noqa: F401
from .npcs import WorldNpc, MonsterLoot, ShopItem, CombatLog  # noqa: F401

__all__ = [
    "db", "Model", "metadata",
    "User", "Character",
    "Item", "InventoryItem",
    "WorldNpc", "MonsterLoot", "ShopItem", "CombatLog",
]
