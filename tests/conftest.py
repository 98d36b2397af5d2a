import datetime as dt

import pytest

from app import create_app
from app.models import db, User, Character, Item, InventoryItem, WorldNpc, MonsterLoot, ShopItem
import services.players as players_service
import services.travel as travel_service

T0 = dt.datetime(2026, 5, 4, 12, 0, 0)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kw):
        self.now += dt.timedelta(**kw)


class StubTerrain:
    """Land everywhere except the listed water tiles."""

    def __init__(self, water=()):
        self.water = set(water)

    def requires_boat(self, x, y):
        return (x, y) in self.water


WATER = {(0, 300), (5, 5)}


@pytest.fixture
def app():
    app = create_app({"SQLALCHEMY_DATABASE_URI": "sqlite://", "TESTING": True})
    with app.app_context():
        db.drop_all(); db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def clock(monkeypatch):
    c = Clock(T0)
    monkeypatch.setattr(travel_service, "utcnow", c)
    return c


@pytest.fixture
def terrain(monkeypatch):
    t = StubTerrain(WATER)
    monkeypatch.setattr(players_service, "terrain", lambda: t)
    return t


@pytest.fixture
def world(app, clock, terrain):
    u1 = User(user_id="u1", email="hero@test.io", handle="hero")
    u2 = User(user_id="u2", email="rival@test.io", handle="rival")
    db.session.add_all([u1, u2])
    db.session.add_all([
        Character(character_id="c-hero", user_id="u1", name="Hero", world_x=0, world_y=0, gold=100),
        Character(character_id="c-rival", user_id="u2", name="Rival", world_x=10, world_y=0, gold=20),
    ])
    db.session.add_all([
        Item(item_id="boat", name="boat", display_name="Rowing Boat", type="tool"),
        Item(item_id="herb", name="herb", display_name="Healing Herb"),
        Item(item_id="fang", name="fang", display_name="Wolf Fang"),
        Item(item_id="sword", name="sword", display_name="Iron Sword", type="weapon"),
    ])
    db.session.add_all([
        WorldNpc(npc_id="npc-wolf", name="Wolf", entity_type="monster", world_x=50, world_y=0,
                 level=1, current_health=5, max_health=5, attack=1, defense=0,
                 respawn_minutes=5, loot_table="wolf"),
        WorldNpc(npc_id="npc-far", name="Far Wolf", entity_type="monster", world_x=400, world_y=0,
                 level=1, current_health=5, max_health=5, attack=1, defense=0),
        WorldNpc(npc_id="npc-trader", name="Trader", entity_type="merchant", world_x=20, world_y=0),
    ])
    db.session.flush()
    db.session.add(MonsterLoot(loot_table="wolf", item_id="fang", drop_chance=1.0,
                               min_quantity=1, max_quantity=1, gold_min=3, gold_max=3))
    db.session.add_all([
        ShopItem(npc_id="npc-trader", item_id="herb", buy_price=5, sell_price=2, stock=3),
        ShopItem(npc_id="npc-trader", item_id="sword", buy_price=50, sell_price=None, stock=-1),
        ShopItem(npc_id="npc-trader", item_id="fang", buy_price=None, sell_price=4, stock=-1),
    ])
    db.session.add_all([
        InventoryItem(character_id="c-hero", item_id="herb", quantity=4),
        InventoryItem(character_id="c-rival", item_id="fang", quantity=10),
    ])
    db.session.commit()
    return {"hero": "c-hero", "rival": "c-rival", "wolf": "npc-wolf", "trader": "npc-trader"}


@pytest.fixture
def client(app, world):
    with app.test_client() as client:
        r = client.post("/api/auth/login", json={"email": "hero@test.io"})
        assert r.status_code == 200
        yield client


def give(character_id, item_id, quantity=1):
    db.session.add(InventoryItem(character_id=character_id, item_id=item_id, quantity=quantity))
    db.session.commit()


def quantity_of(character_id, item_id):
    row = InventoryItem.query.filter_by(character_id=character_id, item_id=item_id).first()
    return row.quantity if row else 0
