import pytest

from app.schemas import MAX_QUANTITY, MoveRequest, ShopRequest, parse
from server.errors import (
    ContentionFailure, GameError, InvariantViolation, MonsterDefeated, NeedsBoat,
    PolicyRejection, ValidationRejection,
)


def test_error_payload_shape():
    e = NeedsBoat("You need a boat.")
    assert isinstance(e, PolicyRejection)
    assert e.status == 400
    assert e.as_dict() == {"ok": False, "error": "needsBoat", "message": "You need a boat.", "needsBoat": True}


def test_error_extra_fields():
    e = MonsterDefeated("gone", respawnMinutes=3)
    assert e.as_dict()["respawnMinutes"] == 3
    assert e.as_dict()["alreadyDefeated"] is True


def test_statuses():
    assert ContentionFailure("x").status == 409
    assert InvariantViolation("x").status == 500
    assert GameError("x", code="custom").code == "custom"


def test_parse_maps_validation_errors():
    with pytest.raises(ValidationRejection) as e:
        parse(MoveRequest, {"world_x": "north"})
    assert set(e.value.extra["fields"]) == {"world_x", "world_y"}
    assert parse(MoveRequest, {"world_x": "5", "world_y": -2, "extra": 1}).world_x == 5
    assert parse(ShopRequest, {"itemId": "herb", "quantity": 2}).item_id == "herb"
    with pytest.raises(ValidationRejection) as e:
        parse(ShopRequest, {"itemId": "herb", "quantity": MAX_QUANTITY + 1})
    assert e.value.extra["fields"] == ["quantity"]


def test_parse_empty_body():
    with pytest.raises(ValidationRejection):
        parse(MoveRequest, None)


def test_login_and_me(app, world):
    with app.test_client() as client:
        assert client.post("/api/auth/login", json={"email": "nobody@test.io"}).status_code == 404
        assert client.post("/api/auth/login", json={"email": "not-an-email"}).status_code == 400
        r = client.post("/api/auth/login", json={"email": "Hero@Test.io"})
        assert r.status_code == 200
        assert r.get_json()["user_id"] == "u1"
        me = client.get("/api/auth/me").get_json()
        assert me["handle"] == "hero"
        assert set(me) == {"user_id", "email", "handle", "is_active", "created_at", "last_login_at"}


def test_register(app):
    with app.test_client() as client:
        r = client.post("/api/auth/register", json={"email": "new@test.io", "handle": "newbie"})
        assert r.status_code == 201
        r = client.post("/api/auth/register", json={"email": "new@test.io", "handle": "other"})
        assert r.status_code == 409
