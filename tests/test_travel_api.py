import datetime as dt

import pytest

from app.models import db, Character
from conftest import T0, give
from server.errors import AlreadyTraveling, InvariantViolation
from services import travel


def hero():
    return db.session.get(Character, "c-hero", populate_existing=True)


def test_move_returns_journey(client, clock):
    r = client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 0})
    assert r.status_code == 200
    data = r.get_json()
    assert data["traveling"] is True
    assert data["to"] == {"x": 100, "y": 0}
    assert data["totalDurationMs"] == 120_000
    assert data["travelTime"] == "2 minutes"
    ch = hero()
    assert (ch.world_x, ch.world_y) == (0, 0)
    assert (ch.travel_target_x, ch.travel_target_y) == (100, 0)
    assert ch.travel_end_time == T0 + dt.timedelta(minutes=2)


def test_water_without_boat(client):
    r = client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 0, "world_y": 300})
    assert r.status_code == 400
    data = r.get_json()
    assert data["error"] == "needsBoat"
    assert data["needsBoat"] is True
    assert hero().travel_end_time is None


def test_water_with_boat(client):
    give("c-hero", "boat")
    r = client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 0, "world_y": 300})
    assert r.status_code == 200
    assert r.get_json()["onWater"] is True
    # 300 units at boat speed
    assert r.get_json()["totalDurationMs"] == 225_000


def test_second_move_is_rejected_and_first_kept(client):
    client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 0})
    r = client.put("/api/game/characters/c-hero/coordinates", json={"world_x": -50, "world_y": 0})
    assert r.status_code == 400
    assert r.get_json()["error"] == "alreadyTraveling"
    ch = hero()
    assert (ch.travel_target_x, ch.travel_target_y) == (100, 0)


def test_status_interpolates_then_commits_arrival(client, clock):
    client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 0})
    clock.advance(minutes=1)
    data = client.get("/api/game/characters/c-hero/travel/status").get_json()
    assert data["traveling"] is True
    assert data["position"]["x"] == pytest.approx(50.0)
    assert data["progress"] == 50

    clock.advance(minutes=5)
    data = client.get("/api/game/characters/c-hero/travel/status").get_json()
    assert data["arrived"] is True
    assert data["traveling"] is False
    ch = hero()
    assert (ch.world_x, ch.world_y) == (100, 0)
    assert ch.travel_end_time is None and ch.travel_start_time is None

    data = client.get("/api/game/characters/c-hero/travel/status").get_json()
    assert data == {"traveling": False, "state": "idle", "world_x": 100, "world_y": 0}


def test_cancel_midway_keeps_progress(client, clock):
    client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 0})
    clock.advance(seconds=30)
    r = client.post("/api/game/characters/c-hero/travel/cancel")
    assert r.status_code == 200
    assert (r.get_json()["world_x"], r.get_json()["world_y"]) == (25, 0)
    ch = hero()
    assert (ch.world_x, ch.world_y) == (25, 0)
    assert ch.travel_end_time is None


def test_cancel_while_idle(client):
    r = client.post("/api/game/characters/c-hero/travel/cancel")
    assert r.status_code == 400
    assert r.get_json()["error"] == "notTraveling"


def test_cancel_after_arrival_is_not_traveling(client, clock):
    client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 0})
    clock.advance(minutes=3)
    r = client.post("/api/game/characters/c-hero/travel/cancel")
    assert r.get_json()["error"] == "notTraveling"
    assert (hero().world_x, hero().world_y) == (100, 0)


def test_move_after_arrival_starts_from_destination(client, clock):
    client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 0})
    clock.advance(minutes=3)
    r = client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 50})
    assert r.status_code == 200
    assert r.get_json()["from"] == {"x": 100, "y": 0}


def test_already_there(client):
    r = client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 0, "world_y": 0})
    assert r.get_json()["error"] == "alreadyThere"


@pytest.mark.parametrize("body", [
    {"world_x": "east", "world_y": 0},
    {"world_y": 4},
    {"world_x": 5001, "world_y": 0},
])
def test_bad_coordinates(client, body):
    r = client.put("/api/game/characters/c-hero/coordinates", json=body)
    assert r.status_code == 400
    assert r.get_json()["error"] == "invalid"


def test_travel_home_without_home_goes_to_origin(client, world):
    ch = hero()
    ch.world_x, ch.world_y = 300, 400
    db.session.commit()
    r = client.post("/api/game/characters/c-hero/travel/home")
    assert r.status_code == 200
    assert r.get_json()["to"] == {"x": 0, "y": 0}


def test_travel_home_when_already_home(client):
    r = client.post("/api/game/characters/c-hero/travel/home")
    assert r.get_json()["error"] == "alreadyHome"


def test_set_home_then_travel_home(client, clock):
    client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 100, "world_y": 0})
    clock.advance(minutes=3)
    r = client.post("/api/game/characters/c-hero/home")
    assert r.get_json() == {"ok": True, "home_x": 100, "home_y": 0}
    client.put("/api/game/characters/c-hero/coordinates", json={"world_x": 400, "world_y": 0})
    clock.advance(minutes=10)
    r = client.post("/api/game/characters/c-hero/travel/home")
    assert r.get_json()["to"] == {"x": 100, "y": 0}


def test_someone_elses_character(client):
    r = client.put("/api/game/characters/c-rival/coordinates", json={"world_x": 1, "world_y": 1})
    assert r.status_code == 403
    r = client.get("/api/game/characters/nobody/travel/status")
    assert r.status_code == 404


def test_login_required(app, world):
    with app.test_client() as anon:
        r = anon.get("/api/game/characters/c-hero/travel/status")
        assert r.status_code == 401


def test_claim_fails_when_row_already_has_a_journey(app, world, clock):
    travel.move_to("c-hero", (100, 0))
    ch = hero()
    # a stale reader that still believes the character is idle
    stale = travel.TravelPlanner(travel.players.terrain()).plan_move(
        (0, 0), (0, 80), has_boat=False, now=clock())
    with pytest.raises(AlreadyTraveling):
        travel._claim(ch, stale)
    assert hero().travel_target_y == 0


def test_half_written_journey_is_an_invariant_violation(app, world):
    ch = hero()
    ch.travel_target_x = 5
    db.session.commit()
    with pytest.raises(InvariantViolation):
        travel.status("c-hero")


def test_stats_heal_at_home(client):
    ch = hero()
    ch.current_health = 30
    db.session.commit()
    data = client.get("/api/game/characters/c-hero/stats").get_json()
    assert data["current_health"] == data["max_health"] == 100
    assert data["has_boat"] is False


def test_stats_no_heal_away_from_home(client, clock):
    ch = hero()
    ch.current_health = 30
    ch.world_x = 400
    db.session.commit()
    data = client.get("/api/game/characters/c-hero/stats").get_json()
    assert data["current_health"] == 30


def test_nearby_players(client):
    data = client.get("/api/game/characters/c-hero/players/nearby").get_json()
    assert [p["character_id"] for p in data["players"]] == ["c-rival"]
    assert data["players"][0]["distance"] == 10.0
    assert data["players"][0]["traveling"] is False


def test_nearby_players_places_travellers_in_flight(client, clock):
    travel.move_to("c-rival", (1010, 0))
    clock.advance(minutes=9)
    # 50 tiles a minute from (10, 0)
    [rival] = client.get("/api/game/characters/c-hero/players/nearby").get_json()["players"]
    assert (rival["world_x"], rival["world_y"]) == (460, 0)
    assert rival["distance"] == 460.0
    assert rival["traveling"] is True
    # listing another player never commits their journey
    assert db.session.get(Character, "c-rival", populate_existing=True).world_x == 10

    clock.advance(minutes=1)
    # at (510, 0), past the inspect range, matching what an attack would see
    assert client.get("/api/game/characters/c-hero/players/nearby").get_json()["players"] == []
    r = client.post("/api/game/characters/c-hero/attack/player", json={"target_character_id": "c-rival"})
    assert r.get_json()["error"] == "tooFar"


def test_nearby_players_finds_traveller_heading_into_range(client, clock):
    db.session.get(Character, "c-rival").world_x = 2000
    db.session.commit()
    travel.move_to("c-rival", (0, 10))
    clock.advance(minutes=36)
    # stored origin lies far outside the range; the rival is about 200 tiles out
    [rival] = client.get("/api/game/characters/c-hero/players/nearby").get_json()["players"]
    assert rival["character_id"] == "c-rival"
    assert rival["distance"] <= 500


def test_create_and_list_characters(client):
    r = client.post("/api/game/characters", json={"name": "Scout"})
    assert r.status_code == 201
    assert (r.get_json()["world_x"], r.get_json()["world_y"]) == (0, 0)
    names = [c["name"] for c in client.get("/api/game/characters").get_json()["characters"]]
    assert names == ["Hero", "Scout"]
