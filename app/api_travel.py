"""Character, travel and player-status endpoints under ``/api/game/characters``."""
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from services import players, travel
from .schemas import MoveRequest, parse

bp = Blueprint("api_travel", __name__, url_prefix="/api/game/characters")


def _emit_travel(character_id: str, payload: dict):
    socketio = current_app.extensions.get("socketio")
    if socketio:
        socketio.emit("travel", dict(payload, character_id=character_id))


@bp.get("")
@login_required
def list_characters():
    return jsonify(characters=players.list_characters(current_user.user_id))


@bp.post("")
@login_required
def create_character():
    data = request.get_json(silent=True) or {}
    return jsonify(players.create_character(current_user.user_id, data.get("name"))), 201


@bp.post("/<character_id>/home")
@login_required
def set_home(character_id):
    return jsonify(players.set_home(character_id, current_user.user_id))


@bp.put("/<character_id>/coordinates")
@login_required
def move(character_id):
    body = parse(MoveRequest, request.get_json(silent=True))
    res = travel.move_to(character_id, (body.world_x, body.world_y), current_user.user_id)
    _emit_travel(character_id, res)
    return jsonify(res)


@bp.post("/<character_id>/travel/home")
@login_required
def travel_home(character_id):
    res = travel.travel_home(character_id, current_user.user_id)
    _emit_travel(character_id, res)
    return jsonify(res)


@bp.get("/<character_id>/travel/status")
@login_required
def travel_status(character_id):
    st = travel.status(character_id, current_user.user_id)
    if st.arrived:
        _emit_travel(character_id, st.as_dict())
    return jsonify(st.as_dict())


@bp.post("/<character_id>/travel/cancel")
@login_required
def travel_cancel(character_id):
    res = travel.cancel_travel(character_id, current_user.user_id)
    _emit_travel(character_id, res)
    return jsonify(res)


@bp.get("/<character_id>/stats")
@login_required
def stats(character_id):
    return jsonify(players.get_stats(character_id, current_user.user_id))


@bp.get("/<character_id>/players/nearby")
@login_required
def nearby(character_id):
    return jsonify(players=players.nearby_players(character_id, current_user.user_id))
