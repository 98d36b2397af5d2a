"""Fight endpoints: PvE against world monsters, PvP and the fight history."""
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from services import combat
from .schemas import AttackPlayerRequest, parse

bp = Blueprint("api_combat", __name__, url_prefix="/api/game/characters")


def _emit_combat(character_id: str, result: dict):
    socketio = current_app.extensions.get("socketio")
    if socketio:
        socketio.emit("combat", dict(result, character_id=character_id))


@bp.post("/<character_id>/attack/monster/<npc_id>")
@login_required
def attack_monster(character_id, npc_id):
    res = combat.attack_monster(character_id, npc_id, current_user.user_id)
    _emit_combat(character_id, res)
    return jsonify(res)


@bp.post("/<character_id>/attack/player")
@login_required
def attack_player(character_id):
    body = parse(AttackPlayerRequest, request.get_json(silent=True))
    res = combat.attack_player(character_id, body.target_character_id, current_user.user_id)
    _emit_combat(character_id, res)
    return jsonify(res)


@bp.get("/<character_id>/combat/history")
@login_required
def combat_history(character_id):
    limit = request.args.get("limit", 50, type=int)
    return jsonify(fights=combat.history(character_id, current_user.user_id, limit=limit))
