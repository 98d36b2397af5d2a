"""Merchant shops and player-to-player trades."""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from services import shop, trade
from .schemas import ShopRequest, TradeExecuteRequest, TradeInitiateRequest, parse

bp = Blueprint("api_trade", __name__, url_prefix="/api/game/characters")


@bp.get("/<character_id>/npcs/<npc_id>/shop")
@login_required
def shop_listing(character_id, npc_id):
    return jsonify(shop.listing(character_id, npc_id, current_user.user_id))


@bp.post("/<character_id>/npcs/<npc_id>/buy")
@login_required
def shop_buy(character_id, npc_id):
    body = parse(ShopRequest, request.get_json(silent=True))
    return jsonify(shop.buy(character_id, npc_id, body.item_id, body.quantity, current_user.user_id))


@bp.post("/<character_id>/npcs/<npc_id>/sell")
@login_required
def shop_sell(character_id, npc_id):
    body = parse(ShopRequest, request.get_json(silent=True))
    return jsonify(shop.sell(character_id, npc_id, body.item_id, body.quantity, current_user.user_id))


@bp.post("/<character_id>/trade/initiate")
@login_required
def trade_initiate(character_id):
    body = parse(TradeInitiateRequest, request.get_json(silent=True))
    return jsonify(trade.initiate(character_id, body.target_character_id, current_user.user_id))


@bp.post("/<character_id>/trade/execute")
@login_required
def trade_execute(character_id):
    body = parse(TradeExecuteRequest, request.get_json(silent=True))
    return jsonify(trade.execute(character_id, body.target_character_id,
                                 body.my_items, body.target_items, current_user.user_id))
