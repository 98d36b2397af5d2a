"""Read-only terrain lookups for the map view. No login needed."""
from flask import Blueprint, jsonify, request

from server.errors import ValidationRejection
from services import players
from .schemas import TerrainArea, parse

bp = Blueprint("api_map", __name__, url_prefix="/api/map")


@bp.get("/terrain")
def terrain_area():
    area = parse(TerrainArea, request.args.to_dict())
    cap = players.balance().max_terrain_area
    width = area.max_x - area.min_x + 1
    height = area.max_y - area.min_y + 1
    if width > cap or height > cap:
        raise ValidationRejection(f"Area too large, at most {cap}x{cap} tiles",
                                  fields=["min_x", "min_y", "max_x", "max_y"])
    tiles = players.terrain().classify_area(area.min_x, area.min_y, area.max_x, area.max_y)
    return jsonify(
        min_x=area.min_x, min_y=area.min_y, max_x=area.max_x, max_y=area.max_y,
        width=width, height=height,
        tiles=tiles,
    )


@bp.get("/terrain/<int(signed=True):x>/<int(signed=True):y>")
def terrain_tile(x, y):
    field = players.terrain()
    kind = field.classify(x, y)
    return jsonify(x=x, y=y, terrain=kind.value, requiresBoat=field.requires_boat(x, y))
