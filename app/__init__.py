# app/__init__.py
import os
import logging
from flask import Flask, jsonify

from server.config import DEFAULT_BALANCE
from server.errors import ContentionFailure, GameError, InvariantViolation

# Use an alias for the real SQLAlchemy instance to avoid shadowing by a module named "app.db"
from .models.base import db as SA_DB  # <- single SQLAlchemy() instance
from flask_migrate import Migrate
migrate = Migrate()

from .auth import auth_bp, login_manager
from .api_travel import bp as travel_bp
from .api_combat import bp as combat_bp
from .api_trade import bp as trade_bp
from .api_map import bp as map_bp

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask):
    @app.errorhandler(GameError)
    def handle_game_error(e: GameError):
        # services roll back before re-raising; this covers rejections raised before any write
        SA_DB.session.rollback()
        if isinstance(e, InvariantViolation):
            logger.error("invariant_violation code=%s message=%s extra=%r", e.code, e.message, e.extra)
        elif isinstance(e, ContentionFailure):
            logger.warning("contention code=%s message=%s", e.code, e.message)
        else:
            logger.info("rejected code=%s message=%s", e.code, e.message)
        return jsonify(e.as_dict()), e.status


def create_app(config=None):
    app = Flask(__name__)

    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    DB_PATH = os.path.join(BASE_DIR, "app.db")
    DB_URI = os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}")

    app.config.update(
        SECRET_KEY=os.environ.get("SECRET_KEY", "dev"),
        SQLALCHEMY_DATABASE_URI=DB_URI,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SESSION_COOKIE_SAMESITE="Lax",
        AUTO_CREATE_TABLES=os.environ.get("AUTO_CREATE_TABLES", "1") == "1",
        WORLD_SEED=int(os.environ.get("WORLD_SEED", "0")),
        GAME_BALANCE=DEFAULT_BALANCE,
    )
    if config:
        app.config.update(config)

    # Init core extensions with the un-shadowable alias
    SA_DB.init_app(app)
    migrate.init_app(app, SA_DB)
    login_manager.init_app(app)

    # Helpful startup log
    app.logger.setLevel(logging.INFO)
    app.logger.info("DB URI: %s", app.config["SQLALCHEMY_DATABASE_URI"])
    app.logger.info("AUTO_CREATE_TABLES=%s", app.config["AUTO_CREATE_TABLES"])
    app.logger.info("WORLD_SEED=%s", app.config["WORLD_SEED"])

    with app.app_context():
        # Ensure all models are imported so metadata is complete
        from . import models as _models  # noqa: F401

        if app.config["AUTO_CREATE_TABLES"]:
            SA_DB.create_all()

    _register_error_handlers(app)

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(travel_bp)               # /api/game/characters/...
    app.register_blueprint(combat_bp)
    app.register_blueprint(trade_bp)
    app.register_blueprint(map_bp)                  # /api/map/...

    return app
