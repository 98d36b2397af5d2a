import re
from flask import Blueprint, request, jsonify
from flask_login import LoginManager, login_user, logout_user, login_required, current_user

from server.travel import utcnow
from .models import db, User

auth_bp = Blueprint("auth_bp", __name__)
login_manager = LoginManager()

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HANDLE_RE = re.compile(r"^[a-z0-9_]{3,32}$", re.I)


@login_manager.user_loader
def load_user(user_id):  # called by Flask-Login using session cookie
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(ok=False, error="unauthorized", message="Login required.", unauthorized=True), 401


def _user_json(u: User):
    return dict(
        user_id=u.user_id, email=u.email, handle=u.handle, is_active=u.is_active,
        created_at=u.created_at.isoformat(),
        last_login_at=(u.last_login_at.isoformat() if u.last_login_at else None),
    )


@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    handle = (data.get("handle") or "").strip()

    if not EMAIL_RE.match(email): return jsonify(error="Invalid email."), 400
    if not HANDLE_RE.match(handle): return jsonify(error="Handle must be 3-32 letters, digits, underscores."), 400

    if User.query.filter_by(email=email).first():
        return jsonify(error="Email already registered."), 409
    if User.query.filter_by(handle=handle).first():
        return jsonify(error="Handle already taken."), 409

    u = User(email=email, handle=handle, last_login_at=utcnow())
    db.session.add(u)
    db.session.commit()
    login_user(u, remember=True)
    return jsonify(user_id=u.user_id, handle=u.handle), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    if not EMAIL_RE.match(email): return jsonify(error="Invalid email."), 400

    u = User.query.filter_by(email=email).first()
    if not u:
        return jsonify(error="User not found."), 404

    if not u.is_active:
        return jsonify(error="Account disabled."), 403

    login_user(u, remember=True)
    u.last_login_at = utcnow()
    db.session.commit()
    return jsonify(user_id=u.user_id, handle=u.handle), 200


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify(_user_json(current_user)), 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify(ok=True), 200
