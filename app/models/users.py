from flask_login import UserMixin

from server.travel import utcnow
from .base import db, Model, gen_uuid


class User(Model, UserMixin):
    __tablename__ = "users"

    user_id = db.Column(db.String, primary_key=True, default=gen_uuid)
    email = db.Column(db.String, unique=True, nullable=False, index=True)
    handle = db.Column(db.String, unique=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime)

    characters = db.relationship(
        "Character", backref="user", lazy="dynamic", foreign_keys="Character.user_id"
    )

    def get_id(self):
        return self.user_id
