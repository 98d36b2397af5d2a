import uuid

# Re-export the application's SQLAlchemy instance
from ..db import db

# Convenience exports
Model = db.Model
metadata = db.metadata


def gen_uuid() -> str:
    return str(uuid.uuid4())
