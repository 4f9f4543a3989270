from datetime import datetime
from models.db import db

class ServerSessionRecord(db.Model):
    __tablename__ = "sessions"

    id = db.Column(db.Integer, primary_key=True)

    # store only hashed session id in DB (never store the raw cookie value)
    sid_hash = db.Column(db.String(128), unique=True, nullable=False, index=True)
    data_json = db.Column(db.Text, nullable=False, default="{}")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
