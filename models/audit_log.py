from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    """One admin or login event. Directory rows are referenced by id and name, not by foreign key."""
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(120), nullable=True, index=True)  # empty for failed logins
    action = db.Column(db.String(80), nullable=False, index=True)  # LOGIN_FAIL, STAFF_DELETE, ...
    entity = db.Column(db.String(20), nullable=True)  # staff, department or company
    entity_id = db.Column(db.String(20), nullable=True)
    entity_name = db.Column(db.String(255), nullable=True)  # "Ada Lovelace", "Engineering"

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
