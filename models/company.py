from datetime import datetime
from models.db import db

class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    logo = db.Column(db.String(255), nullable=True)  # stored filename, uploads handled elsewhere

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    staff_members = db.relationship("StaffMember", back_populates="company")

    def to_dict(self, staff_count=None):
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "logo": self.logo,
        }
        if staff_count is not None:
            data["staff_count"] = staff_count
        return data
