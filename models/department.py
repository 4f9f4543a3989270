from datetime import datetime
from models.db import db

DEFAULT_DEPARTMENT_COLOR = "#6c757d"


def text_contrast_class(hex_color: str) -> str:
    """
    Pick the text class readable on top of a department badge colour.
    """
    hex_value = (hex_color or DEFAULT_DEPARTMENT_COLOR).lstrip("#")
    try:
        r = int(hex_value[0:2], 16)
        g = int(hex_value[2:4], 16)
        b = int(hex_value[4:6], 16)
    except ValueError:
        return "light-text"

    luminance = (r * 299 + g * 587 + b * 114) / 1000
    return "dark-text" if luminance > 190 else "light-text"


class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    color = db.Column(db.String(7), nullable=False, default=DEFAULT_DEPARTMENT_COLOR)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    staff_members = db.relationship("StaffMember", back_populates="department")

    def to_dict(self, staff_count=None):
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "text_class": text_contrast_class(self.color),
        }
        if staff_count is not None:
            data["staff_count"] = staff_count
        return data
