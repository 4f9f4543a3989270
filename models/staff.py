from datetime import datetime
from models.db import db

class StaffMember(db.Model):
    __tablename__ = "staff_members"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    job_title = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    profile_picture = db.Column(db.String(255), nullable=True)

    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = db.relationship("Company", back_populates="staff_members")
    department = db.relationship("Department", back_populates="staff_members")

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "job_title": self.job_title,
            "email": self.email,
            "profile_picture": self.profile_picture,
            "company_id": self.company_id,
            "company": self.company.name if self.company else None,
            "department_id": self.department_id,
            "department": self.department.name if self.department else None,
            "department_color": self.department.color if self.department else None,
        }
