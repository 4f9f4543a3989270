"""
Audit trail for admin actions.

Rows keep a readable name next to the entity id, so a deleted staff member,
department or company can still be identified from the log afterwards.
"""
import json

from flask import request

from models import db
from models.audit_log import AuditLog
from models.company import Company
from models.department import Department
from models.staff import StaffMember

ENTITY_KINDS = {
    StaffMember: "staff",
    Department: "department",
    Company: "company",
}


def entity_label(obj) -> str:
    if isinstance(obj, StaffMember):
        return f"{obj.first_name} {obj.last_name}"
    return obj.name


def audit_target(obj) -> dict:
    """
    entity / entity_id / entity_name for log_event(). Take it before a delete
    is committed; the instance is expired afterwards.
    """
    return {
        "entity": ENTITY_KINDS[type(obj)],
        "entity_id": obj.id,
        "entity_name": entity_label(obj),
    }


def log_event(action: str, username=None, entity=None, entity_id=None, entity_name=None, metadata=None):
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = request.headers.get("User-Agent", "")

    db.session.add(AuditLog(
        username=username,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        entity_name=entity_name[:255] if entity_name else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata) if metadata else None,
    ))
    db.session.commit()
