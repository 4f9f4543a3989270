import re

from flask import Blueprint, g, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from models import db
from models.company import Company
from models.department import DEFAULT_DEPARTMENT_COLOR, Department
from models.staff import StaffMember
from routes.directory import search_staff
from utils.audit import audit_target, log_event
from utils.auth_context import api_login_required, login_required

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

STAFF_FIELDS = ("first_name", "last_name", "company_id", "department_id", "job_title", "email")
HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _text(data, key, max_len=None):
    value = data.get(key)
    if value is None:
        return ""
    value = str(value).strip()
    if max_len is not None:
        value = value[:max_len]
    return value


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def find_staff_duplicate(first_name="", last_name="", email="", exclude_id=None):
    """
    Returns a user-facing message when another staff member already has this
    name (case-insensitive) or email, otherwise None.
    """
    if first_name and last_name:
        q = StaffMember.query.filter(
            func.lower(StaffMember.first_name) == first_name.lower(),
            func.lower(StaffMember.last_name) == last_name.lower(),
        )
        if exclude_id is not None:
            q = q.filter(StaffMember.id != exclude_id)
        if q.first():
            return "A staff member with this name already exists."

    if email:
        q = StaffMember.query.filter(func.lower(StaffMember.email) == email.lower())
        if exclude_id is not None:
            q = q.filter(StaffMember.id != exclude_id)
        if q.first():
            return "This email address is already in use."

    return None


def _staff_from_payload(data, exclude_id=None):
    """
    Validates a staff payload. Returns (fields, None) or (None, (body, status)).
    """
    fields = {
        "first_name": _text(data, "first_name", 80),
        "last_name": _text(data, "last_name", 80),
        "job_title": _text(data, "job_title", 120),
        "email": _text(data, "email", 255).lower(),
        "company_id": _as_int(data.get("company_id")),
        "department_id": _as_int(data.get("department_id")),
        "profile_picture": _text(data, "profile_picture", 255) or None,
    }

    if any(not fields[name] for name in STAFF_FIELDS):
        return None, ({"error": "All fields are required"}, 400)
    if not _is_valid_email(fields["email"]):
        return None, ({"error": "Invalid email"}, 400)
    if db.session.get(Company, fields["company_id"]) is None:
        return None, ({"error": "Unknown company"}, 400)
    if db.session.get(Department, fields["department_id"]) is None:
        return None, ({"error": "Unknown department"}, 400)

    duplicate = find_staff_duplicate(
        fields["first_name"], fields["last_name"], fields["email"], exclude_id=exclude_id
    )
    if duplicate:
        return None, ({"error": duplicate}, 409)

    return fields, None


def _staff_count(column, value) -> int:
    return StaffMember.query.filter(column == value).count()


# ----------------------------------------------------------------------
# dashboard

@admin_bp.get("/")
@admin_bp.get("/index.php")
@login_required
def dashboard():
    return jsonify(
        username=g.admin_username,
        stats={
            "staff": StaffMember.query.count(),
            "departments": Department.query.count(),
            "companies": Company.query.count(),
        },
    ), 200


# ----------------------------------------------------------------------
# staff

@admin_bp.get("/api/staff")
@api_login_required
def admin_list_staff():
    staff, sort, order = search_staff(
        search=(request.args.get("search") or "").strip(),
        department=(request.args.get("department") or "").strip(),
        company=(request.args.get("company") or "").strip(),
        sort=request.args.get("sort") or "last_name",
        order=request.args.get("order") or "asc",
    )
    return jsonify(staff=[s.to_dict() for s in staff], count=len(staff), sort=sort, order=order), 200


@admin_bp.post("/api/staff")
@api_login_required
def admin_create_staff():
    data = request.get_json(silent=True) or {}
    fields, failure = _staff_from_payload(data)
    if failure:
        body, status = failure
        return jsonify(body), status

    staff = StaffMember(**fields)
    db.session.add(staff)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="This email address is already in use."), 409

    log_event("STAFF_CREATE", username=g.admin_username, **audit_target(staff))
    return jsonify(staff.to_dict()), 201


@admin_bp.get("/api/staff/<int:staff_id>")
@api_login_required
def admin_get_staff(staff_id):
    staff = db.get_or_404(StaffMember, staff_id)
    return jsonify(staff.to_dict()), 200


@admin_bp.put("/api/staff/<int:staff_id>")
@api_login_required
def admin_update_staff(staff_id):
    staff = db.get_or_404(StaffMember, staff_id)
    data = request.get_json(silent=True) or {}

    fields, failure = _staff_from_payload(data, exclude_id=staff.id)
    if failure:
        body, status = failure
        return jsonify(body), status

    # keep the current picture unless the payload names a new one
    if fields["profile_picture"] is None:
        fields.pop("profile_picture")
    for key, value in fields.items():
        setattr(staff, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="This email address is already in use."), 409

    log_event("STAFF_UPDATE", username=g.admin_username, **audit_target(staff))
    return jsonify(staff.to_dict()), 200


@admin_bp.delete("/api/staff/<int:staff_id>")
@api_login_required
def admin_delete_staff(staff_id):
    staff = db.get_or_404(StaffMember, staff_id)
    target = audit_target(staff)
    db.session.delete(staff)
    db.session.commit()

    log_event("STAFF_DELETE", username=g.admin_username, **target)
    return jsonify(message="Staff member deleted"), 200


@admin_bp.post("/api/staff/check-duplicate")
@api_login_required
def check_duplicate():
    data = request.get_json(silent=True) or {}
    kind = data.get("type")
    exclude_id = _as_int(data.get("exclude_id"))

    message = None
    if kind == "name":
        message = find_staff_duplicate(
            first_name=_text(data, "first_name"),
            last_name=_text(data, "last_name"),
            exclude_id=exclude_id,
        )
    elif kind == "email":
        message = find_staff_duplicate(email=_text(data, "value"), exclude_id=exclude_id)
    else:
        return jsonify(error="type must be 'name' or 'email'"), 400

    return jsonify(duplicate=message is not None, message=message or ""), 200


# ----------------------------------------------------------------------
# departments

def _department_from_payload(data):
    name = _text(data, "name", 120)
    description = _text(data, "description") or None
    color = _text(data, "color") or DEFAULT_DEPARTMENT_COLOR

    if not name:
        return None, ({"error": "Department name is required"}, 400)
    if not HEX_COLOR.match(color):
        return None, ({"error": "Invalid color. Use #RRGGBB"}, 400)
    return {"name": name, "description": description, "color": color}, None


def _name_taken(model, name, exclude_id=None) -> bool:
    q = model.query.filter(func.lower(model.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    return q.first() is not None


@admin_bp.get("/api/departments")
@api_login_required
def admin_list_departments():
    departments = Department.query.order_by(Department.name.asc()).all()
    return jsonify(departments=[
        d.to_dict(staff_count=_staff_count(StaffMember.department_id, d.id))
        for d in departments
    ]), 200


@admin_bp.post("/api/departments")
@api_login_required
def admin_create_department():
    fields, failure = _department_from_payload(request.get_json(silent=True) or {})
    if failure:
        body, status = failure
        return jsonify(body), status
    if _name_taken(Department, fields["name"]):
        return jsonify(error="A department with this name already exists"), 409

    department = Department(**fields)
    db.session.add(department)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="A department with this name already exists"), 409

    log_event("DEPARTMENT_CREATE", username=g.admin_username, **audit_target(department))
    return jsonify(department.to_dict(staff_count=0)), 201


@admin_bp.put("/api/departments/<int:department_id>")
@api_login_required
def admin_update_department(department_id):
    department = db.get_or_404(Department, department_id)
    fields, failure = _department_from_payload(request.get_json(silent=True) or {})
    if failure:
        body, status = failure
        return jsonify(body), status
    if _name_taken(Department, fields["name"], exclude_id=department.id):
        return jsonify(error="A department with this name already exists"), 409

    for key, value in fields.items():
        setattr(department, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="A department with this name already exists"), 409

    log_event("DEPARTMENT_UPDATE", username=g.admin_username, **audit_target(department))
    return jsonify(department.to_dict(staff_count=_staff_count(StaffMember.department_id, department.id))), 200


@admin_bp.delete("/api/departments/<int:department_id>")
@api_login_required
def admin_delete_department(department_id):
    department = db.get_or_404(Department, department_id)

    staff_count = _staff_count(StaffMember.department_id, department.id)
    if staff_count:
        return jsonify(
            error=f"Cannot delete department because it is assigned to {staff_count} staff member(s).",
            staff_count=staff_count,
        ), 409

    target = audit_target(department)
    db.session.delete(department)
    db.session.commit()

    log_event("DEPARTMENT_DELETE", username=g.admin_username, **target)
    return jsonify(message="Department deleted"), 200


# ----------------------------------------------------------------------
# companies

def _company_from_payload(data):
    name = _text(data, "name", 120)
    if not name:
        return None, ({"error": "Company name is required"}, 400)
    return {
        "name": name,
        "description": _text(data, "description") or None,
        "logo": _text(data, "logo", 255) or None,
    }, None


@admin_bp.get("/api/companies")
@api_login_required
def admin_list_companies():
    companies = Company.query.order_by(Company.name.asc()).all()
    return jsonify(companies=[
        c.to_dict(staff_count=_staff_count(StaffMember.company_id, c.id))
        for c in companies
    ]), 200


@admin_bp.post("/api/companies")
@api_login_required
def admin_create_company():
    fields, failure = _company_from_payload(request.get_json(silent=True) or {})
    if failure:
        body, status = failure
        return jsonify(body), status
    if _name_taken(Company, fields["name"]):
        return jsonify(error="A company with this name already exists"), 409

    company = Company(**fields)
    db.session.add(company)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="A company with this name already exists"), 409

    log_event("COMPANY_CREATE", username=g.admin_username, **audit_target(company))
    return jsonify(company.to_dict(staff_count=0)), 201


@admin_bp.put("/api/companies/<int:company_id>")
@api_login_required
def admin_update_company(company_id):
    company = db.get_or_404(Company, company_id)
    fields, failure = _company_from_payload(request.get_json(silent=True) or {})
    if failure:
        body, status = failure
        return jsonify(body), status
    if _name_taken(Company, fields["name"], exclude_id=company.id):
        return jsonify(error="A company with this name already exists"), 409

    # an omitted logo keeps the current one
    if fields["logo"] is None:
        fields.pop("logo")
    for key, value in fields.items():
        setattr(company, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="A company with this name already exists"), 409

    log_event("COMPANY_UPDATE", username=g.admin_username, **audit_target(company))
    return jsonify(company.to_dict(staff_count=_staff_count(StaffMember.company_id, company.id))), 200


@admin_bp.delete("/api/companies/<int:company_id>")
@api_login_required
def admin_delete_company(company_id):
    company = db.get_or_404(Company, company_id)

    staff_count = _staff_count(StaffMember.company_id, company.id)
    if staff_count:
        return jsonify(
            error=f"Cannot delete company because it is assigned to {staff_count} staff member(s).",
            staff_count=staff_count,
        ), 409

    target = audit_target(company)
    db.session.delete(company)
    db.session.commit()

    log_event("COMPANY_DELETE", username=g.admin_username, **target)
    return jsonify(message="Company deleted"), 200
