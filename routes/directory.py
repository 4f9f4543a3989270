from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_

from models import db
from models.company import Company
from models.department import Department
from models.staff import StaffMember
from security.auth_gate import current_gate

directory_bp = Blueprint("directory", __name__)

SORT_FIELDS = {
    "first_name": StaffMember.first_name,
    "last_name": StaffMember.last_name,
    "department": Department.name,
    "company": Company.name,
    "job_title": StaffMember.job_title,
    "email": StaffMember.email,
    "id": StaffMember.id,
}
DEFAULT_SORT = "last_name"


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def staff_query():
    return (
        StaffMember.query
        .join(Department, StaffMember.department_id == Department.id)
        .join(Company, StaffMember.company_id == Company.id)
    )


def search_staff(search="", department="", company="", sort=DEFAULT_SORT, order="asc"):
    """
    Filtered, sorted staff listing. Unknown sort fields or orders fall back
    to last_name / asc.
    """
    if sort not in SORT_FIELDS:
        sort = DEFAULT_SORT
    order = (order or "").lower()
    if order not in ("asc", "desc"):
        order = "asc"

    query = staff_query()

    if search:
        pattern = _like_pattern(search)
        query = query.filter(or_(
            StaffMember.first_name.ilike(pattern, escape="\\"),
            StaffMember.last_name.ilike(pattern, escape="\\"),
            StaffMember.job_title.ilike(pattern, escape="\\"),
        ))
    if department:
        query = query.filter(Department.name == department)
    if company:
        query = query.filter(Company.name == company)

    column = SORT_FIELDS[sort]
    query = query.order_by(column.desc() if order == "desc" else column.asc(), StaffMember.id.asc())
    return query.all(), sort, order


@directory_bp.get("/")
def home():
    gate = current_gate()
    show_login = bool(gate.session.pop(gate.config.login_modal_flag, False))

    return jsonify(
        name=current_app.config.get("APP_NAME", "Staff Directory"),
        logged_in=gate.is_authenticated(),
        show_login=show_login,
        login_required=request.args.get("login") == "required",
        return_url=request.args.get("return"),
        logout=request.args.get("logout") == "success",
    ), 200


@directory_bp.get("/api/staff")
def list_staff():
    staff, sort, order = search_staff(
        search=(request.args.get("search") or "").strip(),
        department=(request.args.get("department") or "").strip(),
        company=(request.args.get("company") or "").strip(),
        sort=request.args.get("sort") or DEFAULT_SORT,
        order=request.args.get("order") or "asc",
    )
    return jsonify(
        staff=[s.to_dict() for s in staff],
        count=len(staff),
        sort=sort,
        order=order,
    ), 200


@directory_bp.get("/api/staff/<int:staff_id>")
def get_staff(staff_id):
    staff = db.get_or_404(StaffMember, staff_id)
    return jsonify(staff.to_dict()), 200


@directory_bp.get("/api/departments")
def list_departments():
    departments = Department.query.order_by(Department.name.asc()).all()
    return jsonify(departments=[d.to_dict() for d in departments]), 200


@directory_bp.get("/api/companies")
def list_companies():
    companies = Company.query.order_by(Company.name.asc()).all()
    return jsonify(companies=[c.to_dict() for c in companies]), 200


@directory_bp.get("/api/departments/by-company")
def departments_by_company():
    company = (request.args.get("company") or "").strip()
    if not company:
        return jsonify(success=True, departments=[]), 200

    departments = (
        Department.query
        .join(StaffMember, StaffMember.department_id == Department.id)
        .join(Company, StaffMember.company_id == Company.id)
        .filter(Company.name == company)
        .distinct()
        .order_by(Department.name.asc())
        .all()
    )
    return jsonify(success=True, departments=[d.to_dict() for d in departments]), 200


@directory_bp.get("/api/companies/by-department")
def companies_by_department():
    department = (request.args.get("department") or "").strip()
    if not department:
        return jsonify(success=True, companies=[]), 200

    companies = (
        Company.query
        .join(StaffMember, StaffMember.company_id == Company.id)
        .join(Department, StaffMember.department_id == Department.id)
        .filter(Department.name == department)
        .distinct()
        .order_by(Company.name.asc())
        .all()
    )
    return jsonify(success=True, companies=[c.to_dict() for c in companies]), 200
