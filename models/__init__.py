from .db import db
from .audit_log import AuditLog
from .session import ServerSessionRecord
from .company import Company
from .department import Department
from .staff import StaffMember
