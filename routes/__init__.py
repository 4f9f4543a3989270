from .health import health_bp
from .auth import auth_bp
from .directory import directory_bp
from .admin import admin_bp
