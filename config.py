import os

from security.auth_config import parse_bool

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name):
    return parse_bool(os.getenv(name))


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as staffdir.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "staffdir.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Admin credentials (hash preferred; plain password is hashed at startup)
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")
    PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "12"))

    # 24 hours session lifetime
    SESSION_LIFETIME = int(os.getenv("SESSION_LIFETIME", "86400"))

    # Slide login_time forward once an hour for active users
    SESSION_UPDATE_INTERVAL = int(os.getenv("SESSION_UPDATE_INTERVAL", "3600"))

    # 30 days cookie lifetime
    COOKIE_LIFETIME = int(os.getenv("COOKIE_LIFETIME", "2592000"))
    COOKIE_PATH = os.getenv("COOKIE_PATH", "/")

    # None = auto-detect from request.is_secure
    USE_SECURE_COOKIES = _env_bool("USE_SECURE_COOKIES")

    # Cookie names (AUTH_ prefix keeps clear of Flask's own SESSION_COOKIE_NAME)
    AUTH_SESSION_COOKIE_NAME = os.getenv("AUTH_SESSION_COOKIE_NAME", "staffdir_session")
    AUTH_CHECK_COOKIE_NAME = os.getenv("AUTH_CHECK_COOKIE_NAME", "auth_check")

    # Login behaviour
    DEFAULT_RETURN_URL = "/admin/index.php"
    LOGIN_TRIGGER_PARAM = "login=required"
    LOGIN_MODAL_FLAG = "show_login"

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")

    # Basic app settings
    APP_NAME = os.getenv("APP_NAME", "Staff Directory")
    DEBUG = False
