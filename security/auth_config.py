from dataclasses import dataclass
from typing import Optional

from security.password import DEFAULT_ROUNDS, hash_password, is_bcrypt_hash

CACHE_CONTROL_HEADER = "no-store, no-cache, must-revalidate, max-age=0"
PRAGMA_HEADER = "no-cache"


def parse_bool(value) -> Optional[bool]:
    """
    Three-state flag: None when unset or blank, otherwise True only for "true"
    (any case). Real booleans pass through, so app config overrides may use either.
    """
    if value is None or isinstance(value, bool):
        return value
    value = str(value).strip()
    if not value:
        return None
    return value.lower() == "true"


@dataclass(frozen=True)
class AuthConfig:
    """
    Settings for the admin session gate.

    secure_cookies=None means "follow the request": cookies get the Secure
    flag only when the request arrived over HTTPS.
    """
    admin_username: str
    admin_password_hash: str
    session_lifetime: int = 86400
    session_update_interval: int = 3600
    cookie_lifetime: int = 2592000
    cookie_path: str = "/"
    secure_cookies: Optional[bool] = None
    session_cookie_name: str = "staffdir_session"
    auth_check_cookie_name: str = "auth_check"
    default_return_url: str = "/admin/index.php"
    login_trigger_param: str = "login=required"
    login_modal_flag: str = "show_login"

    @classmethod
    def from_mapping(cls, config) -> "AuthConfig":
        password_hash = config.get("ADMIN_PASSWORD_HASH")
        if not password_hash:
            password_hash = hash_password(
                config.get("ADMIN_PASSWORD") or "admin",
                rounds=int(config.get("PASSWORD_HASH_ROUNDS", DEFAULT_ROUNDS)),
            )
        elif not is_bcrypt_hash(password_hash):
            raise ValueError("ADMIN_PASSWORD_HASH is not a bcrypt hash; create one with `flask hash-password`")

        return cls(
            admin_username=config.get("ADMIN_USERNAME", "admin"),
            admin_password_hash=password_hash,
            session_lifetime=int(config.get("SESSION_LIFETIME", 86400)),
            session_update_interval=int(config.get("SESSION_UPDATE_INTERVAL", 3600)),
            cookie_lifetime=int(config.get("COOKIE_LIFETIME", 2592000)),
            cookie_path=config.get("COOKIE_PATH", "/"),
            secure_cookies=parse_bool(config.get("USE_SECURE_COOKIES")),
            session_cookie_name=config.get("AUTH_SESSION_COOKIE_NAME", "staffdir_session"),
            auth_check_cookie_name=config.get("AUTH_CHECK_COOKIE_NAME", "auth_check"),
            default_return_url=config.get("DEFAULT_RETURN_URL", "/admin/index.php"),
            login_trigger_param=config.get("LOGIN_TRIGGER_PARAM", "login=required"),
            login_modal_flag=config.get("LOGIN_MODAL_FLAG", "show_login"),
        )
