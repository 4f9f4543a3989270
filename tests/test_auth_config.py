"""AuthConfig built from Flask config values."""
import pytest

from app import create_app
from conftest import ADMIN_PASSWORD, ADMIN_PASSWORD_HASH, SESSION_COOKIE, TEST_CONFIG, USER_AGENT, login
from models import db
from security.auth_config import AuthConfig, parse_bool
from security.password import verify_password


@pytest.mark.parametrize("value,expected", [
    (None, None),
    ("", None),
    ("  ", None),
    ("true", True),
    ("TRUE", True),
    (" True ", True),
    ("false", False),
    ("no", False),
    (True, True),
    (False, False),
])
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


def test_string_secure_cookie_override_is_parsed():
    base = {"ADMIN_PASSWORD_HASH": ADMIN_PASSWORD_HASH}

    assert AuthConfig.from_mapping(dict(base, USE_SECURE_COOKIES="false")).secure_cookies is False
    assert AuthConfig.from_mapping(dict(base, USE_SECURE_COOKIES="true")).secure_cookies is True
    assert AuthConfig.from_mapping(dict(base, USE_SECURE_COOKIES="")).secure_cookies is None


def test_plain_admin_password_is_hashed_at_startup():
    config = AuthConfig.from_mapping({"ADMIN_PASSWORD": "letmein", "PASSWORD_HASH_ROUNDS": 4})

    assert config.admin_password_hash.startswith("$2b$04$")
    assert verify_password("letmein", config.admin_password_hash)


def test_malformed_admin_hash_is_rejected():
    with pytest.raises(ValueError, match="not a bcrypt hash"):
        AuthConfig.from_mapping({"ADMIN_PASSWORD_HASH": "5f4dcc3b5aa765d61d8327deb882cf99"})


def test_cookie_names_can_be_overridden(store, clock):
    overrides = dict(TEST_CONFIG, AUTH_SESSION_COOKIE_NAME="dir_admin", AUTH_CHECK_COOKIE_NAME="dir_check")
    app = create_app(overrides=overrides, session_store=store, clock=clock)
    with app.app_context():
        db.create_all()

    client = app.test_client()
    client.environ_base["HTTP_USER_AGENT"] = USER_AGENT

    assert login(client).status_code == 200
    assert client.get_cookie("dir_admin") is not None
    assert client.get_cookie("dir_check") is not None
    assert client.get_cookie(SESSION_COOKIE) is None
    assert client.get("/auth/check").get_json()["logged_in"] is True

    with app.app_context():
        db.session.remove()
        db.drop_all()


def test_insecure_string_override_drops_secure_flag_over_https(store, clock):
    app = create_app(overrides=dict(TEST_CONFIG, USE_SECURE_COOKIES="false"), session_store=store, clock=clock)
    with app.app_context():
        db.create_all()

    client = app.test_client()
    client.environ_base["HTTP_USER_AGENT"] = USER_AGENT

    resp = client.post(
        "/auth/login",
        json={"username": "admin", "password": ADMIN_PASSWORD},
        base_url="https://localhost",
    )

    cookies = resp.headers.getlist("Set-Cookie")
    assert cookies
    assert not any("; Secure" in cookie for cookie in cookies)

    with app.app_context():
        db.session.remove()
        db.drop_all()
