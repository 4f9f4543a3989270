"""Login / session-check / logout endpoints end to end."""
from app import create_app
from conftest import ADMIN_PASSWORD, SESSION_COOKIE, TEST_CONFIG, USER_AGENT, login
from models import db
from models.audit_log import AuditLog


def test_login_then_check(client):
    resp = login(client)

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "returnUrl": "/admin/index.php"}
    assert resp.headers["Cache-Control"] == "no-store, no-cache, must-revalidate, max-age=0"

    body = client.get("/auth/check").get_json()
    assert body["logged_in"] is True
    assert isinstance(body["timestamp"], int)


def test_wrong_password_then_check(client):
    resp = login(client, password="wrong")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Invalid username or password"}
    assert client.get_cookie(SESSION_COOKIE) is None
    assert client.get("/auth/check").get_json()["logged_in"] is False


def test_wrong_username_gets_same_message(client):
    resp = login(client, username="administrator")
    assert resp.get_json()["message"] == "Invalid username or password"


def test_logout_then_check(admin_client):
    resp = admin_client.get("/auth/logout")

    assert resp.status_code == 302
    assert resp.headers["Location"] == "/?logout=success"
    assert admin_client.get("/auth/check").get_json()["logged_in"] is False


def test_login_accepts_form_posts(client):
    resp = client.post("/auth/login", data={"username": "admin", "password": ADMIN_PASSWORD})
    assert resp.get_json()["success"] is True


def test_login_requires_both_fields(client):
    resp = client.post("/auth/login", json={"username": "admin"})

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Username and password are required"}


def test_login_keeps_relative_return_url(client):
    resp = login(client, returnUrl="/admin/index.php?tab=companies")
    assert resp.get_json()["returnUrl"] == "/admin/index.php?tab=companies"


def test_login_ignores_offsite_return_url(client):
    for target in ("https://evil.example/", "//evil.example/", "javascript:alert(1)"):
        resp = login(client, returnUrl=target)
        assert resp.get_json()["returnUrl"] == "/admin/index.php"


def test_login_storage_failure_returns_generic_error(client, store, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("disk full at /var/lib/sessions")

    monkeypatch.setattr(store, "regenerate_id", broken)

    resp = login(client)

    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Server error occurred"}
    assert "disk full" not in resp.get_data(as_text=True)
    assert client.get_cookie(SESSION_COOKIE) is None


def test_login_failing_after_session_write_leaves_nothing_stored(client, store, monkeypatch):
    def audit_down(action, **kwargs):
        raise RuntimeError("audit table locked")

    monkeypatch.setattr("routes.auth.log_event", audit_down)

    resp = login(client)

    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Server error occurred"}
    assert len(store) == 0
    assert client.get_cookie(SESSION_COOKIE) is None
    assert client.get("/auth/check").get_json()["logged_in"] is False


def test_login_rejects_get(client):
    resp = client.get("/auth/login")
    assert resp.status_code == 405
    assert "error" in resp.get_json()


def test_check_is_not_cached(client):
    resp = client.get("/auth/check")
    assert resp.headers["Pragma"] == "no-cache"


def test_login_events_are_audited(client, app):
    login(client, password="wrong")
    login(client)
    client.get("/auth/logout")

    with app.app_context():
        actions = [row.action for row in AuditLog.query.order_by(AuditLog.id).all()]
        failed = AuditLog.query.filter_by(action="LOGIN_FAIL").first()

    assert actions == ["LOGIN_FAIL", "LOGIN_SUCCESS", "LOGOUT"]
    assert ADMIN_PASSWORD not in (failed.metadata_json or "")


def test_full_flow_with_database_session_store(clock):
    app = create_app(overrides=TEST_CONFIG, clock=clock)
    with app.app_context():
        db.create_all()

    client = app.test_client()
    client.environ_base["HTTP_USER_AGENT"] = USER_AGENT

    assert login(client).get_json()["success"] is True
    assert client.get("/auth/check").get_json()["logged_in"] is True

    client.get("/auth/logout")
    assert client.get("/auth/check").get_json()["logged_in"] is False

    with app.app_context():
        db.session.remove()
        db.drop_all()
