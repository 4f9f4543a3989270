"""Pytest fixtures for the staff directory backend.

The app is built against an in-memory SQLite database, a MemorySessionStore
and a FakeClock, so session expiry can be tested without sleeping. No app
context is held open while requests run: Flask would reuse it and share `g`
between requests.
"""
import bcrypt
import pytest

from app import create_app
from models import db
from models.company import Company
from models.department import Department
from models.staff import StaffMember
from security.session_store import MemorySessionStore

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct"
# low cost factor keeps the suite fast
ADMIN_PASSWORD_HASH = bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) pytest-browser/1.0"
SESSION_COOKIE = "staffdir_session"
AUTH_CHECK_COOKIE = "auth_check"

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "ADMIN_USERNAME": ADMIN_USERNAME,
    "ADMIN_PASSWORD_HASH": ADMIN_PASSWORD_HASH,
    "LOG_FORMAT": "text",
    "PASSWORD_HASH_ROUNDS": 4,
}


class FakeClock:
    def __init__(self, start=1_700_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemorySessionStore(clock=clock)


@pytest.fixture
def app(store, clock):
    app = create_app(overrides=TEST_CONFIG, session_store=store, clock=clock)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def gate(app):
    return app.extensions["auth_gate"]


@pytest.fixture
def client(app):
    client = app.test_client()
    client.environ_base["HTTP_USER_AGENT"] = USER_AGENT
    return client


def login(client, username=ADMIN_USERNAME, password=ADMIN_PASSWORD, **extra):
    payload = {"username": username, "password": password}
    payload.update(extra)
    return client.post("/auth/login", json=payload)


def session_id(client):
    cookie = client.get_cookie(SESSION_COOKIE)
    return cookie.value if cookie else None


@pytest.fixture
def admin_client(client):
    resp = login(client)
    assert resp.status_code == 200
    return client


@pytest.fixture
def directory(app):
    """Two companies, two departments, three staff members. Returns their ids."""
    with app.app_context():
        acme = Company(name="Acme", description="Widgets")
        globex = Company(name="Globex")
        engineering = Department(name="Engineering", color="#1e88e5")
        sales = Department(name="Sales", color="#ffeb3b")
        db.session.add_all([acme, globex, engineering, sales])
        db.session.flush()

        ada = StaffMember(first_name="Ada", last_name="Lovelace", job_title="Software Engineer",
                          email="ada@acme.test", company_id=acme.id, department_id=engineering.id)
        grace = StaffMember(first_name="Grace", last_name="Hopper", job_title="Compiler Lead",
                            email="grace@globex.test", company_id=globex.id, department_id=engineering.id)
        alan = StaffMember(first_name="Alan", last_name="Turing", job_title="Account Manager",
                           email="alan@acme.test", company_id=acme.id, department_id=sales.id)
        db.session.add_all([ada, grace, alan])
        db.session.commit()

        return {
            "acme": acme.id,
            "globex": globex.id,
            "engineering": engineering.id,
            "sales": sales.id,
            "ada": ada.id,
            "grace": grace.id,
            "alan": alan.id,
        }
