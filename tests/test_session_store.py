from datetime import datetime, timedelta

from models import db
from models.session import ServerSessionRecord
from security.session_store import MemorySessionStore, SqlSessionStore


def test_memory_store_returns_copies(store):
    sid = store.new_id()
    store.set(sid, {"username": "admin"})

    data = store.get(sid)
    data["username"] = "mallory"

    assert store.get(sid) == {"username": "admin"}


def test_memory_store_unknown_id(store):
    assert store.get("nope") is None
    assert store.get(None) is None
    store.destroy("nope")


def test_regenerate_id_moves_data(store):
    old = store.new_id()
    store.set(old, {"a": 1})

    new = store.regenerate_id(old, {"a": 2})

    assert new != old
    assert store.get(old) is None
    assert store.get(new) == {"a": 2}


def test_memory_store_purges_idle_sessions(clock):
    store = MemorySessionStore(clock=clock)
    store.set("old", {"a": 1})
    clock.advance(100)
    store.set("fresh", {"a": 2})

    assert store.purge_expired(50) == 1
    assert "old" not in store
    assert "fresh" in store


def test_sql_store_round_trip(app):
    store = SqlSessionStore()
    with app.app_context():
        sid = store.new_id()
        store.set(sid, {"username": "admin", "login_time": 1})
        store.set(sid, {"username": "admin", "login_time": 2})

        assert store.get(sid) == {"username": "admin", "login_time": 2}
        assert ServerSessionRecord.query.count() == 1

        store.destroy(sid)
        assert store.get(sid) is None


def test_sql_store_never_persists_raw_id(app):
    store = SqlSessionStore()
    with app.app_context():
        sid = store.new_id()
        store.set(sid, {"x": 1})
        row = ServerSessionRecord.query.one()
        assert row.sid_hash != sid
        assert sid not in row.data_json


def test_sql_store_regenerate_and_purge(app):
    store = SqlSessionStore()
    with app.app_context():
        old = store.new_id()
        store.set(old, {"x": 1})
        new = store.regenerate_id(old, {"x": 1})
        assert store.get(old) is None
        assert store.get(new) == {"x": 1}

        stale = store.new_id()
        store.set(stale, {"y": 1})
        row = ServerSessionRecord.query.filter(ServerSessionRecord.data_json.contains('"y"')).one()
        row.updated_at = datetime.utcnow() - timedelta(days=2)
        db.session.commit()

        assert store.purge_expired(86400) == 1
        assert store.get(stale) is None
        assert store.get(new) == {"x": 1}


def test_sql_store_ignores_corrupt_rows(app):
    store = SqlSessionStore()
    with app.app_context():
        sid = store.new_id()
        store.set(sid, {"x": 1})
        row = ServerSessionRecord.query.one()
        row.data_json = "{not json"
        db.session.commit()

        assert store.get(sid) is None
