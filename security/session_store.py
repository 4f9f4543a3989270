import hashlib
import json
import secrets
import time
from datetime import datetime, timedelta

from models import db
from models.session import ServerSessionRecord


def _hash_sid(sid: str) -> str:
    # SHA-256 is fine for hashing random session ids
    return hashlib.sha256(sid.encode("utf-8")).hexdigest()


class SessionStore:
    """
    Server-side session storage keyed by the id carried in the session cookie.

    Subclasses implement get/set/destroy/purge_expired; id generation and
    regeneration are shared.
    """

    def new_id(self) -> str:
        return secrets.token_urlsafe(32)

    def get(self, sid: str):
        raise NotImplementedError

    def set(self, sid: str, data: dict) -> None:
        raise NotImplementedError

    def destroy(self, sid: str) -> None:
        raise NotImplementedError

    def purge_expired(self, max_age_seconds: int) -> int:
        raise NotImplementedError

    def regenerate_id(self, old_sid, data: dict) -> str:
        """
        Move data to a fresh id and invalidate the old one. Returns the new id.
        """
        new_sid = self.new_id()
        self.set(new_sid, data)
        if old_sid:
            self.destroy(old_sid)
        return new_sid


class MemorySessionStore(SessionStore):
    """Process-local store. Used by the test-suite and single-worker dev servers."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._items = {}

    def get(self, sid):
        if not sid:
            return None
        item = self._items.get(sid)
        if item is None:
            return None
        return dict(item[1])

    def set(self, sid, data):
        self._items[sid] = (self._clock(), dict(data))

    def destroy(self, sid):
        if sid:
            self._items.pop(sid, None)

    def purge_expired(self, max_age_seconds):
        cutoff = self._clock() - max_age_seconds
        stale = [sid for sid, (touched, _) in self._items.items() if touched < cutoff]
        for sid in stale:
            del self._items[sid]
        return len(stale)

    def __len__(self):
        return len(self._items)

    def __contains__(self, sid):
        return sid in self._items


class SqlSessionStore(SessionStore):
    """
    Stores session data as JSON rows. Only the hash of the session id is
    persisted, so a leaked table cannot be replayed as cookies.
    """

    def get(self, sid):
        if not sid:
            return None
        row = ServerSessionRecord.query.filter_by(sid_hash=_hash_sid(sid)).first()
        if not row:
            return None
        try:
            data = json.loads(row.data_json or "{}")
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def set(self, sid, data):
        sid_hash = _hash_sid(sid)
        row = ServerSessionRecord.query.filter_by(sid_hash=sid_hash).first()
        if not row:
            row = ServerSessionRecord(sid_hash=sid_hash)
            db.session.add(row)
        row.data_json = json.dumps(data)
        row.updated_at = datetime.utcnow()
        db.session.commit()

    def destroy(self, sid):
        if not sid:
            return
        ServerSessionRecord.query.filter_by(sid_hash=_hash_sid(sid)).delete()
        db.session.commit()

    def purge_expired(self, max_age_seconds):
        cutoff = datetime.utcnow() - timedelta(seconds=max_age_seconds)
        count = ServerSessionRecord.query.filter(ServerSessionRecord.updated_at < cutoff).delete()
        db.session.commit()
        return count
