from flask import request
from werkzeug.datastructures import CallbackDict


class ServerSession(CallbackDict):
    """
    Per-request view of a stored session.

    Behaves like a dict and tracks modification the same way Flask's cookie
    session does. ``sid`` is None until the session is first persisted.
    Cookie writes are queued and applied to the response by save_session().
    """

    def __init__(self, initial=None, sid=None):
        def on_update(self):
            self.modified = True

        super().__init__(initial, on_update)
        self.sid = sid
        self.modified = False
        self.cookie_issued = False
        self.pending_cookies = []

    def queue_cookie(self, name: str, value: str, **options) -> None:
        self.pending_cookies.append((name, value, options))

    def queued_value(self, name: str):
        """Value of the last cookie queued under this name in the current request."""
        for queued_name, value, _ in reversed(self.pending_cookies):
            if queued_name == name:
                return value
        return None

    def expire_cookie(self, name: str, **options) -> None:
        self.queue_cookie(name, "", expires=0, max_age=0, **options)

    def reset(self) -> None:
        """Drop all data and detach from the current id."""
        self.clear()
        self.sid = None
        self.cookie_issued = False


def open_session(store, cookie_name: str) -> ServerSession:
    """
    Load the session named by the request's cookie.

    An unknown or missing id yields an empty session without an id, so a
    client can never choose the id it will be given.
    """
    sid = request.cookies.get(cookie_name)
    data = store.get(sid) if sid else None
    if data is None:
        return ServerSession()
    return ServerSession(data, sid=sid)


def regenerate_session_id(store, sess: ServerSession) -> str:
    sess.sid = store.regenerate_id(sess.sid, dict(sess))
    return sess.sid


def save_session(store, sess: ServerSession, response, cookie_name: str, cookie_options: dict):
    if sess.modified:
        if sess:
            if not sess.sid:
                sess.sid = store.new_id()
                if not sess.cookie_issued:
                    sess.queue_cookie(cookie_name, sess.sid, **cookie_options)
                    sess.cookie_issued = True
            store.set(sess.sid, dict(sess))
        elif sess.sid:
            store.destroy(sess.sid)
            sess.sid = None
        sess.modified = False

    for name, value, options in sess.pending_cookies:
        response.set_cookie(name, value, **options)
    sess.pending_cookies = []
    return response
