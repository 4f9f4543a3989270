import hashlib
import hmac
import logging
import secrets
import time
from urllib.parse import quote_plus

from flask import after_this_request, current_app, g, jsonify, redirect, request

from security.auth_config import CACHE_CONTROL_HEADER, PRAGMA_HEADER, AuthConfig
from security.password import verify_password
from security.session import ServerSession, open_session, regenerate_session_id, save_session
from security.session_store import SessionStore

logger = logging.getLogger(__name__)


def derive_auth_check_value(auth_token: str, user_agent: str) -> str:
    """
    Value of the auth-check cookie: sha256(auth_token + user_agent).

    This binds a session to the browser that opened it. It is a heuristic,
    not a guarantee: anyone who steals both cookies and copies the
    User-Agent header passes the check.
    """
    return hashlib.sha256((auth_token + user_agent).encode("utf-8")).hexdigest()


def apply_no_cache(resp):
    resp.headers["Cache-Control"] = CACHE_CONTROL_HEADER
    resp.headers["Pragma"] = PRAGMA_HEADER
    return resp


def is_ajax_request() -> bool:
    return (request.headers.get("X-Requested-With") or "").lower() == "xmlhttprequest"


def current_gate() -> "AuthGate":
    return current_app.extensions["auth_gate"]


class AuthGate:
    """
    Session-based gate in front of the admin area.

    Two states only: anonymous and authenticated. login() moves a session to
    authenticated; expiry, a failed hijack check or logout() move it back.
    """

    def __init__(self, config: AuthConfig, store: SessionStore, clock=time.time):
        self.config = config
        self.store = store
        self.clock = clock

    def init_app(self, app):
        app.extensions["auth_gate"] = self
        app.after_request(self._persist_session)
        app.teardown_request(self._drop_session)

    # ------------------------------------------------------------------
    # request plumbing

    @property
    def session(self) -> ServerSession:
        sess = g.get("auth_session")
        if sess is None:
            sess = open_session(self.store, self.config.session_cookie_name)
            g.auth_session = sess
        return sess

    def _now(self) -> int:
        return int(self.clock())

    def _user_agent(self) -> str:
        return request.headers.get("User-Agent", "")

    def _secure(self) -> bool:
        if self.config.secure_cookies is None:
            return request.is_secure
        return bool(self.config.secure_cookies)

    def cookie_options(self) -> dict:
        return {
            "path": self.config.cookie_path,
            "secure": self._secure(),
            "httponly": True,
            "samesite": "Lax",
        }

    def _persist_session(self, response):
        sess = g.pop("auth_session", None)
        if sess is None:
            return response
        return save_session(
            self.store,
            sess,
            response,
            self.config.session_cookie_name,
            self.cookie_options(),
        )

    def _drop_session(self, exc=None):
        g.pop("auth_session", None)

    def login_redirect_url(self) -> str:
        request_uri = request.full_path if request.query_string else request.path
        return "/?%s&return=%s" % (self.config.login_trigger_param, quote_plus(request_uri))

    # ------------------------------------------------------------------
    # operations

    def verify_credentials(self, username, password) -> bool:
        if not isinstance(username, str) or not isinstance(password, str):
            return False

        username_ok = hmac.compare_digest(
            username.encode("utf-8"),
            self.config.admin_username.encode("utf-8"),
        )
        # always run bcrypt so a wrong username costs the same as a wrong password
        password_ok = verify_password(password, self.config.admin_password_hash)
        return username_ok and password_ok

    def login(self, username: str) -> None:
        """
        Establish an authenticated session. Credentials must already be verified.
        """
        sess = self.session
        sess.clear()

        now = self._now()
        user_agent = self._user_agent()
        auth_token = secrets.token_hex(32)

        sess.update(
            user_logged_in=True,
            username=username,
            login_time=now,
            last_activity=now,
            ip_address=request.headers.get("X-Forwarded-For", request.remote_addr) or "",
            user_agent=user_agent,
            auth_token=auth_token,
        )

        regenerate_session_id(self.store, sess)
        sess.cookie_issued = True

        options = self.cookie_options()
        sess.queue_cookie(
            self.config.session_cookie_name,
            sess.sid,
            max_age=self.config.cookie_lifetime,
            **options,
        )
        sess.queue_cookie(
            self.config.auth_check_cookie_name,
            derive_auth_check_value(auth_token, user_agent),
            max_age=self.config.cookie_lifetime,
            **options,
        )

    def is_authenticated(self) -> bool:
        sess = self.session
        if not sess:
            return False

        login_time = sess.get("login_time")
        if not isinstance(login_time, (int, float)) or isinstance(login_time, bool):
            return False

        now = self._now()
        if now - login_time > self.config.session_lifetime:
            logger.info("Admin session expired for %s", sess.get("username") or "-")
            self.logout()
            return False

        if sess.get("user_logged_in") is not True or not sess.get("username"):
            return False

        auth_token = sess.get("auth_token")
        stored_agent = sess.get("user_agent")
        if auth_token is not None and stored_agent is not None:
            current_agent = self._user_agent()
            # a cookie issued earlier in this request is not in request.cookies yet
            cookie_value = sess.queued_value(self.config.auth_check_cookie_name)
            if cookie_value is None:
                cookie_value = request.cookies.get(self.config.auth_check_cookie_name)
            expected = derive_auth_check_value(auth_token, current_agent)

            if cookie_value is None or not hmac.compare_digest(
                cookie_value.encode("utf-8"), expected.encode("utf-8")
            ):
                logger.warning("Auth check cookie mismatch for %s, destroying session", sess.get("username"))
                self.logout()
                return False

            if stored_agent != current_agent:
                logger.warning("User agent changed for %s, destroying session", sess.get("username"))
                self.logout()
                return False

        # sliding renewal
        if now - login_time > self.config.session_update_interval:
            sess["login_time"] = now

        return True

    def require_authenticated(self, is_ajax: bool = False):
        """
        Returns None when the request may proceed, otherwise the response that
        ends it (JSON for AJAX callers, a redirect to the login modal for pages).
        """
        if not self.is_authenticated():
            self.logout()
            target = self.login_redirect_url()

            if is_ajax or is_ajax_request():
                resp = jsonify(success=False, logged_in=False, redirect=target)
                resp.status_code = 401
                return apply_no_cache(resp)

            self.session[self.config.login_modal_flag] = True
            return apply_no_cache(redirect(target))

        self.session["last_activity"] = self._now()
        after_this_request(apply_no_cache)
        return None

    def discard(self) -> None:
        """
        Abandon this request's session after a failure.

        The stored record is destroyed as well, since login() writes the
        authenticated session under its new id before the response exists.
        Queued cookies are dropped, so the browser keeps whatever it had.
        """
        sess = g.pop("auth_session", None)
        if sess is not None and sess.sid:
            self.store.destroy(sess.sid)

    def logout(self) -> None:
        sess = self.session
        if sess.sid:
            self.store.destroy(sess.sid)
        sess.reset()

        options = self.cookie_options()
        sess.expire_cookie(self.config.session_cookie_name, **options)
        sess.expire_cookie(self.config.auth_check_cookie_name, **options)

        # second clear without the secure flag, in case the cookies were set over plain http
        alternate = dict(options, secure=False)
        sess.expire_cookie(self.config.session_cookie_name, **alternate)
        sess.expire_cookie(self.config.auth_check_cookie_name, **alternate)
