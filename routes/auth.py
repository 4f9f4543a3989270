import logging

from flask import Blueprint, current_app, jsonify, redirect, request

from models import db
from security.auth_gate import apply_no_cache, current_gate
from utils.audit import log_event

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _safe_return_url(value, default: str) -> str:
    # only site-relative paths, never another host
    if not isinstance(value, str) or not value.startswith("/") or value.startswith("//"):
        return default
    if "\\" in value or "\r" in value or "\n" in value:
        return default
    return value


@auth_bp.post("/login")
def login():
    gate = current_gate()
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = request.form

        username = data.get("username")
        password = data.get("password")
        if not username or not password:
            logger.warning("Login request without username or password")
            resp = jsonify(success=False, message="Username and password are required")
            resp.status_code = 400
            return apply_no_cache(resp)

        return_url = _safe_return_url(data.get("returnUrl"), gate.config.default_return_url)

        if not gate.verify_credentials(username, password):
            logger.warning("Login failed for user %s", username)
            log_event("LOGIN_FAIL", metadata={"username": str(username)[:120]})
            resp = jsonify(success=False, message="Invalid username or password")
            resp.status_code = 401
            return apply_no_cache(resp)

        gate.login(username)
        logger.info("Login successful for user %s", username)
        log_event("LOGIN_SUCCESS", username=username)
        return apply_no_cache(jsonify(success=True, returnUrl=return_url))

    except Exception:
        db.session.rollback()
        logger.exception("Unexpected error while processing login")
        try:
            gate.discard()
        except Exception:
            logger.exception("Could not remove the session of a failed login")
        resp = jsonify(success=False, message="Server error occurred")
        resp.status_code = 500
        return apply_no_cache(resp)


@auth_bp.get("/check")
def check_login():
    gate = current_gate()
    logged_in = gate.is_authenticated()
    resp = jsonify(logged_in=logged_in, timestamp=int(gate.clock()))
    return apply_no_cache(resp)


@auth_bp.get("/logout")
def logout():
    gate = current_gate()
    username = gate.session.get("username")

    gate.logout()
    if username:
        log_event("LOGOUT", username=username)

    resp = redirect(current_app.config.get("LOGOUT_REDIRECT_URL", "/?logout=success"))
    resp.headers["Expires"] = "Thu, 01 Jan 1970 00:00:00 GMT"
    return apply_no_cache(resp)
