from functools import wraps
from flask import g
from security.auth_gate import current_gate

def current_username():
    gate = current_gate()
    return gate.session.get("username")

def login_required(fn):
    """
    Guard for admin pages: anonymous visitors are sent to the login modal
    (or get a JSON answer when the request is flagged as XHR).
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        failure = current_gate().require_authenticated()
        if failure is not None:
            return failure
        g.admin_username = current_username()
        return fn(*args, **kwargs)
    return wrapper

def api_login_required(fn):
    """Guard for admin JSON endpoints: always answers anonymous callers with JSON."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        failure = current_gate().require_authenticated(is_ajax=True)
        if failure is not None:
            return failure
        g.admin_username = current_username()
        return fn(*args, **kwargs)
    return wrapper
