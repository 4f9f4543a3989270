"""
bcrypt helpers for the single configured admin account.

The admin hash comes from configuration (ADMIN_PASSWORD_HASH) instead of a
users table, so a malformed value is rejected when the app starts rather
than silently failing every login.
"""
import re

import bcrypt

DEFAULT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72
BCRYPT_HASH = re.compile(r"^\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}$")


def is_bcrypt_hash(value) -> bool:
    return isinstance(value, str) and BCRYPT_HASH.match(value) is not None


def hash_password(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    if not isinstance(plain_password, str) or not plain_password:
        raise ValueError("Admin password must be a non-empty string")
    if len(plain_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError("Admin password must be at most %d bytes" % MAX_PASSWORD_BYTES)

    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not isinstance(plain_password, str) or not plain_password:
        return False
    if not is_bcrypt_hash(password_hash):
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # over-long input on newer bcrypt releases
        return False
