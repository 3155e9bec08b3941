"""Password hashing helpers with a configurable cost."""

from __future__ import annotations

from flask import current_app, has_app_context
from werkzeug.security import check_password_hash, generate_password_hash

DEFAULT_HASH_METHOD = "scrypt"


def password_hash_method() -> str:
    """Return the werkzeug hashing method configured for the current app.

    Outside an application context (scripts, bare unit tests) the werkzeug
    default is used.
    """
    if has_app_context():
        return str(current_app.config.get("PASSWORD_HASH_METHOD") or DEFAULT_HASH_METHOD)
    return DEFAULT_HASH_METHOD


def hash_password(raw: str) -> str:
    """
    Hash a plain text password with a per-hash random salt.

    :param raw: Plain text password.
    :type raw: str
    :returns: Encoded hash including method, cost and salt.
    :rtype: str
    :raises ValueError: If ``raw`` is empty or not a string.
    """
    if not isinstance(raw, str) or not raw:
        raise ValueError("Password must be a non-empty string.")
    return generate_password_hash(raw, method=password_hash_method())


def verify_password(password_hash: str | None, raw: str) -> bool:
    """
    Check ``raw`` against a stored hash.

    :param password_hash: Stored hash, ``None`` for identities without a password.
    :type password_hash: str | None
    :param raw: Candidate password.
    :type raw: str
    :returns: ``True`` on match.
    :rtype: bool
    """
    if not password_hash or not raw:
        return False
    return bool(check_password_hash(password_hash, raw))
