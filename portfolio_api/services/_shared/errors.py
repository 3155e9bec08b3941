"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the stable contract between adapters (database, cache,
token codec), application services and the HTTP boundary.

The translation to HTTP responses (RFC 7807) is handled by
``portfolio_api/core/errors.py``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        Constraint name (e.g. ``'uq_users_email'``) or the column it guards.

    Returns
    -------
    bool
        True if the driver message mentions the constraint.

    Notes
    -----
    PostgreSQL reports the constraint name; SQLite reports
    ``UNIQUE constraint failed: users.email``, so the column suffix of the
    conventional name is matched as well.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    name = constraint_name.lower()
    if name in message:
        return True
    # uq_<table>_<column> -> "<table>.<column>"
    parts = name.split("_", 2)
    if len(parts) == 3 and parts[0] == "uq":
        return f"{parts[1]}.{parts[2]}" in message
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, adapters or services.
    - ``core.errors`` translates them to ``APIError`` at the HTTP boundary.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return self.detail


class UnauthorizedError(ServiceError):
    """Raised for bad credentials and invalid, expired, revoked or replayed tokens."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(ServiceError):
    """Raised when the caller's roles do not satisfy a route's requirement."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class InternalFailureError(ServiceError):
    """
    Raised when a store, cache or signing step fails unexpectedly.

    The original cause is chained (``raise ... from exc``) and logged by the
    raising service; the message is safe to show to clients.
    """

    def __init__(self, message: str = "Internal failure") -> None:
        super().__init__(message)


class StorageError(ServiceError):
    """Raised by adapters when the backing store or cache cannot be reached."""


# --------------------------------------------------------------------------- #
# Token codec errors
# --------------------------------------------------------------------------- #


class TokenError(ServiceError):
    """Base class for token codec failures."""


class InvalidTokenError(TokenError):
    """Malformed token, bad signature, missing claim or wrong token kind."""


class ExpiredTokenError(InvalidTokenError):
    """Signature is valid but the ``exp`` claim is in the past."""


class TokenSigningError(TokenError):
    """A token could not be encoded."""
