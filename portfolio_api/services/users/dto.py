"""
DTOs for identity data crossing the service boundary.

ORM instances never leave a Unit of Work; services and adapters convert them
into these frozen dataclasses first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_api.models.user import User


# --------------------------------------------------------------------------- #
# Input DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserQueryIn:
    """
    Filters for the admin listing.

    :param email: Case-insensitive substring of the email.
    :type email: str | None
    :param full_name: Case-insensitive substring of the display name.
    :type full_name: str | None
    :param gender: Exact gender value.
    :type gender: str | None
    """

    email: str | None = None
    full_name: str | None = None
    gender: str | None = None


@dataclass(frozen=True, slots=True)
class UserUpdateIn:
    """
    Admin update. ``None`` means "leave unchanged".

    :param roles: Replacement role list.
    :type roles: tuple[str, ...] | None
    """

    full_name: str | None = None
    email: str | None = None
    avatar: str | None = None
    gender: str | None = None
    roles: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class ProfileUpdateIn:
    """Self-service update; users cannot change their email or roles here."""

    full_name: str | None = None
    avatar: str | None = None
    gender: str | None = None


# --------------------------------------------------------------------------- #
# Output DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public-safe identity data. Carries no password material.

    :param id: User identifier.
    :type id: int
    :param full_name: Display name.
    :type full_name: str
    :param email: Email address, if any.
    :type email: str | None
    :param roles: Role names.
    :type roles: tuple[str, ...]
    """

    id: int
    full_name: str
    email: str | None
    roles: tuple[str, ...]
    avatar: str | None = None
    gender: str | None = None
    google_id: str | None = None
    facebook_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, user: User) -> UserPublicOut:
        """
        Build the DTO from a loaded ORM instance.

        :param user: Persisted user.
        :type user: User
        :rtype: UserPublicOut
        """
        gender = getattr(user.gender, "value", user.gender)
        return cls(
            id=user.id,
            full_name=user.full_name,
            email=user.email,
            roles=tuple(user.roles or ()),
            avatar=user.avatar,
            gender=gender,
            google_id=user.google_id,
            facebook_id=user.facebook_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
