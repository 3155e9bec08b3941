"""User model definition for the portfolio API."""

from __future__ import annotations

import enum
from typing import Any

from sqlalchemy import JSON, Enum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from portfolio_api.core.extensions import db
from portfolio_api.core.security import hash_password
from portfolio_api.core.security import verify_password as _verify_password

from .base import PKMixin, ReprMixin, SoftDeleteMixin, TimestampMixin


class Gender(str, enum.Enum):
    """Self-declared gender stored on the profile."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class SystemRole(str, enum.Enum):
    """System-wide roles checked by the authorization gate."""

    USER = "user"
    ADMIN = "admin"


#: Provider name -> mapped column attribute holding the external id
OAUTH_PROVIDERS: dict[str, str] = {
    "google": "google_id",
    "facebook": "facebook_id",
}


def _default_roles() -> list[str]:
    return [SystemRole.USER.value]


class User(PKMixin, ReprMixin, TimestampMixin, SoftDeleteMixin, db.Model):
    """
    Identity that can authenticate with a password, an OAuth provider, or both.

    Fields
    ------
    full_name : str
        Display name, carried in access tokens as ``fullName``.
    email : str | None
        Login email. Stored normalized (lowercase, trimmed). May be missing
        for provider accounts that do not share an email.
    password_hash : str | None
        Hashed password (write-only setter via ``password``). ``None`` for
        OAuth-only identities.
    google_id, facebook_id : str | None
        External identifiers of linked OAuth providers.
    avatar : str | None
        Avatar URL.
    gender : Gender
        Defaults to :attr:`Gender.OTHER`.
    roles : list[str]
        Role names; defaults to ``["user"]``.
    deleted_at : datetime | None
        Soft-deletion marker (from mixin).
    """

    __tablename__ = "users"

    # Columns
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    facebook_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(512), nullable=True)
    gender: Mapped[Gender] = mapped_column(
        Enum(
            Gender,
            name="user_gender",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=Gender.OTHER,
    )
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=_default_roles)

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("google_id", name="uq_users_google_id"),
        UniqueConstraint("facebook_id", name="uq_users_facebook_id"),
        Index("ix_users_email", "email"),
        Index("ix_users_created_at", "created_at"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password using the configured hash cost.

        :param raw: Plain text password to hash.
        :type raw: str
        :raises ValueError: If ``raw`` is empty.
        """
        self.password_hash = hash_password(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; ``False`` otherwise or when no
            password is set.
        :rtype: bool
        """
        return _verify_password(self.password_hash, raw)

    # -------------------- Roles & providers --------------------
    def has_role(self, role: SystemRole | str) -> bool:
        """Return ``True`` when ``role`` is among the identity's roles."""
        value = role.value if isinstance(role, SystemRole) else str(role)
        return value in (self.roles or [])

    def provider_id(self, provider: str) -> str | None:
        """
        Return the external id linked for ``provider``.

        :raises ValueError: If the provider is not supported.
        """
        try:
            return getattr(self, OAUTH_PROVIDERS[provider])
        except KeyError as exc:
            raise ValueError(f"Unsupported OAuth provider: {provider}") from exc

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str | None) -> str | None:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize; ``None`` is allowed.
        :type value: str | None
        :returns: Normalized email (lowercased/trimmed) or ``None``.
        :rtype: str | None
        :raises ValueError: If email is malformed.
        """
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Email must be a string.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("full_name")
    def _normalize_full_name(self, key: str, value: str) -> str:
        """Trim the display name and reject blanks."""
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Full name is required.")
        return value.strip()

    @validates("roles")
    def _normalize_roles(self, key: str, value: list[str] | tuple[str, ...]) -> list[str]:
        """Keep known role names only, de-duplicated and in a stable order."""
        known = {r.value for r in SystemRole}
        cleaned = []
        for item in value or []:
            name = item.value if isinstance(item, SystemRole) else str(item)
            if name not in known:
                raise ValueError(f"Unknown role: {name}")
            if name not in cleaned:
                cleaned.append(name)
        return cleaned
