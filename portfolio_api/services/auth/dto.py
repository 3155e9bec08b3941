from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for self-registration.

    :param email: Login email (normalized by the model).
    :type email: str
    :param password: Raw password, hashed before storage.
    :type password: str
    :param full_name: Display name.
    :type full_name: str
    """

    email: str
    password: str
    full_name: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for credential authentication.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout. Either token may be missing.

    :param access_token: Encoded access JWT from the ``Authorization`` header.
    :type access_token: str | None
    :param refresh_token: Encoded refresh JWT from the body.
    :type refresh_token: str | None
    """

    access_token: str | None = None
    refresh_token: str | None = None


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    :param user_id: Authenticated identity.
    :type user_id: int
    :param current_password: Password the caller claims to know.
    :type current_password: str
    :param new_password: Replacement password (raw).
    :type new_password: str
    """

    user_id: int
    current_password: str
    new_password: str


@dataclass(frozen=True, slots=True)
class OAuthProfileIn:
    """
    Profile resolved from an OAuth provider.

    :param provider: ``"google"`` or ``"facebook"``.
    :type provider: str
    :param external_id: Provider-issued user id.
    :type external_id: str
    :param email: Email shared by the provider, if any.
    :type email: str | None
    :param full_name: Display name reported by the provider.
    :type full_name: str
    :param avatar: Picture URL.
    :type avatar: str | None
    """

    provider: str
    external_id: str
    email: str | None
    full_name: str
    avatar: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta
    refresh_expires: timedelta

    @property
    def access_seconds(self) -> int:
        return int(self.access_expires.total_seconds())

    @property
    def refresh_seconds(self) -> int:
        return int(self.refresh_expires.total_seconds())
