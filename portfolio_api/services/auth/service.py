"""
Session lifecycle: registration, credential login, token issuance, refresh
rotation, logout and password change.

Revocation state lives in the key/value cache:

``blacklist:{jti}``
    Present while a consumed or logged-out token would otherwise still be
    valid. Value is the subject id; TTL is the token's remaining lifetime.
``token_iat_available:{sub}``
    Unix milliseconds of the latest password change. Access tokens of that
    subject issued earlier are rejected. TTL is the access-token lifetime.
``token_iat_available:refresh:{sub}``
    Same instant for refresh tokens, kept for the refresh-token lifetime so a
    refresh token minted before the change never becomes usable again.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

from portfolio_api.models.user import SystemRole
from portfolio_api.services._shared.base import BaseService
from portfolio_api.services._shared.errors import (
    ConflictError,
    InternalFailureError,
    InvalidTokenError,
    NotFoundError,
    ServiceError,
    StorageError,
    TokenSigningError,
    UnauthorizedError,
)
from portfolio_api.services._shared.ports import CredentialStore, KeyValueCache, TokenCodec
from portfolio_api.services.auth.dto import (
    AuthTokenConfig,
    ChangePasswordIn,
    LoginIn,
    LogoutIn,
    OAuthProfileIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from portfolio_api.services.users.dto import UserPublicOut

log = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"
TOKEN_KINDS = (ACCESS, REFRESH)

BLACKLIST_PREFIX = "blacklist:"
WATERMARK_PREFIX = "token_iat_available:"


def blacklist_key(jti: str) -> str:
    return f"{BLACKLIST_PREFIX}{jti}"


def watermark_key(subject_id: int | str, kind: str = ACCESS) -> str:
    if kind == REFRESH:
        return f"{WATERMARK_PREFIX}{REFRESH}:{subject_id}"
    return f"{WATERMARK_PREFIX}{subject_id}"


class SessionManager(BaseService):
    """
    Authentication lifecycle service.

    Tokens are stateless JWTs minted by a :class:`TokenCodec`; revocation is
    negative-only (blacklist + password-change watermark) and kept in a
    :class:`KeyValueCache`. Identities come from a :class:`CredentialStore`.

    :param codec: Token codec with one secret per token kind.
    :param cache: Expiring key/value store for revocation records.
    :param credentials: Identity persistence port.
    :param token_cfg: Access/refresh lifetimes.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        cache: KeyValueCache,
        credentials: CredentialStore,
        token_cfg: AuthTokenConfig | None = None,
    ) -> None:
        self.codec = codec
        self.cache = cache
        self.credentials = credentials
        self.cfg = token_cfg or AuthTokenConfig(
            access_expires=timedelta(minutes=15),
            refresh_expires=timedelta(days=7),
        )

    # ------------------------------------------------------------------ #
    # Registration & credentials
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> UserPublicOut:
        """
        Create a password identity with the ``user`` role.

        :param dto: Registration input.
        :returns: The created identity (no password material).
        :raises ConflictError: If the email is already registered.
        :raises InternalFailureError: If the store is unreachable.
        """
        with self._translate_storage_errors("register"):
            if self.credentials.exists_by_email(dto.email):
                raise ConflictError("User", "Email already exists")
            try:
                return self.credentials.create(
                    full_name=dto.full_name,
                    email=dto.email,
                    password=dto.password,
                    roles=(SystemRole.USER.value,),
                )
            except ValueError as exc:
                raise ServiceError(str(exc)) from exc

    def authenticate(self, dto: LoginIn) -> UserPublicOut:
        """
        Check email and password.

        Unknown, deleted and OAuth-only identities fail exactly like a wrong
        password.

        :raises UnauthorizedError: On any credential mismatch.
        """
        with self._translate_storage_errors("authenticate"):
            identity = self.credentials.verify_credentials(dto.email, dto.password)
        if identity is None:
            raise UnauthorizedError("Invalid credentials")
        return identity

    # ------------------------------------------------------------------ #
    # Token issuance
    # ------------------------------------------------------------------ #

    def login(self, identity: UserPublicOut) -> TokenPairOut:
        """Issue a token pair for an already authenticated identity."""
        return self.generate_tokens(identity.id, identity.full_name, identity.roles)

    def generate_tokens(
        self, subject_id: int, full_name: str, roles: Sequence[str]
    ) -> TokenPairOut:
        """
        Mint an access/refresh pair with distinct fresh ``jti`` values.

        Both tokens are signed before anything is returned; nothing is
        persisted.

        :raises InternalFailureError: If either token cannot be signed.
        """
        access_claims = {"sub": str(subject_id), "fullName": full_name, "roles": list(roles)}
        refresh_claims = {"sub": str(subject_id)}
        try:
            access = self.codec.sign(access_claims, kind=ACCESS, ttl=self.cfg.access_seconds)
            refresh = self.codec.sign(refresh_claims, kind=REFRESH, ttl=self.cfg.refresh_seconds)
        except TokenSigningError as exc:
            log.error("Token signing failed for sub=%s", subject_id, exc_info=True)
            raise InternalFailureError("Could not issue tokens") from exc
        return TokenPairOut(access_token=access, refresh_token=refresh)

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Exchange a refresh token for a new pair, consuming the old one.

        The presented token is blacklisted with a set-if-absent write, so of
        two concurrent refreshes with the same token only one succeeds.

        :raises UnauthorizedError: For invalid, expired, revoked or replayed
            tokens, and when the identity no longer exists.
        :raises InternalFailureError: If the cache or store is unreachable.
        """
        try:
            claims = self.codec.verify(dto.refresh_token, kind=REFRESH)
        except InvalidTokenError as exc:
            raise UnauthorizedError("Invalid refresh token") from exc

        with self._translate_storage_errors("refresh"):
            if not self.validate_claims(claims):
                raise UnauthorizedError("Refresh token has been revoked")

            consumed = self.cache.add(
                blacklist_key(claims["jti"]),
                str(claims["sub"]),
                ttl=self._remaining_ttl(claims),
            )
            if not consumed:
                log.warning("Refresh token replay detected: sub=%s", claims["sub"])
                raise UnauthorizedError("Refresh token has already been used")

            identity = self._load_subject(claims["sub"])
        if identity is None:
            raise UnauthorizedError("Unknown subject")
        return self.login(identity)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Blacklist every decodable token until it would expire.

        Best effort: undecodable tokens and cache failures are logged and
        skipped; the call never raises.
        """
        for kind, token in ((ACCESS, dto.access_token), (REFRESH, dto.refresh_token)):
            if not token:
                continue
            try:
                claims = self.codec.decode(token)
                jti = claims.get("jti")
                if not jti:
                    raise InvalidTokenError("Token has no jti")
                self.cache.set(
                    blacklist_key(str(jti)),
                    str(claims.get("sub", "")),
                    ttl=self._remaining_ttl(claims),
                )
            except (InvalidTokenError, StorageError):
                log.warning("Logout could not revoke %s token", kind, exc_info=True)

    # ------------------------------------------------------------------ #
    # Password change
    # ------------------------------------------------------------------ #

    def change_password(self, dto: ChangePasswordIn) -> None:
        """
        Replace the password and retire every token issued before now.

        :raises NotFoundError: If the identity does not exist.
        :raises UnauthorizedError: If ``current_password`` is wrong.
        :raises InternalFailureError: If the store or cache is unreachable.
        """
        with self._translate_storage_errors("change_password"):
            if self.credentials.find_by_id(dto.user_id) is None:
                raise NotFoundError("User", dto.user_id)
            if not self.credentials.verify_password(dto.user_id, dto.current_password):
                raise UnauthorizedError("Current password is incorrect")
            self.credentials.set_password(dto.user_id, dto.new_password)
            changed_at = str(self._now_millis())
            self.cache.set(
                watermark_key(dto.user_id), changed_at, ttl=self.cfg.access_seconds
            )
            self.cache.set(
                watermark_key(dto.user_id, REFRESH), changed_at, ttl=self.cfg.refresh_seconds
            )

    # ------------------------------------------------------------------ #
    # Validation (side-effect free)
    # ------------------------------------------------------------------ #

    def validate_token(self, token: str) -> bool:
        """
        Return ``True`` iff ``token`` verifies under its kind's secret and has
        not been revoked.

        :raises InternalFailureError: Only when the cache is unreachable.
        """
        try:
            kind = self.codec.decode(token).get("type")
            if kind not in TOKEN_KINDS:
                return False
            claims = self.codec.verify(token, kind=kind)
        except InvalidTokenError:
            return False
        with self._translate_storage_errors("validate_token"):
            return self.validate_claims(claims)

    def validate_claims(self, claims: Mapping[str, Any]) -> bool:
        """
        Revocation predicate for already verified claims.

        Fails closed on a missing ``sub``/``jti``, an unknown ``type`` or an
        unreadable watermark. Each token kind is checked against its own
        watermark, compared in milliseconds.

        :raises StorageError: If the cache is unreachable.
        """
        sub = claims.get("sub")
        jti = claims.get("jti")
        if not sub or not jti:
            return False
        if self.cache.exists(blacklist_key(str(jti))):
            return False
        kind = claims.get("type", ACCESS)
        if kind not in TOKEN_KINDS:
            return False
        watermark = self.cache.get(watermark_key(sub, kind))
        if watermark is None:
            return True
        try:
            return _issued_at_millis(claims) >= int(watermark)
        except (KeyError, TypeError, ValueError):
            return False

    # ------------------------------------------------------------------ #
    # OAuth
    # ------------------------------------------------------------------ #

    def oauth_login(self, profile: OAuthProfileIn) -> TokenPairOut:
        """
        Sign in with a provider profile.

        Resolution order: identity already linked to the provider id, then an
        identity with the same email (which gets linked), then a new identity.

        :raises ConflictError: If the email belongs to a deleted identity.
        """
        with self._translate_storage_errors("oauth_login"):
            identity = self.credentials.find_by_provider(profile.provider, profile.external_id)
            if identity is None and profile.email:
                existing = self.credentials.find_by_email(profile.email)
                if existing is not None:
                    identity = self.credentials.link_provider(
                        existing.id,
                        provider=profile.provider,
                        external_id=profile.external_id,
                        avatar=profile.avatar,
                    )
            if identity is None:
                identity = self.credentials.create(
                    full_name=profile.full_name,
                    email=profile.email,
                    roles=(SystemRole.USER.value,),
                    provider=profile.provider,
                    external_id=profile.external_id,
                    avatar=profile.avatar,
                )
        return self.login(identity)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _load_subject(self, sub: Any) -> UserPublicOut | None:
        try:
            user_id = int(sub)
        except (TypeError, ValueError):
            return None
        return self.credentials.find_by_id(user_id)

    def _remaining_ttl(self, claims: Mapping[str, Any]) -> int:
        # Cache TTLs must be positive; an already expired token gets one second.
        try:
            remaining = int(claims["exp"]) - self._now_seconds()
        except (KeyError, TypeError, ValueError):
            remaining = self.cfg.refresh_seconds
        return max(remaining, 1)

    @staticmethod
    def _now_seconds() -> int:
        return int(datetime.now(UTC).timestamp())

    @staticmethod
    def _now_millis() -> int:
        return int(datetime.now(UTC).timestamp() * 1000)

    @contextmanager
    def _translate_storage_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except StorageError as exc:
            log.error("Storage failure during %s", operation, exc_info=True)
            raise InternalFailureError() from exc


def _issued_at_millis(claims: Mapping[str, Any]) -> int:
    # Tokens without ``iat_ms`` fall back to the start of their ``iat`` second.
    if claims.get("iat_ms") is not None:
        return int(claims["iat_ms"])
    return int(claims["iat"]) * 1000
