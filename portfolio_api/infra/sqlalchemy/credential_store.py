"""Credential store adapter backed by the SQLAlchemy Unit of Work."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from portfolio_api.models.user import OAUTH_PROVIDERS, SystemRole, User
from portfolio_api.services._shared.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    violates,
)
from portfolio_api.services.users.dto import UserPublicOut
from portfolio_api.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver errors into service-level errors."""
    try:
        yield
    except IntegrityError as exc:
        if violates(exc, "uq_users_email"):
            raise ConflictError("User", "Email already exists") from exc
        if violates(exc, "uq_users_google_id") or violates(exc, "uq_users_facebook_id"):
            raise ConflictError("User", "Provider account already linked") from exc
        raise ConflictError("User", "Conflict") from exc
    except SQLAlchemyError as exc:
        raise StorageError(f"credential store {operation} failed") from exc


class SQLAlchemyCredentialStore:
    """
    :class:`~portfolio_api.services._shared.ports.CredentialStore` over the
    ``users`` table.

    Each call runs in its own Unit of Work; DTOs are built before the scope
    closes so no ORM instance escapes.

    :param rw_uow: Factory for read-write units of work.
    :param ro_uow: Factory for read-only units of work.
    """

    def __init__(
        self,
        *,
        rw_uow: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._rw_uow = rw_uow
        self._ro_uow = ro_uow

    # ------------------------------ Lookups ------------------------------

    def find_by_id(self, user_id: int) -> UserPublicOut | None:
        with _store_errors("find_by_id"), self._ro_uow() as uow:
            user = uow.users.get(user_id)
            return UserPublicOut.from_model(user) if user else None

    def find_by_email(self, email: str) -> UserPublicOut | None:
        with _store_errors("find_by_email"), self._ro_uow() as uow:
            user = uow.users.get_by_email(email)
            return UserPublicOut.from_model(user) if user else None

    def find_by_provider(self, provider: str, external_id: str) -> UserPublicOut | None:
        with _store_errors("find_by_provider"), self._ro_uow() as uow:
            user = uow.users.get_by_provider(provider, external_id)
            return UserPublicOut.from_model(user) if user else None

    def exists_by_email(self, email: str) -> bool:
        with _store_errors("exists_by_email"), self._ro_uow() as uow:
            return uow.users.exists_by_email(email)

    # ------------------------------ Writes ------------------------------

    def create(
        self,
        *,
        full_name: str,
        email: str | None,
        password: str | None = None,
        roles: Sequence[str] = (SystemRole.USER.value,),
        provider: str | None = None,
        external_id: str | None = None,
        avatar: str | None = None,
    ) -> UserPublicOut:
        """
        Insert a new identity.

        :raises ConflictError: When the email or provider id is taken.
        :raises ValueError: For an unsupported provider.
        """
        user = User(full_name=full_name, email=email, roles=list(roles), avatar=avatar)
        if password is not None:
            user.password = password
        if provider is not None:
            setattr(user, _provider_column(provider), external_id)

        with _store_errors("create"), self._rw_uow() as uow:
            uow.users.add(user)
            return UserPublicOut.from_model(user)

    def set_password(self, user_id: int, raw: str) -> None:
        """
        :raises NotFoundError: If the identity does not exist.
        """
        with _store_errors("set_password"), self._rw_uow() as uow:
            user = uow.users.get_for_update(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            uow.users.update_password(user, raw)

    def link_provider(
        self, user_id: int, *, provider: str, external_id: str, avatar: str | None = None
    ) -> UserPublicOut:
        """
        Attach a provider id to an existing identity. The avatar is only
        filled when the identity has none.

        :raises NotFoundError: If the identity does not exist.
        """
        column = _provider_column(provider)
        with _store_errors("link_provider"), self._rw_uow() as uow:
            user = uow.users.get_for_update(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            setattr(user, column, external_id)
            if avatar and not user.avatar:
                user.avatar = avatar
            uow.users.flush()
            return UserPublicOut.from_model(user)

    # ------------------------------ Credentials ------------------------------

    def verify_credentials(self, email: str, password: str) -> UserPublicOut | None:
        with _store_errors("verify_credentials"), self._ro_uow() as uow:
            user = uow.users.authenticate(email, password)
            return UserPublicOut.from_model(user) if user else None

    def verify_password(self, user_id: int, raw: str) -> bool:
        with _store_errors("verify_password"), self._ro_uow() as uow:
            user = uow.users.get(user_id)
            return bool(user and user.verify_password(raw))


def _provider_column(provider: str) -> str:
    try:
        return OAUTH_PROVIDERS[provider]
    except KeyError as exc:
        raise ValueError(f"Unsupported OAuth provider: {provider}") from exc
