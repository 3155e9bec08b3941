"""User repository for persistence and authentication lookups."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, cast

from sqlalchemy import ColumnElement, func, select

from portfolio_api.models.user import OAUTH_PROVIDERS, User
from portfolio_api.repositories.base import BaseRepository, Page, Pagination


def _like_pattern(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Soft-deleted users are excluded from every read. The repository never
    issues tokens or touches the cache; it only manages rows.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _sortable_fields(self):
        """Expose sortable fields under their public (JSON) names."""
        return {
            "id": User.id,
            "email": User.email,
            "fullName": User.full_name,
            "createdAt": User.created_at,
            "updatedAt": User.updated_at,
        }

    def _filterable_fields(self):
        """Whitelist fields safe for equality filters."""
        return {"gender": User.gender}

    def _updatable_fields(self):
        """Fields assignable through updates (password and provider ids excluded)."""
        return {"email", "full_name", "avatar", "gender", "roles"}

    def _default_scope(self, stmt):
        return stmt.where(User.deleted_at.is_(None))

    def _remove(self, instance: User) -> None:
        instance.deleted_at = datetime.now(UTC)

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch an active user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = self._select().where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when any row, deleted or not, uses ``email``.

        Deleted rows still hold the unique constraint, so they count.

        :param email: Email address to normalise and search.
        :type email: str
        :rtype: bool
        """
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def get_by_provider(self, provider: str, external_id: str) -> User | None:
        """Fetch an active user linked to ``provider`` with ``external_id``.

        :param provider: Provider key (``"google"`` or ``"facebook"``).
        :type provider: str
        :param external_id: Identifier issued by the provider.
        :type external_id: str
        :returns: User or ``None``.
        :rtype: User | None
        :raises ValueError: If the provider is not supported.
        """
        column_name = OAUTH_PROVIDERS.get(provider)
        if column_name is None:
            raise ValueError(f"Unsupported OAuth provider: {provider}")
        column = getattr(User, column_name)
        stmt = self._select().where(column == external_id)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def authenticate(self, email: str, password: str) -> User | None:
        """Authenticate an active user by email and password.

        :param email: Email address to authenticate.
        :type email: str
        :param password: Raw password to verify.
        :type password: str
        :returns: Authenticated user or ``None`` when credentials fail.
        :rtype: User | None
        """
        user = self.get_by_email(email)
        if not user or not user.verify_password(password):
            return None
        return user

    # ---------------------------- Password ops ----------------------------

    def update_password(self, user: User, new_password: str) -> None:
        """Set a new password (hashed by the model) and flush.

        :param user: Loaded user.
        :type user: User
        :param new_password: Raw password to assign.
        :type new_password: str
        """
        user.password = new_password
        self.flush()

    # ---------------------------- Listing ----------------------------

    def search(
        self,
        pagination: Pagination,
        *,
        email: str | None = None,
        full_name: str | None = None,
        gender: Any = None,
    ) -> Page[User]:
        """Paginate users with case-insensitive substring filters.

        :param pagination: Page, limit and sort tokens.
        :type pagination: Pagination
        :param email: Substring matched against the email.
        :type email: str | None
        :param full_name: Substring matched against the display name.
        :type full_name: str | None
        :param gender: Exact gender value.
        :returns: Page of users.
        :rtype: Page[User]
        """
        criteria: list[ColumnElement[bool]] = []
        if email:
            criteria.append(func.lower(User.email).like(_like_pattern(email), escape="\\"))
        if full_name:
            criteria.append(
                func.lower(User.full_name).like(_like_pattern(full_name), escape="\\")
            )
        return self.paginate(pagination, filters={"gender": gender}, criteria=criteria)
