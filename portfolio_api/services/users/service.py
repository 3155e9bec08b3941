"""
UserService
===========

Admin CRUD and self-service profile use cases over the ``User`` aggregate.
Authentication and token issuance live in
:mod:`portfolio_api.services.auth.service`.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError

from portfolio_api.models.user import Gender, User
from portfolio_api.repositories.base import Page, Pagination
from portfolio_api.repositories.user import UserRepository
from portfolio_api.services._shared.base import BaseService
from portfolio_api.services._shared.dto import PageMeta, PageOut
from portfolio_api.services._shared.errors import (
    ConflictError,
    NotFoundError,
    ServiceError,
    violates,
)
from portfolio_api.services.users.dto import (
    ProfileUpdateIn,
    UserPublicOut,
    UserQueryIn,
    UserUpdateIn,
)


def _page_out(page: Page[User]) -> PageOut[UserPublicOut]:
    items = [UserPublicOut.from_model(u) for u in page.items]
    meta = PageMeta(
        total_items=page.total,
        item_count=len(items),
        items_per_page=page.limit,
        total_pages=page.total_pages,
        current_page=page.page,
    )
    return PageOut(items=items, meta=meta)


class UserService(BaseService):
    """
    Application service for user administration and profiles.

    Responsibilities
    ----------------
    - Paginated listing with substring filters.
    - Retrieval, update and soft deletion by id (admin).
    - Profile read/update for the authenticated identity.
    """

    # --------------------------------------------------------------------- #
    # Listing & retrieval
    # --------------------------------------------------------------------- #

    def list_users(self, query: UserQueryIn, pagination: Pagination) -> PageOut[UserPublicOut]:
        """
        List active users.

        :param query: Optional filters (email/full name substrings, gender).
        :type query: UserQueryIn
        :param pagination: Page, limit and public sort tokens.
        :type pagination: Pagination
        :rtype: PageOut[UserPublicOut]
        """
        sort = pagination.sort or ["-createdAt"]
        pagination = self.ensure_pagination(
            page=pagination.page, limit=pagination.limit, sort=sort
        )
        gender = _coerce_gender(query.gender) if query.gender else None
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            page = repo.search(
                pagination,
                email=query.email,
                full_name=query.full_name,
                gender=gender,
            )
            return _page_out(page)

    def get_user(self, user_id: int) -> UserPublicOut:
        """
        :raises NotFoundError: If the user does not exist or was deleted.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return UserPublicOut.from_model(user)

    # --------------------------------------------------------------------- #
    # Mutation
    # --------------------------------------------------------------------- #

    def update_user(self, user_id: int, dto: UserUpdateIn) -> UserPublicOut:
        """
        Admin update of profile fields, email and roles.

        :raises NotFoundError: If the user does not exist.
        :raises ConflictError: If the new email is taken.
        """
        updates = {
            "full_name": dto.full_name,
            "email": dto.email,
            "avatar": dto.avatar,
            "gender": dto.gender,
            "roles": list(dto.roles) if dto.roles is not None else None,
        }
        return self._apply_updates(user_id, updates)

    def delete_user(self, user_id: int) -> None:
        """
        Soft-delete a user. Deleted users disappear from every read.

        :raises NotFoundError: If the user does not exist.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_for_update(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            repo.delete(user)

    # --------------------------------------------------------------------- #
    # Profile (self-service)
    # --------------------------------------------------------------------- #

    def get_profile(self, user_id: int) -> UserPublicOut:
        """Return the authenticated user's profile."""
        return self.get_user(user_id)

    def update_profile(self, user_id: int, dto: ProfileUpdateIn) -> UserPublicOut:
        updates = {"full_name": dto.full_name, "avatar": dto.avatar, "gender": dto.gender}
        return self._apply_updates(user_id, updates)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _apply_updates(self, user_id: int, updates: dict[str, Any]) -> UserPublicOut:
        fields = {k: v for k, v in updates.items() if v is not None}
        if "gender" in fields:
            fields["gender"] = _coerce_gender(fields["gender"])

        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_for_update(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            try:
                repo.update(user, **fields)
            except ValueError as exc:
                raise ServiceError(str(exc)) from exc
            except IntegrityError as exc:
                if violates(exc, "uq_users_email"):
                    raise ConflictError("User", "Email already exists") from exc
                raise
            return UserPublicOut.from_model(user)


def _coerce_gender(value: Any) -> Gender:
    try:
        return Gender(value)
    except ValueError as exc:
        raise ServiceError(f"Unknown gender: {value}") from exc
