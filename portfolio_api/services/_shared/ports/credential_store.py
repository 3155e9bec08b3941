from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from portfolio_api.services.users.dto import UserPublicOut


class CredentialStore(Protocol):
    """
    Port over identity persistence used by the session manager.

    Implementations never return password material; lookups ignore
    soft-deleted identities. Backend failures raise ``StorageError`` and
    uniqueness violations raise ``ConflictError``.
    """

    def find_by_id(self, user_id: int) -> UserPublicOut | None: ...

    def find_by_email(self, email: str) -> UserPublicOut | None: ...

    def find_by_provider(self, provider: str, external_id: str) -> UserPublicOut | None: ...

    def exists_by_email(self, email: str) -> bool: ...

    def create(
        self,
        *,
        full_name: str,
        email: str | None,
        password: str | None = None,
        roles: Sequence[str] = ("user",),
        provider: str | None = None,
        external_id: str | None = None,
        avatar: str | None = None,
    ) -> UserPublicOut: ...

    def verify_credentials(self, email: str, password: str) -> UserPublicOut | None: ...

    def verify_password(self, user_id: int, raw: str) -> bool: ...

    def set_password(self, user_id: int, raw: str) -> None: ...

    def link_provider(
        self, user_id: int, *, provider: str, external_id: str, avatar: str | None = None
    ) -> UserPublicOut: ...
