"""Service layer public API.

This package exposes the service layer building blocks so callers can import
from :mod:`portfolio_api.services` without knowing the internal structure.

Re-exports
----------
- Base primitives (from ``portfolio_api.services._shared``)
    * :class:`BaseService`, :class:`PageMeta`, :class:`PageOut`

- Session lifecycle (from ``portfolio_api.services.auth``)
    * :class:`SessionManager`
    * DTOs: :class:`RegisterIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`ChangePasswordIn`, :class:`OAuthProfileIn`,
      :class:`TokenPairOut`, :class:`AuthTokenConfig`

- User administration (from ``portfolio_api.services.users``)
    * :class:`UserService`
    * DTOs: :class:`UserQueryIn`, :class:`UserUpdateIn`,
      :class:`ProfileUpdateIn`, :class:`UserPublicOut`
"""

from __future__ import annotations

from ._shared.base import BaseService
from ._shared.dto import PageMeta, PageOut
from .auth.dto import (
    AuthTokenConfig,
    ChangePasswordIn,
    LoginIn,
    LogoutIn,
    OAuthProfileIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from .auth.service import SessionManager
from .users.dto import ProfileUpdateIn, UserPublicOut, UserQueryIn, UserUpdateIn
from .users.service import UserService

__all__ = [
    # Base
    "BaseService",
    "PageMeta",
    "PageOut",
    # Sessions
    "SessionManager",
    "AuthTokenConfig",
    "ChangePasswordIn",
    "LoginIn",
    "LogoutIn",
    "OAuthProfileIn",
    "RefreshIn",
    "RegisterIn",
    "TokenPairOut",
    # Users
    "UserService",
    "ProfileUpdateIn",
    "UserPublicOut",
    "UserQueryIn",
    "UserUpdateIn",
]
