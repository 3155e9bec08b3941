"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ChangePasswordSchema,
    LoginSchema,
    LogoutSchema,
    OAuthTokenSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
)
from .common import PaginationMetaSchema, PaginationQuerySchema
from .user import (
    USER_SORT_FIELDS,
    ProfileUpdateSchema,
    UserFilterSchema,
    UserSchema,
    UserUpdateSchema,
)

__all__ = [
    "ChangePasswordSchema",
    "LoginSchema",
    "LogoutSchema",
    "OAuthTokenSchema",
    "RefreshSchema",
    "RegisterSchema",
    "TokenPairSchema",
    "PaginationMetaSchema",
    "PaginationQuerySchema",
    "USER_SORT_FIELDS",
    "ProfileUpdateSchema",
    "UserFilterSchema",
    "UserSchema",
    "UserUpdateSchema",
]
