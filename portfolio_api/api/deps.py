"""Shared API helpers: service wiring, auth decorators and request parsing."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import Any, TypeVar

from flask import current_app, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from portfolio_api.core.errors import Unauthorized
from portfolio_api.core.extensions import get_redis
from portfolio_api.infra.jwt.pyjwt_codec import PyJWTCodec
from portfolio_api.infra.oauth.profile_client import OAuthProfileClient
from portfolio_api.infra.redis.redis_cache import RedisCache
from portfolio_api.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
from portfolio_api.repositories.base import Pagination
from portfolio_api.schemas.common import PaginationQuerySchema
from portfolio_api.services._shared.policies.roles import authorize
from portfolio_api.services.auth.dto import AuthTokenConfig
from portfolio_api.services.auth.service import SessionManager

F = TypeVar("F", bound=Callable[..., Any])


# ------------------------------ Service wiring ------------------------------


def token_codec() -> PyJWTCodec:
    """Build the token codec from the current app config."""
    cfg = current_app.config
    return PyJWTCodec(
        access_secret=cfg["JWT_ACCESS_SECRET"],
        refresh_secret=cfg["JWT_REFRESH_SECRET"],
        algorithm=cfg.get("JWT_ALGORITHM", "HS256"),
    )


def session_manager() -> SessionManager:
    """Compose a :class:`SessionManager` with the app's adapters."""
    cfg = current_app.config
    return SessionManager(
        codec=token_codec(),
        cache=RedisCache(get_redis(), prefix=cfg.get("REDIS_KEY_PREFIX", "")),
        credentials=SQLAlchemyCredentialStore(),
        token_cfg=AuthTokenConfig(
            access_expires=timedelta(seconds=int(cfg["JWT_ACCESS_TTL"])),
            refresh_expires=timedelta(seconds=int(cfg["JWT_REFRESH_TTL"])),
        ),
    )


def oauth_client() -> OAuthProfileClient:
    cfg = current_app.config
    return OAuthProfileClient(
        google_url=cfg["OAUTH_GOOGLE_USERINFO_URL"],
        facebook_url=cfg["OAUTH_FACEBOOK_ME_URL"],
        timeout=float(cfg.get("OAUTH_HTTP_TIMEOUT", 5)),
    )


# ------------------------------ Auth decorators ------------------------------


def current_user_id() -> int:
    """Return the authenticated subject as an integer id."""
    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError) as exc:
        raise Unauthorized("Invalid token subject") from exc


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, non-revoked access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_roles(*roles: str) -> Callable[[F], F]:
    """Authenticate, then require at least one of ``roles`` on the token."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            verify_jwt_in_request(optional=False)
            claims = get_jwt() or {}
            authorize(roles, claims.get("roles"))
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def bearer_token() -> str | None:
    """Read the raw bearer token from ``Authorization`` without verifying it."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# ------------------------------ Request parsing ------------------------------


def parse_pagination(
    *,
    sortable: Iterable[str] | None = None,
    default_sort: str = "createdAt",
    default_limit: int = 10,
    max_limit: int = 100,
) -> Pagination:
    """Parse pagination parameters from ``request.args`` using Marshmallow."""

    schema = PaginationQuerySchema(
        sortable=sortable,
        default_sort=default_sort,
        default_limit=default_limit,
        max_limit=max_limit,
    )
    data = schema.load(request.args)
    return Pagination(page=data["page"], limit=data["limit"], sort=data["sort"])


def json_body() -> dict[str, Any]:
    """Return the JSON body or an empty mapping for missing/invalid bodies."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
