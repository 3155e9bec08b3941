"""Authentication endpoints backed by the session manager."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint

from portfolio_api.api.deps import (
    bearer_token,
    current_user_id,
    json_body,
    oauth_client,
    require_auth,
    session_manager,
    timing,
)
from portfolio_api.api.envelope import envelope_response
from portfolio_api.core.errors import APIError, NotFound
from portfolio_api.schemas import (
    ChangePasswordSchema,
    LoginSchema,
    LogoutSchema,
    OAuthTokenSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
    UserSchema,
)
from portfolio_api.services.auth.dto import (
    ChangePasswordIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
)
from portfolio_api.services.users.service import UserService

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
change_password_schema = ChangePasswordSchema()
oauth_schema = OAuthTokenSchema()
token_schema = TokenPairSchema()
user_schema = UserSchema()

OAUTH_PROVIDERS = ("google", "facebook")


@bp.post("/register")
@timing
def register():
    """Register a password identity and return it (never the password)."""

    payload = register_schema.load(json_body())
    user = session_manager().register(RegisterIn(**payload))
    return envelope_response(user_schema.dump(user), status=HTTPStatus.CREATED)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue an access/refresh pair."""

    payload = login_schema.load(json_body())
    manager = session_manager()
    identity = manager.authenticate(LoginIn(**payload))
    pair = manager.login(identity)
    return envelope_response(token_schema.dump(pair), message="Login successfully")


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token; each refresh token works once."""

    payload = refresh_schema.load(json_body())
    pair = session_manager().refresh(RefreshIn(**payload))
    return envelope_response(token_schema.dump(pair))


@bp.post("/logout")
@timing
def logout():
    """Revoke the bearer access token and the optional refresh token.

    The bearer token is read raw so already revoked or expired tokens can
    still be logged out.
    """

    payload = logout_schema.load(json_body())
    session_manager().logout(
        LogoutIn(access_token=bearer_token(), refresh_token=payload["refresh_token"])
    )
    return envelope_response(None, message="Logout successfully")


@bp.post("/change-password")
@require_auth
@timing
def change_password():
    payload = change_password_schema.load(json_body())
    session_manager().change_password(ChangePasswordIn(user_id=current_user_id(), **payload))
    return envelope_response(None, message="Password changed successfully")


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated identity."""

    user = UserService().get_profile(current_user_id())
    return envelope_response(user_schema.dump(user))


@bp.post("/oauth/<provider>")
@timing
def oauth_login(provider: str):
    """Exchange a provider access token for our token pair."""

    if provider not in OAUTH_PROVIDERS:
        raise NotFound(f"Unsupported OAuth provider: {provider}")
    payload = oauth_schema.load(json_body())
    profile = oauth_client().fetch_profile(provider, payload["access_token"])
    pair = session_manager().oauth_login(profile)
    return envelope_response(token_schema.dump(pair), message="Login successfully")


@bp.post("/forgot-password")
def forgot_password():
    raise APIError(
        "Password recovery is not available",
        status_code=HTTPStatus.NOT_IMPLEMENTED,
        code="not_implemented",
    )
