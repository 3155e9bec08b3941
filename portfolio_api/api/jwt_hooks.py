"""flask-jwt-extended callbacks: per-kind secrets, revocation and 401 problems."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import current_app

from portfolio_api.core.errors import _as_problem, problem_response
from portfolio_api.core.extensions import jwt

log = logging.getLogger(__name__)


def _unauthorized(message: str, code: str = "unauthorized"):
    problem = _as_problem(status=HTTPStatus.UNAUTHORIZED, code=code, message=message)
    log.warning("JWT rejected: code=%s request_id=%s", code, problem.get("request_id"))
    return problem_response(problem, HTTPStatus.UNAUTHORIZED)


def init_app(app) -> None:  # noqa: ARG001 - signature mirrors other init_app hooks
    """Register the JWT callbacks on the shared :data:`jwt` manager."""

    @jwt.decode_key_loader
    def _decode_key(_header: dict[str, Any], payload: dict[str, Any]) -> str:
        # Refresh tokens are signed with their own secret
        cfg = current_app.config
        if payload.get("type") == "refresh":
            return cfg["JWT_REFRESH_SECRET"]
        return cfg["JWT_ACCESS_SECRET"]

    @jwt.token_in_blocklist_loader
    def _is_revoked(_header: dict[str, Any], payload: dict[str, Any]) -> bool:
        from portfolio_api.api.deps import session_manager

        return not session_manager().validate_claims(payload)

    @jwt.unauthorized_loader
    def _missing(reason: str):
        return _unauthorized(reason or "Missing access token")

    @jwt.invalid_token_loader
    def _invalid(reason: str):
        return _unauthorized(reason or "Invalid token", code="invalid_token")

    @jwt.expired_token_loader
    def _expired(_header: dict[str, Any], _payload: dict[str, Any]):
        return _unauthorized("Token has expired", code="token_expired")

    @jwt.revoked_token_loader
    def _revoked(_header: dict[str, Any], _payload: dict[str, Any]):
        return _unauthorized("Token has been revoked", code="token_revoked")

    @jwt.needs_fresh_token_loader
    def _not_fresh(_header: dict[str, Any], _payload: dict[str, Any]):
        return _unauthorized("Fresh token required", code="fresh_token_required")

    @jwt.user_lookup_error_loader
    def _lookup_failed(_header: dict[str, Any], _payload: dict[str, Any]):
        return _unauthorized("Unknown subject")
