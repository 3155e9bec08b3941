"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from portfolio_api.api.deps import timing
from portfolio_api.api.envelope import envelope_response
from portfolio_api.core.extensions import REDIS_EXTENSION_KEY, db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report database and cache reachability."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"

    cache_status = "ok"
    client = current_app.extensions.get(REDIS_EXTENSION_KEY)
    if client is None:
        cache_status = "missing"
    else:
        try:
            client.ping()
        except RedisError:
            current_app.logger.exception("healthcheck.cache_error")
            cache_status = "fail"

    payload = {
        "status": "ok" if db_status == cache_status == "ok" else "degraded",
        "db": db_status,
        "cache": cache_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return envelope_response(payload)
