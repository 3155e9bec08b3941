"""Structured logging configuration with request correlation."""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, Response, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")
REDACTED = "***REDACTED***"

# Substring matches, compared case-insensitively
SENSITIVE_HEADERS = (
    "authorization",
    "cookie",
    "x-auth-token",
    "x-api-key",
    "api-key",
    "x-access-token",
)
SENSITIVE_KEYS = (
    "password",
    "token",
    "secret",
    "authorization",
    "apikey",
    "api_key",
    "credit",
)

# Record attributes copied into the JSON payload when present
EXTRA_KEYS = ("endpoint", "elapsed_ms", "method", "path", "status", "headers", "body", "remote_addr")

request_log = logging.getLogger("portfolio_api.request")


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting logic
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Ensure a ``request_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary."""

    if has_request_context():
        if hasattr(g, "request_id"):
            return g.request_id  # type: ignore[return-value]
        for header in CORRELATION_HEADERS:
            value = request.headers.get(header)
            if value:
                g.request_id = value
                return value
        request_id = str(uuid4())
        g.request_id = request_id
        return request_id
    return str(uuid4())


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the root logger with JSON-formatted stdout output."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    level_value: int | str = level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level_value = resolved if isinstance(resolved, int) else level.upper()
    root.setLevel(level_value)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` with credential-bearing values masked."""

    cleaned: dict[str, str] = {}
    for key, value in headers.items():
        lowered = key.lower()
        cleaned[key] = REDACTED if any(s in lowered for s in SENSITIVE_HEADERS) else value
    return cleaned


def redact_payload(data: Any) -> Any:
    """
    Recursively mask values whose key looks like a secret.

    Keys are matched case-insensitively by substring, so ``refreshToken``,
    ``access_token`` and ``currentPassword`` are all masked.

    :param data: Decoded JSON value (mapping, list or scalar).
    :returns: A redacted deep copy; scalars are returned unchanged.
    """
    if isinstance(data, Mapping):
        result: dict[str, Any] = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if any(s in lowered for s in SENSITIVE_KEYS):
                result[key] = REDACTED
            else:
                result[key] = redact_payload(value)
        return result
    if isinstance(data, list):
        return [redact_payload(item) for item in data]
    return data


def init_app(app: Flask) -> None:
    """Inject request-id middleware and request/response logging.

    Every request emits ``request.started`` and ``request.completed``. Responses
    with a status of 400 or more are logged as warnings, and requests slower
    than ``SLOW_REQUEST_MS`` add a ``request.slow`` warning. Headers (and JSON
    bodies when ``LOG_REQUEST_BODIES`` is on) are logged at debug level after
    redaction.
    """

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _start_request_log() -> None:  # pragma: no cover - integration glue
        ensure_request_id()
        g.request_started_at = time.perf_counter()
        request_log.info(
            "request.started",
            extra={"method": request.method, "path": request.path, "remote_addr": request.remote_addr},
        )
        if request_log.isEnabledFor(logging.DEBUG):
            details: dict[str, Any] = {"headers": redact_headers(dict(request.headers))}
            if app.config.get("LOG_REQUEST_BODIES") and request.is_json:
                details["body"] = redact_payload(request.get_json(silent=True))
            request_log.debug("request.details", extra=details)

    @app.after_request
    def _finish_request_log(response: Response) -> Response:  # pragma: no cover - integration glue
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        started = g.pop("request_started_at", None)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2) if started else None
        extra = {
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "elapsed_ms": elapsed_ms,
            "endpoint": request.endpoint,
        }
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_log.log(level, "request.completed", extra=extra)
        threshold = int(app.config.get("SLOW_REQUEST_MS", 1000))
        if elapsed_ms is not None and elapsed_ms > threshold:
            request_log.warning("request.slow", extra=extra)
        return response


__all__ = [
    "configure_logging",
    "init_app",
    "ensure_request_id",
    "redact_headers",
    "redact_payload",
]
