"""Uniform success envelope and pagination shaping for JSON responses."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from http import HTTPStatus
from typing import Any

from flask import Response, jsonify

from portfolio_api.services._shared.dto import PageOut

STATUS_MESSAGES: dict[int, str] = {
    HTTPStatus.OK: "Success",
    HTTPStatus.CREATED: "Created successfully",
    HTTPStatus.ACCEPTED: "Accepted",
    HTTPStatus.NO_CONTENT: "No content",
}


def default_message(status: int) -> str:
    """Return the stock message for ``status`` (``HTTPStatus`` phrase as fallback)."""
    try:
        return STATUS_MESSAGES.get(status) or HTTPStatus(status).phrase
    except ValueError:
        return "Success"


def envelope(
    data: Any,
    *,
    status: int = HTTPStatus.OK,
    message: str | None = None,
    pagination: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build ``{statusCode, message, data, pagination?}``.

    :param data: JSON-serializable payload (``None`` allowed).
    :param status: HTTP status reported in ``statusCode``.
    :param message: Overrides the stock message for ``status``.
    :param pagination: Pagination meta; omitted from the body when ``None``.
    :rtype: dict[str, Any]
    """
    body: dict[str, Any] = {
        "statusCode": int(status),
        "message": message or default_message(status),
        "data": data,
    }
    if pagination is not None:
        body["pagination"] = dict(pagination)
    return body


def to_paginated_response(
    page: PageOut[Any], dump: Callable[[Any], Any] | None = None
) -> dict[str, Any]:
    """Convert a service page into ``{items, meta}``.

    :param page: Page produced by a service.
    :param dump: Serializer applied to the items (e.g. ``schema.dump``).
    :returns: ``{"items": [...], "meta": {totalItems, itemCount, ...}}``.
    """
    items = dump(page.items) if dump else list(page.items)
    return {"items": items, "meta": page.meta.to_dict()}


def envelope_response(
    data: Any,
    *,
    status: int = HTTPStatus.OK,
    message: str | None = None,
    pagination: Mapping[str, Any] | None = None,
) -> Response:
    """Wrap :func:`envelope` in a Flask JSON response."""
    response = jsonify(envelope(data, status=status, message=message, pagination=pagination))
    response.status_code = int(status)
    return response


def paginated_response(page: PageOut[Any], dump: Callable[[Any], Any]) -> Response:
    """Lift ``items`` into ``data`` and ``meta`` into ``pagination``."""
    shaped = to_paginated_response(page, dump)
    return envelope_response(shaped["items"], pagination=shaped["meta"])
