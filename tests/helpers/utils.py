"""Tiny helpers shared across test modules."""

from __future__ import annotations

from typing import Any


def auth_headers(token: str | None) -> dict[str, str]:
    """Return JSON headers, with a bearer token when given."""
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def assert_envelope(body: dict[str, Any], status: int, *, paginated: bool = False) -> Any:
    """Check the success envelope shape and return its ``data``."""
    assert body["statusCode"] == status
    assert isinstance(body["message"], str) and body["message"]
    assert "data" in body
    assert ("pagination" in body) is paginated
    return body["data"]


def login(client, email: str, password: str) -> dict[str, str]:
    """Log in through the API and return ``{access_token, refresh_token}``."""
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]
