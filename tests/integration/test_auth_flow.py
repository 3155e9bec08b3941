"""End-to-end authentication flows over the HTTP API."""

from __future__ import annotations

from datetime import timedelta

import jwt
import responses
from freezegun import freeze_time

from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.utils import assert_envelope, auth_headers, login

API = "/api/v1/auth"


def _problem(resp, status: int, code: str | None = None) -> dict:
    assert resp.status_code == status
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["status"] == status
    if code is not None:
        assert body["code"] == code
    return body


def test_register_login_refresh_logout_scenario(client, app):
    resp = client.post(
        f"{API}/register",
        json={"email": "a@x.com", "password": "pw123456", "fullName": "A"},
    )
    assert resp.status_code == 201
    user = assert_envelope(resp.get_json(), 201)
    assert user["email"] == "a@x.com"
    assert user["fullName"] == "A"
    assert "password" not in user and "passwordHash" not in user

    tokens = login(client, "a@x.com", "pw123456")
    access = jwt.decode(tokens["access_token"], options={"verify_signature": False})
    refresh = jwt.decode(tokens["refresh_token"], options={"verify_signature": False})
    assert access["jti"] != refresh["jti"]

    resp = client.post(f"{API}/refresh", json={"refreshToken": tokens["refresh_token"]})
    assert resp.status_code == 200
    rotated = assert_envelope(resp.get_json(), 200)
    assert rotated["refresh_token"] != tokens["refresh_token"]

    replay = client.post(f"{API}/refresh", json={"refreshToken": tokens["refresh_token"]})
    _problem(replay, 401, "unauthorized")

    resp = client.post(
        f"{API}/logout",
        json={"refreshToken": rotated["refresh_token"]},
        headers=auth_headers(rotated["access_token"]),
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Logout successfully"
    assert body["data"] is None

    me = client.get(f"{API}/me", headers=auth_headers(rotated["access_token"]))
    _problem(me, 401, "token_revoked")
    again = client.post(f"{API}/refresh", json={"refreshToken": rotated["refresh_token"]})
    _problem(again, 401)


def test_register_duplicate_email_conflicts(client):
    UserFactory(email="dup@example.com")

    resp = client.post(
        f"{API}/register",
        json={"email": "dup@example.com", "password": "pw123456", "fullName": "Dup"},
    )

    _problem(resp, 409, "conflict")


def test_register_validation_error(client):
    resp = client.post(f"{API}/register", json={"email": "nope", "password": "short"})

    body = _problem(resp, 422, "validation_error")
    assert {"email", "password", "fullName"} <= set(body["details"]["errors"])


def test_login_with_wrong_password(client):
    user = UserFactory()

    resp = client.post(f"{API}/login", json={"email": user.email, "password": "wrong-one"})

    _problem(resp, 401, "unauthorized")


def test_login_message(client):
    user = UserFactory()

    resp = client.post(f"{API}/login", json={"email": user.email, "password": DEFAULT_PASSWORD})

    assert resp.get_json()["message"] == "Login successfully"


def test_me_requires_token(client):
    _problem(client.get(f"{API}/me"), 401)


def test_me_returns_identity(client):
    user = UserFactory(full_name="Current User")
    tokens = login(client, user.email, DEFAULT_PASSWORD)

    resp = client.get(f"{API}/me", headers=auth_headers(tokens["access_token"]))

    data = assert_envelope(resp.get_json(), 200)
    assert data["id"] == user.id
    assert data["fullName"] == "Current User"


def test_refresh_token_is_rejected_as_bearer(client):
    user = UserFactory()
    tokens = login(client, user.email, DEFAULT_PASSWORD)

    resp = client.get(f"{API}/me", headers=auth_headers(tokens["refresh_token"]))

    _problem(resp, 401)


def test_token_signed_with_wrong_secret_is_rejected(client):
    forged = jwt.encode(
        {"sub": "1", "jti": "x", "type": "access", "iat": 1, "exp": 9999999999},
        "not-the-secret-not-the-secret-not-the-secret",
        algorithm="HS256",
    )

    _problem(client.get(f"{API}/me", headers=auth_headers(forged)), 401, "invalid_token")


def test_logout_without_tokens_still_succeeds(client):
    resp = client.post(f"{API}/logout", json={})

    assert resp.status_code == 200


def test_change_password_retires_old_tokens(client):
    user = UserFactory()
    with freeze_time("2025-01-01 12:00:00") as frozen:
        old = login(client, user.email, DEFAULT_PASSWORD)
        frozen.tick(timedelta(seconds=2))

        resp = client.post(
            f"{API}/change-password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "Brand-new-pw1"},
            headers=auth_headers(old["access_token"]),
        )
        assert resp.status_code == 200

        _problem(client.get(f"{API}/me", headers=auth_headers(old["access_token"])), 401)
        _problem(
            client.post(f"{API}/refresh", json={"refreshToken": old["refresh_token"]}), 401
        )

        fresh = login(client, user.email, "Brand-new-pw1")
        resp = client.get(f"{API}/me", headers=auth_headers(fresh["access_token"]))
        assert resp.status_code == 200


def test_change_password_wrong_current(client):
    user = UserFactory()
    tokens = login(client, user.email, DEFAULT_PASSWORD)

    resp = client.post(
        f"{API}/change-password",
        json={"currentPassword": "incorrect", "newPassword": "Brand-new-pw1"},
        headers=auth_headers(tokens["access_token"]),
    )

    _problem(resp, 401, "unauthorized")


def test_forgot_password_is_not_implemented(client):
    resp = client.post(f"{API}/forgot-password", json={"email": "a@x.com"})

    _problem(resp, 501, "not_implemented")


@responses.activate
def test_oauth_google_login(client, app):
    responses.add(
        responses.GET,
        app.config["OAUTH_GOOGLE_USERINFO_URL"],
        json={
            "sub": "google-123",
            "email": "g@example.com",
            "email_verified": True,
            "name": "Gee",
            "picture": "https://img.example.com/g.png",
        },
        status=200,
    )

    resp = client.post(f"{API}/oauth/google", json={"accessToken": "provider-token"})

    assert resp.status_code == 200
    tokens = assert_envelope(resp.get_json(), 200)
    me = client.get(f"{API}/me", headers=auth_headers(tokens["access_token"]))
    data = me.get_json()["data"]
    assert data["googleId"] == "google-123"
    assert data["email"] == "g@example.com"
    assert responses.calls[0].request.headers["Authorization"] == "Bearer provider-token"


@responses.activate
def test_oauth_rejected_provider_token(client, app):
    responses.add(responses.GET, app.config["OAUTH_GOOGLE_USERINFO_URL"], status=401)

    resp = client.post(f"{API}/oauth/google", json={"accessToken": "expired"})

    _problem(resp, 401)


def test_oauth_unknown_provider(client):
    resp = client.post(f"{API}/oauth/myspace", json={"accessToken": "t"})

    _problem(resp, 404, "not_found")
