"""Admin user management and self-service profile over HTTP."""

from __future__ import annotations

import pytest

from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.utils import assert_envelope, auth_headers, login

USERS = "/api/v1/users"


@pytest.fixture()
def admin_headers(client):
    admin = UserFactory(admin=True, email="root@example.com")
    tokens = login(client, admin.email, DEFAULT_PASSWORD)
    return auth_headers(tokens["access_token"])


@pytest.fixture()
def user_headers(client):
    user = UserFactory(email="plain@example.com")
    tokens = login(client, user.email, DEFAULT_PASSWORD)
    return auth_headers(tokens["access_token"])


def test_list_users_is_paginated(client, admin_headers):
    for i in range(4):
        UserFactory(email=f"member{i}@example.com")

    resp = client.get(
        f"{USERS}?email=member&limit=3&page=1&sortBy=email&sortOrder=asc",
        headers=admin_headers,
    )

    assert resp.status_code == 200
    body = resp.get_json()
    data = assert_envelope(body, 200, paginated=True)
    assert [u["email"] for u in data] == [
        "member0@example.com",
        "member1@example.com",
        "member2@example.com",
    ]
    assert body["pagination"] == {
        "totalItems": 4,
        "itemCount": 3,
        "itemsPerPage": 3,
        "totalPages": 2,
        "currentPage": 1,
    }


def test_list_users_rejects_bad_query(client, admin_headers):
    resp = client.get(f"{USERS}?limit=500", headers=admin_headers)

    assert resp.status_code == 422


def test_non_admin_is_forbidden(client, user_headers):
    resp = client.get(USERS, headers=user_headers)

    assert resp.status_code == 403
    assert resp.get_json()["code"] == "forbidden"


def test_anonymous_is_unauthorized(client):
    assert client.get(USERS).status_code == 401


def test_admin_get_update_delete(client, admin_headers):
    target = UserFactory(full_name="Target")

    resp = client.get(f"{USERS}/{target.id}", headers=admin_headers)
    assert assert_envelope(resp.get_json(), 200)["fullName"] == "Target"

    resp = client.patch(
        f"{USERS}/{target.id}",
        json={"fullName": "Promoted", "roles": ["user", "admin"]},
        headers=admin_headers,
    )
    data = assert_envelope(resp.get_json(), 200)
    assert data["fullName"] == "Promoted"
    assert set(data["roles"]) == {"user", "admin"}

    resp = client.delete(f"{USERS}/{target.id}", headers=admin_headers)
    assert resp.get_json()["message"] == "Deleted successfully"

    assert client.get(f"{USERS}/{target.id}", headers=admin_headers).status_code == 404


def test_deleted_user_cannot_log_in(client, admin_headers):
    target = UserFactory()
    client.delete(f"{USERS}/{target.id}", headers=admin_headers)

    resp = client.post(
        "/api/v1/auth/login", json={"email": target.email, "password": DEFAULT_PASSWORD}
    )

    assert resp.status_code == 401


def test_profile_read_and_update(client, user_headers):
    resp = client.get(f"{USERS}/profile", headers=user_headers)
    assert assert_envelope(resp.get_json(), 200)["email"] == "plain@example.com"

    resp = client.patch(
        f"{USERS}/profile",
        json={"fullName": "Plain Jane", "gender": "female"},
        headers=user_headers,
    )

    data = assert_envelope(resp.get_json(), 200)
    assert data["fullName"] == "Plain Jane"
    assert data["gender"] == "female"


def test_profile_cannot_change_roles(client, user_headers):
    resp = client.patch(f"{USERS}/profile", json={"roles": ["admin"]}, headers=user_headers)

    assert resp.status_code == 422
