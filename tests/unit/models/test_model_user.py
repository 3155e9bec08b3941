"""Tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from portfolio_api.models.user import Gender, SystemRole, User


class TestUser:
    def test_password_hashing(self, session):
        u = User(email="Test@Example.com", full_name="Tester")
        u.password = "secret123"
        session.add(u)
        session.flush()

        assert u.password_hash and u.password_hash != "secret123"
        assert u.verify_password("secret123") is True
        assert u.verify_password("wrong") is False

    def test_password_uses_configured_method(self, app, session):
        u = User(email="m@example.com", full_name="M")
        u.password = "secret123"

        assert u.password_hash.startswith(app.config["PASSWORD_HASH_METHOD"].split(":")[0])

    def test_password_is_write_only(self, session):
        u = User(email="a@example.com", full_name="A")
        u.password = "x1234567"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_oauth_only_identity_never_verifies(self, session):
        u = User(email=None, full_name="Social", google_id="g-1")
        session.add(u)
        session.flush()

        assert u.password_hash is None
        assert u.verify_password("anything") is False

    def test_email_normalized_and_unique(self, session):
        u1 = User(email="Alice@Example.com", full_name="Alice")
        session.add(u1)
        session.flush()
        assert u1.email == "alice@example.com"

        session.add(User(email="alice@example.com", full_name="Alice 2"))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_defaults(self, session):
        u = User(email="d@example.com", full_name="  Dee  ")
        session.add(u)
        session.flush()

        assert u.full_name == "Dee"
        assert u.roles == [SystemRole.USER.value]
        assert u.gender == Gender.OTHER
        assert u.deleted_at is None and u.is_deleted is False
        assert u.created_at is not None

    def test_roles_are_validated_and_deduplicated(self):
        u = User(email="r@example.com", full_name="R", roles=["user", SystemRole.ADMIN, "user"])

        assert u.roles == ["user", "admin"]
        assert u.has_role("admin") and u.has_role(SystemRole.USER)
        with pytest.raises(ValueError):
            User(email="x@example.com", full_name="X", roles=["root"])

    def test_basic_validations(self):
        with pytest.raises(ValueError):
            User(email="not-an-email", full_name="U")
        with pytest.raises(ValueError):
            User(email="x@example.com", full_name="   ")

    def test_provider_id(self):
        u = User(email=None, full_name="F", facebook_id="fb-9")

        assert u.provider_id("facebook") == "fb-9"
        assert u.provider_id("google") is None
        with pytest.raises(ValueError):
            u.provider_id("twitter")
