"""Tests for the ``flask users`` command group."""

from __future__ import annotations

from portfolio_api.cli.users import users_cli
from portfolio_api.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
from tests.factories.user import UserFactory


def test_create_admin(app, session):
    runner = app.test_cli_runner()

    result = runner.invoke(
        users_cli,
        ["create-admin", "--email", "boss@example.com", "--full-name", "Boss"],
        input="Sup3rSecret\nSup3rSecret\n",
    )

    assert result.exit_code == 0, result.output
    created = SQLAlchemyCredentialStore().find_by_email("boss@example.com")
    assert created is not None
    assert "admin" in created.roles


def test_create_admin_rejects_short_password(app, session):
    result = app.test_cli_runner().invoke(
        users_cli,
        ["create-admin", "--email", "boss@example.com", "--full-name", "Boss"],
        input="short\nshort\n",
    )

    assert result.exit_code != 0
    assert SQLAlchemyCredentialStore().find_by_email("boss@example.com") is None


def test_promote(app, session):
    user = UserFactory(email="member@example.com")

    result = app.test_cli_runner().invoke(users_cli, ["promote", "member@example.com"])

    assert result.exit_code == 0, result.output
    assert "admin" in SQLAlchemyCredentialStore().find_by_id(user.id).roles


def test_promote_unknown_email(app, session):
    result = app.test_cli_runner().invoke(users_cli, ["promote", "nobody@example.com"])

    assert result.exit_code == 1
    assert "No active user" in result.output
