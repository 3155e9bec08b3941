"""Flask CLI commands for bootstrapping administrator accounts."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from portfolio_api.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
from portfolio_api.models.user import SystemRole
from portfolio_api.services._shared.errors import ServiceError
from portfolio_api.services.users.dto import UserUpdateIn
from portfolio_api.services.users.service import UserService

LOGGER = logging.getLogger(__name__)

ADMIN_ROLES = (SystemRole.USER.value, SystemRole.ADMIN.value)


@click.group("users")
def users_cli() -> None:
    """Manage user accounts from the command line."""


@users_cli.command("create-admin")
@click.option("--email", required=True, help="Login email of the new administrator.")
@click.option("--full-name", required=True, help="Display name.")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin_command(email: str, full_name: str, password: str) -> None:
    """Create an identity holding the ``admin`` role."""
    if len(password) < 8:
        raise click.BadParameter("must be at least 8 characters", param_hint="--password")
    store = SQLAlchemyCredentialStore()
    try:
        if store.exists_by_email(email):
            raise click.ClickException(f"A user with email {email} already exists.")
        user = store.create(full_name=full_name, email=email, password=password, roles=ADMIN_ROLES)
    except (ServiceError, ValueError) as exc:
        raise click.ClickException(f"Could not create admin: {exc}") from exc
    LOGGER.info("Admin created: id=%s", user.id)
    click.echo(f"Created admin {user.email} (id={user.id})")


@users_cli.command("promote")
@click.argument("email")
@with_appcontext
def promote_command(email: str) -> None:
    """Grant the ``admin`` role to an existing user."""
    store = SQLAlchemyCredentialStore()
    try:
        user = store.find_by_email(email)
        if user is None:
            raise click.ClickException(f"No active user with email {email}.")
        if SystemRole.ADMIN.value in user.roles:
            click.echo(f"{email} is already an admin")
            return
        roles = tuple(user.roles) + (SystemRole.ADMIN.value,)
        UserService().update_user(user.id, UserUpdateIn(roles=roles))
    except ServiceError as exc:
        raise click.ClickException(f"Could not promote user: {exc}") from exc
    LOGGER.info("User promoted to admin: id=%s", user.id)
    click.echo(f"Promoted {email} to admin")
