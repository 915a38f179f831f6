# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User bootstrap/inspection:
# - python -m flask users create --account admin --code A01 --name "Admin" --user-type admin
#   Create a user directly (the only way to create the first admin).
# - python -m flask users list
#
# Maintenance:
# - python -m flask tokens cleanup --older-than-days 30
#   Delete auth tokens that expired more than N days ago.

import click
from flask import current_app
from flask.cli import with_appcontext

from .container import ServiceContainer
from .extensions import db
from .identifiers import UserCode
from .models import User
from .models.auth import USER_TYPE_USER, VALID_USER_TYPES
from .validation import DomainError


def _container() -> ServiceContainer:
    return ServiceContainer(db.session, current_app.config)


@click.group("system")
def system_group():
    """System bootstrap and repair commands."""


@system_group.command("init-db")
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command("reset-db")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete")


@click.group("users")
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command("create")
@click.option("--account", prompt=True, help="Login account")
@click.option("--code", prompt=True, help="3-character user code")
@click.option("--name", prompt=True, help="Display name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Password")
@click.option("--user-type", type=click.Choice(sorted(VALID_USER_TYPES)), default=USER_TYPE_USER, show_default=True)
@with_appcontext
def create_user_cli(account, code, name, password, user_type):
    """
    Create a user without an acting admin.

    Same rules as the API: password strength, unique account, unique code.
    """
    container = _container()
    try:
        user_code = UserCode(code)
        password_hash = container.password_hasher.hash_validated(password)
        if container.user_repository.exists_by_account(account):
            raise click.ClickException("Account already exists")
        if container.user_repository.exists_by_code(user_code):
            raise click.ClickException("User code already exists")

        user = User(account=account, password_hash=password_hash, code=user_code, name=name, user_type=user_type)
        container.user_repository.save(user)
        db.session.commit()
    except DomainError as e:
        db.session.rollback()
        raise click.ClickException(str(e))

    click.echo(f"PASS Created {user_type} {account} (code {user_code}, uuid {user.uuid})")


@users_group.command("list")
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.account.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ACCOUNT':<20} {'CODE':<5} {'TYPE':<9} {'ACTIVE':<7} UUID")
    for user in users:
        click.echo(
            f"{user.account:<20} {str(user.code):<5} {user.user_type:<9} "
            f"{'yes' if user.is_active else 'no':<7} {user.uuid}"
        )


@click.group("tokens")
def tokens_group():
    """Auth token maintenance commands."""


@tokens_group.command("cleanup")
@click.option("--older-than-days", type=int, default=30, show_default=True)
@with_appcontext
def cleanup_tokens_cli(older_than_days):
    """Delete tokens that expired more than N days ago."""
    deleted = _container().token_issuer.cleanup_expired(older_than_days=older_than_days)
    db.session.commit()
    click.echo(f"Deleted {deleted} expired tokens older than {older_than_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(tokens_group)
