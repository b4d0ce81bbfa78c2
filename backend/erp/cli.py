# Overview: Flask CLI command groups for bootstrap and user administration.

# backend/erp/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and default admin/manager/user accounts.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --name "Admin" --email admin@erp.local --password "secret1" --role ADMIN
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .errors import DomainError
from .extensions import db
from .models import User
from .models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER, VALID_ROLES
from .services import user_service

DEFAULT_PASSWORD = "admin123"

DEFAULT_USERS = (
    ("Administrator", "admin@erp.local", ROLE_ADMIN),
    ("Manager", "manager@erp.local", ROLE_MANAGER),
    ("Operator", "user@erp.local", ROLE_USER),
)


@click.group('system')
def system_group():
    """System initialization and maintenance."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create missing tables and the default accounts.

    Safe to run more than once: existing e-mails are skipped.
    """
    click.echo("START Initializing ERP...")
    db.create_all()
    click.echo("PASS Tables ready")

    for name, email, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first() is not None:
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            user_service.create_user({
                "name": name,
                "email": email,
                "password": DEFAULT_PASSWORD,
                "role": role,
            })
            click.echo(f"PASS Created user: {email} with role '{role}'")
        except DomainError as e:
            click.echo(f"FAIL Failed to create user '{email}': {e}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for _, email, role in DEFAULT_USERS:
        click.echo(f"   {role:<8} -> {email} / {DEFAULT_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Full name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(VALID_ROLES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a new user with the default permissions of its role."""
    try:
        user = user_service.create_user({
            "name": name,
            "email": email,
            "password": password,
            "role": role,
        })
    except DomainError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("=" * 80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<30} {active_str:<8} {user.role}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
