# Overview: Flask CLI command groups for bootstrap and user inspection.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv and export JWT_SECRET.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and one user per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --phone 0600000010 --password "secret1" --name "Jane" --role ADMIN
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.users import ADMIN, CONFIRMER, SHOP_AGENT, SUPER_ADMIN, USER_ROLES, WAREHOUSE_AGENT
from .services.auth_service import PasswordValidationError, create_user, find_by_phone


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = (
    ("0600000001", "Super Admin", SUPER_ADMIN),
    ("0600000002", "Admin", ADMIN),
    ("0600000003", "Shop Agent", SHOP_AGENT),
    ("0600000004", "Warehouse Agent", WAREHOUSE_AGENT),
    ("0600000005", "Confirmer", CONFIRMER),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and seed one user per role.

    Existing phones are left untouched, so running it twice is safe.
    All seeded passwords default to "Password123!". Change them in production.
    """
    click.echo("START Initializing back-office system...")
    db.create_all()
    click.echo("PASS Tables ready")

    for phone, name, role in DEFAULT_USERS:
        if find_by_phone(phone) is not None:
            click.echo(f"SKIP {role:<16} {phone} already exists")
            continue
        create_user(phone=phone, password=DEFAULT_PASSWORD, role=role, name=name)
        click.echo(f"PASS {role:<16} {phone} created")

    click.echo("DONE System initialized.")


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
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Phone':<16} {'Name':<25} {'Role':<18} {'Active'}")
    click.echo("=" * 80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.phone:<16} {(user.name or ''):<25} {user.role:<18} {active_str}")
    click.echo("=" * 80 + "\n")


@users_group.command('create')
@click.option('--phone', prompt=True, help='Phone number (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', prompt=True, help='Display name')
@click.option('--role', type=click.Choice(USER_ROLES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(phone, password, name, role):
    """Create a new user. Password must be at least 6 characters."""
    if find_by_phone(phone) is not None:
        raise click.ClickException(f"A user with phone {phone} already exists")
    try:
        user = create_user(phone=phone, password=password, role=role, name=name)
    except PasswordValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.id} ({user.phone}, {user.role})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
