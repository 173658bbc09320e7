# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/filterops/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--admin-email admin@filterops.local] [--admin-password ...]
#   Create tables and a first admin account if no admin exists.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --email office@filterops.local --password "secret1" --role back_office
#   Create a user (prompts if options are omitted).
#
# Orders:
# - python -m flask orders cleanup-orphans [--force]
#   List series members whose main order is gone; delete them with --force.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired and revoked session tokens.

import click
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import User
from .permissions import UserRole
from .services import maintenance_service, user_service


ROLE_CHOICES = [role.value for role in UserRole]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default='admin@filterops.local', show_default=True)
@click.option('--admin-password', default='Password123!', show_default=True)
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Create all tables and a first admin account.

    Idempotent: skips the admin when any admin already exists.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing system...")
    db.create_all()
    click.echo("PASS Tables created")

    existing = db.session.query(User).filter_by(role=UserRole.ADMIN.value).first()
    if existing:
        click.echo(f"WARN  Admin '{existing.email}' already exists, skipping...")
        return

    try:
        user = user_service.bootstrap_user(admin_email, admin_password, "System", "Admin", UserRole.ADMIN.value)
    except ApiError as e:
        click.echo(f"FAIL Failed to create admin: {e.message}")
        return
    click.echo(f"PASS Created admin: {user.email} (ID: {user.id})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("This will delete ALL data. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@click.option('--role', type=click.Choice(ROLE_CHOICES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, password, first_name, last_name, role):
    """
    Create a new user with the default page permissions of the role.

    Password must be at least 6 characters.
    """
    try:
        user = user_service.bootstrap_user(email, password, first_name, last_name, role)
    except ApiError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        if e.details:
            click.echo(f"     {e.details}")
        return

    click.echo(f"PASS Created user: {user.email} with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = user_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<30} {'Email':<35} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.display_name:<30} {user.email:<35} {active_str:<8} {user.role}")


@click.group('orders')
def orders_group():
    """Order inspection and repair commands."""


@orders_group.command('cleanup-orphans')
@click.option('--force', is_flag=True, help='Delete the orphaned orders instead of listing them')
@with_appcontext
def cleanup_orphans(force):
    """
    Find recurring members whose main order no longer exists.

    Dry run by default; pass --force to delete.
    """
    orphans = maintenance_service.find_orphaned_orders()
    if not orphans:
        click.echo("PASS No orphaned orders found.")
        return

    click.echo(f"WARN  Found {len(orphans)} orphaned orders:")
    for order in orphans:
        click.echo(f"  {order.order_number:<16} series {order.original_order_number:<16} {order.start_date} {order.status}")

    if not force:
        click.echo("Dry run. Re-run with --force to delete.")
        return

    deleted = maintenance_service.delete_orphaned_orders(orphans)
    click.echo(f"PASS Deleted {deleted} orphaned orders.")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked session tokens."""
    deleted = maintenance_service.cleanup_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(maintenance_group)
