# Overview: Flask CLI command groups for bootstrap, demo data and user inspection.

# tally/cli.py
# Commands Legend (run from the backend directory):
# - flask --app tally system init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - flask --app tally system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask --app tally system seed-demo --email demo@tally.local --password "Password123"
#   Create a demo account with a starter set of t-shirt materials.
# - flask --app tally system cleanup-sessions
#   Delete expired/revoked session tokens older than 30 days.
# - flask --app tally users list
# - flask --app tally users create --email you@example.com --name "You"

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Material, User
from .services.auth_service import create_user, PasswordValidationError, RegistrationError
from .services import session_service

# Starter stock mirroring a small t-shirt shop
DEMO_MATERIALS = [
    ("Gildan T-Shirt", "Red", "M", 13),
    ("Gildan T-Shirt", "Red", "L", 46),
    ("Gildan T-Shirt", "Black", "S", 21),
    ("Gildan T-Shirt", "Black", "M", 34),
    ("Gildan T-Shirt", "Black", "L", 27),
    ("Gildan T-Shirt", "White", "S", 34),
    ("Gildan T-Shirt", "White", "M", 51),
    ("Gildan T-Shirt", "White", "L", 29),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate every table."""
    if not yes:
        click.echo("ABORT Pass --yes to drop all data")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@system_group.command('seed-demo')
@click.option('--email', default='demo@tally.local', show_default=True)
@click.option('--name', default='Demo Seller', show_default=True)
@click.option('--password', default='Password123', show_default=True)
@with_appcontext
def seed_demo(email, name, password):
    """Create a demo user (if missing) and give them starter materials."""
    user = db.session.query(User).filter_by(email=email.lower()).first()
    if user is None:
        try:
            user = create_user(email=email, password=password, name=name)
        except (PasswordValidationError, RegistrationError) as e:
            click.echo(f"FAIL {e}")
            raise SystemExit(1)
        click.echo(f"PASS Created user {user.email} (ID: {user.id})")
    else:
        click.echo(f"PASS Using existing user {user.email} (ID: {user.id})")

    created = 0
    for name_, color, size, quantity in DEMO_MATERIALS:
        exists = db.session.query(Material).filter_by(
            user_id=user.id, name=name_, color=color, size=size
        ).first()
        if exists:
            continue
        db.session.add(Material(
            user_id=user.id,
            name=name_,
            color=color,
            size=size,
            quantity=quantity,
            pack_size=24,
        ))
        created += 1
    db.session.commit()
    click.echo(f"PASS Seeded {created} materials")


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} stale sessions")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found")
        return
    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.id:>4}  {u.email:<32} {u.name or '-':<24} {status}")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--name', default=None)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_command(email, name, password):
    try:
        user = create_user(email=email, password=password, name=name)
    except (PasswordValidationError, RegistrationError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user {user.email} (ID: {user.id})")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
