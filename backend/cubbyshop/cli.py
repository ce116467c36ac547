# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/cubbyshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and default settings.
# - python -m flask system seed-cubbies --count 20
#   Create numbered cubbies that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email seller@example.com --name "Sam Seller" --role seller
#
# Settings:
# - python -m flask settings list
# - python -m flask settings set shop_open_days '{"monday": true, ...}'
#
# Rentals:
# - python -m flask rentals preview --plan weekly [--start 2024-01-05]
#   Show the end date a rental plan would get from the open-days schedule.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Cubby, User
from .models.users import VALID_ROLES
from .services import rental_service, settings_service
from .services.open_days import InvalidConfiguration
from .services.rental_service import RentalError
from .time_utils import parse_iso_date
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables (if missing) and seed default settings."""
    click.echo("START Initializing cubby shop...")
    db.create_all()

    created = settings_service.seed_default_settings()
    for key in created:
        click.echo(f"PASS Seeded setting: {key}")
    if not created:
        click.echo("PASS Settings already present")

    click.echo("DONE System initialized.")


@system_group.command('seed-cubbies')
@click.option('--count', default=10, show_default=True, type=int, help='Number of cubbies')
@click.option('--location', default=None, help='Location label for new cubbies')
@with_appcontext
def seed_cubbies(count, location):
    """Create cubbies C-001..C-NNN that do not exist yet."""
    created = 0
    for n in range(1, count + 1):
        number = f"C-{n:03d}"
        if db.session.query(Cubby.id).filter_by(cubby_number=number).first():
            continue
        db.session.add(Cubby(cubby_number=number, location=location))
        created += 1
    db.session.commit()
    click.echo(f"PASS Created {created} cubbies")


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
    settings_service.seed_default_settings()
    click.echo("DONE Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Role'}")
    click.echo("="*80)
    for user in users:
        click.echo(f"{user.id:<5} {user.email:<35} {(user.full_name or ''):<25} {user.role}")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--name', 'full_name', default=None)
@click.option('--role', type=click.Choice(VALID_ROLES), default='seller', show_default=True)
@with_appcontext
def create_user(email, full_name, role):
    if db.session.query(User.id).filter_by(email=email).first():
        raise click.ClickException(f"User already exists: {email}")
    user = User(email=email, full_name=full_name, role=role)
    db.session.add(user)
    db.session.commit()
    click.echo(f"PASS Created {role} {email} (ID: {user.id})")


@click.group('settings')
def settings_group():
    """Shop settings."""


@settings_group.command('list')
@with_appcontext
def list_settings():
    for setting in settings_service.list_settings():
        click.echo(f"{setting.setting_key}: {json.dumps(setting.setting_value)}")


@settings_group.command('set')
@click.argument('key')
@click.argument('value')
@with_appcontext
def set_setting(key, value):
    """Set KEY to VALUE (JSON)."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"VALUE must be JSON: {exc}")
    try:
        settings_service.set_setting(key, parsed)
    except ValidationError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"PASS {key} updated")


@click.group('rentals')
def rentals_group():
    """Rental helpers."""


@rentals_group.command('preview')
@click.option('--plan', default=None, help='Rental plan (weekly, monthly, quarterly)')
@click.option('--open-days', type=int, default=None, help='Number of open days instead of a plan')
@click.option('--start', default=None, help='Start date (YYYY-MM-DD), defaults to today')
@with_appcontext
def preview_rental(plan, open_days, start):
    try:
        quote = rental_service.preview_rental(
            plan=plan,
            open_days=open_days,
            start_date=parse_iso_date(start) if start else None,
        )
    except (RentalError, InvalidConfiguration, ValueError) as exc:
        raise click.ClickException(str(exc))

    period = quote.period
    click.echo(f"Start:          {period.start_date.isoformat()}")
    click.echo(f"Open days:      {period.requested_open_days}")
    click.echo(f"End:            {period.computed_end_date.isoformat()}")
    click.echo(f"Calendar days:  {period.calendar_day_span}")
    if quote.fee_cents is not None:
        click.echo(f"Fee:            {quote.fee_cents / 100:.2f}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(settings_group)
    app.cli.add_command(rentals_group)
