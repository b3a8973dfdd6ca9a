# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/almacen/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent: writes seed data for every collection that was never saved.
# - python -m flask system reset --yes
#   DEV/TEST only: overwrite every collection with seed data and end the session.
# - python -m flask system create-tables
#   Create the stored_collections table without running migrations.
#
# Permission inspection:
# - python -m flask perms list --role operator
#   List capabilities (optionally for one role).
# - python -m flask perms check manager APPROVE_MOVEMENT
#   Check whether a role holds a capability.
#
# Workflow queues:
# - python -m flask movements pending
# - python -m flask incidents pending
#
# Reports:
# - python -m flask reports low-stock

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import ROLES
from .permissions import PERMISSION_DEFINITIONS
from .services import permission_service
from .services import movement_service
from .services import incident_service
from .services import reporting_service
from .time_utils import to_utc_z


def _state():
    return current_app.extensions["almacen"]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Write seed data for collections that have never been saved."""
    click.echo("START Initializing Almacen storage...")
    written = _state().seed_missing()
    if written:
        click.echo(f"PASS Seeded: {', '.join(written)}")
    else:
        click.echo("PASS All collections already present")


@system_group.command('reset')
@click.option('--yes', is_flag=True, help='Confirm overwriting all data')
@with_appcontext
def reset_system(yes):
    """Overwrite every collection with seed data (deletes movements and incidents)."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    _state().reset()
    click.echo("PASS All collections reset to seed data")


@system_group.command('create-tables')
@with_appcontext
def create_tables():
    """Create database tables (stored_collections)."""
    db.create_all()
    click.echo("PASS Tables created")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(ROLES), help='Filter by role name')
@with_appcontext
def list_permissions_cli(role):
    """List all capabilities, optionally those of one role."""
    granted = permission_service.get_role_permissions(role) if role else None
    if role:
        click.echo(f"Permissions for role '{role}':")

    for code, name, _description, category in PERMISSION_DEFINITIONS:
        if granted is not None and code not in granted:
            continue
        click.echo(f"  [{category}] {code}: {name}")


@perms_group.command('check')
@click.argument('role')
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(role, permission_code):
    """Check if a role holds a specific capability."""
    if permission_service.can_perform(role, permission_code):
        click.echo(f"PASS Role '{role}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL Role '{role}' DOES NOT have permission '{permission_code}'")


@click.group('movements')
def movements_group():
    """Movement queue inspection."""


@movements_group.command('pending')
@with_appcontext
def pending_movements_cli():
    """List movements awaiting approval."""
    items = movement_service.list_movements(_state(), status="pendiente")
    if not items:
        click.echo("No pending movements")
        return
    for m in items:
        click.echo(
            f"  {m.id}  {to_utc_z(m.date)}  {m.type:<7} x{m.quantity:<5} "
            f"{m.product_name}  (by {m.requested_by})"
        )


@click.group('incidents')
def incidents_group():
    """Incident queue inspection."""


@incidents_group.command('pending')
@with_appcontext
def pending_incidents_cli():
    """List incidents awaiting resolution."""
    items = incident_service.list_incidents(_state(), status="pendiente")
    if not items:
        click.echo("No pending incidents")
        return
    for i in items:
        click.echo(
            f"  {i.id}  {to_utc_z(i.reported_at)}  {i.type:<11} x{i.quantity:<5} "
            f"{i.product_name}  (by {i.reported_by})"
        )


@click.group('reports')
def reports_group():
    """Read-only reports."""


@reports_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """List products at or below their minimum stock."""
    items = reporting_service.low_stock(_state())
    if not items:
        click.echo("PASS No products below minimum stock")
        return
    for p in items:
        click.echo(f"  WARN  {p.id}  {p.name}: {p.quantity} (min {p.min_stock})  {p.location}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(movements_group)
    app.cli.add_command(incidents_group)
    app.cli.add_command(reports_group)
