"""
Confectioner Cabinet

Application factory for the local record store: wires Flask-SQLAlchemy and
Flask-Migrate to the SQLite database, opens (and migrates) the store, and
exposes store maintenance as `flask` CLI commands.
"""

import logging

import click
from flask import Flask, current_app, g
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from config import get_config
from models import db
from services import RecordStore, StoreError, RecordNotFound, get_unit_label
from services.migration import CURRENT_SCHEMA_VERSION, pending_migrations

migrate = Migrate()


def create_app(config_name=None):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    db.init_app(app)
    migrate.init_app(app, db)

    app.cli.add_command(store_cli)
    app.cli.add_command(recipe_cost_command)
    return app


def get_store():
    """RecordStore bound to the current app context's session."""
    if 'store' not in g:
        g.store = RecordStore(db.session, current_app.config)
    return g.store


# ============================================
# INITIALIZE DATABASE
# ============================================

def init_db(app):
    """Create missing tables and open the store (runs pending migrations)."""
    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as exc:
            raise StoreError('Unable to create store tables') from exc
        return get_store().open()


# ============================================
# CLI
# ============================================

@click.group('store')
def store_cli():
    """Record store maintenance."""


@store_cli.command('upgrade')
def store_upgrade():
    """Create tables and migrate stored records to the current schema."""
    version = init_db(current_app._get_current_object())
    click.echo(f"Store is at schema v{version}")


@store_cli.command('status')
def store_status():
    """Show the schema version and record counts."""
    store = get_store()
    pending = pending_migrations(db.session)
    click.echo(f"Schema version: v{store.schema_version()} (current v{CURRENT_SCHEMA_VERSION})")
    for migration in pending:
        click.echo(f"  pending v{migration.version}: {migration.description}")
    snapshot = store.load_all()
    click.echo(f"Customers: {len(snapshot.customers)}")
    click.echo(f"Orders: {len(snapshot.orders)}")
    click.echo(f"Ingredients: {len(snapshot.ingredients)}")
    click.echo(f"Recipes: {len(snapshot.recipes)}")


@store_cli.command('seed-demo')
def store_seed_demo():
    """Replace all records with demo data."""
    init_db(current_app._get_current_object())
    snapshot = get_store().seed_demo()
    click.echo(f"Seeded {len(snapshot.ingredients)} ingredients and {len(snapshot.recipes)} recipe(s)")


@store_cli.command('clear')
@click.confirmation_option(prompt='Delete all customers, orders, ingredients and recipes?')
def store_clear():
    """Delete all business records (settings are kept)."""
    get_store().clear_all()
    click.echo('Store cleared')


@click.command('recipe-cost')
@click.argument('recipe_id')
def recipe_cost_command(recipe_id):
    """Print the total cost and cost per yield unit of a recipe."""
    store = get_store()
    try:
        costs = store.costs_for_recipe(recipe_id)
    except RecordNotFound as exc:
        raise click.ClickException(str(exc))
    currency = store.get_settings().get('currency', '')
    click.echo(f"Total cost: {costs.recipe_total_cost:.2f} {currency}")
    if costs.yield_amount:
        label = get_unit_label(costs.yield_unit)
        click.echo(f"Yield: {costs.yield_amount:g} {label}")
        click.echo(f"Cost per 1 {label}: {costs.cost_per_yield_unit:.4f} {currency}")
    else:
        click.echo('No section defines an output, cost per unit unavailable')


if __name__ == '__main__':
    init_db(create_app())
