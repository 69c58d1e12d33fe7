# relay_indexer/cli/commands/db.py

"""
Database CLI Commands

Schema management for the indexer store. ``upgrade`` runs the Alembic
migrations shipped with the package; ``create-all`` builds the tables
straight from the ORM metadata for throwaway sqlite databases.
"""

from pathlib import Path

import click
from alembic import command
from alembic.config import Config

from ...core.errors import IndexerError

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent.parent / "database" / "migrations"


def alembic_config(database_url: str) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


@click.group()
def db():
    """Database schema management"""
    pass


@db.command('upgrade')
@click.option('--revision', default='head', help='Target revision (default: head)')
@click.pass_context
def upgrade(ctx, revision):
    """Apply migrations up to REVISION"""
    cli_context = ctx.obj['cli_context']
    try:
        url = cli_context.config.database.url
        command.upgrade(alembic_config(url), revision)
    except IndexerError as e:
        raise click.ClickException(str(e))
    click.echo(f"✅ Database upgraded to {revision}")


@db.command('create-all')
@click.pass_context
def create_all(ctx):
    """Create every table from the ORM metadata"""
    cli_context = ctx.obj['cli_context']
    try:
        cli_context.db_manager.create_all()
    except IndexerError as e:
        raise click.ClickException(str(e))
    click.echo("✅ Tables created")


@db.command('check')
@click.pass_context
def check(ctx):
    """Verify the database is reachable"""
    cli_context = ctx.obj['cli_context']
    try:
        healthy = cli_context.db_manager.health_check()
    except IndexerError as e:
        raise click.ClickException(str(e))
    if not healthy:
        raise click.ClickException("Database health check failed")
    click.echo("✅ Database reachable")
