# relay_indexer/cli/__main__.py

"""
Relay Indexer CLI

Usage: python -m relay_indexer.cli [command] [options]
"""

import atexit
from pathlib import Path

import click

from .context import CLIContext
from ..core.logging import IndexerLogger


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Relay Indexer - chain event indexing for the relay service

    Commands for running indexer jobs, starting the scheduler and managing
    the database schema.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    if 'cli_context' not in ctx.obj:
        cli_context = CLIContext()
        ctx.obj['cli_context'] = cli_context
        atexit.register(cli_context.shutdown)

    IndexerLogger.configure(
        log_dir=Path.cwd() / "logs",
        log_level="DEBUG" if verbose else "INFO",
        console_enabled=True,
        file_enabled=False,
        structured_format=verbose,
    )


from .commands.jobs import jobs
from .commands.db import db

cli.add_command(jobs)
cli.add_command(db)


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
