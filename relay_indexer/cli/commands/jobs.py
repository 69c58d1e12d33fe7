# relay_indexer/cli/commands/jobs.py

"""
Job CLI Commands

Run individual jobs on demand, run every job once, or start the scheduler
and block until interrupted.
"""

import signal
from typing import Optional

import click

from ...core.errors import IndexerError
from ...types.chain import RunStatus, RunSummary

STATUS_ICONS = {
    RunStatus.IDLE: '💤',
    RunStatus.SUCCESS: '✅',
    RunStatus.PARTIAL: '⚠️',
    RunStatus.HELD: '⏸️',
    RunStatus.FAILED: '❌',
}


def print_summary(summary: Optional[RunSummary], job_name: str) -> None:
    if summary is None:
        click.echo(f"⏭️  {job_name}: already running, trigger ignored")
        return

    icon = STATUS_ICONS.get(summary.status, '•')
    line = f"{icon} {summary.job_name}: {summary.status}"
    if summary.window is not None:
        line += f" blocks {summary.window}"
    click.echo(line)

    if summary.status != RunStatus.IDLE:
        click.echo(f"   Indexed: {summary.indexed}  Skipped: {summary.skipped}  "
                   f"Failed: {summary.failed}  ({summary.duration_ms} ms)")
    if summary.outcomes:
        breakdown = ', '.join(f"{outcome}={count}" for outcome, count in sorted(summary.outcomes.items()))
        click.echo(f"   Outcomes: {breakdown}")
    if summary.error:
        click.echo(f"   Error: {summary.error}")


@click.group()
def jobs():
    """Run and inspect indexer jobs"""
    pass


@jobs.command('list')
@click.pass_context
def list_jobs(ctx):
    """List scheduled jobs with their cadence"""
    cli_context = ctx.obj['cli_context']
    try:
        indexer = cli_context.indexer
    except IndexerError as e:
        raise click.ClickException(str(e))

    if not indexer.jobs:
        click.echo("No jobs enabled")
        return

    click.echo("📋 Scheduled jobs:")
    for name in indexer.jobs:
        cadence = indexer.scheduler.cadence_for(name)
        click.echo(f"   {name:<24} {cadence.expression if cadence else '-'}")


@jobs.command('run')
@click.argument('job_name')
@click.pass_context
def run_job(ctx, job_name):
    """Run one job once

    Examples:
        # Index identity registry events up to the confirmed head
        jobs run agent_indexer

        # Aliases are accepted
        jobs run escrow
    """
    cli_context = ctx.obj['cli_context']
    try:
        job = cli_context.indexer.get_job(job_name)
    except IndexerError as e:
        raise click.ClickException(str(e))

    summary = job.run()
    print_summary(summary, job.name)
    if summary is not None and not summary.ok:
        raise click.ClickException(f"{job.name} failed")


@jobs.command('run-all')
@click.pass_context
def run_all(ctx):
    """Run every enabled job once, in registration order"""
    cli_context = ctx.obj['cli_context']
    try:
        indexer = cli_context.indexer
    except IndexerError as e:
        raise click.ClickException(str(e))

    summaries = indexer.scheduler.run_all()
    failed = []
    for name, summary in summaries.items():
        print_summary(summary, name)
        if summary is not None and not summary.ok:
            failed.append(name)

    if failed:
        raise click.ClickException(f"Failed jobs: {', '.join(failed)}")


@jobs.command('start')
@click.option('--no-initial-run', is_flag=True, help='Wait for the first cadence tick instead of running at startup')
@click.pass_context
def start(ctx, no_initial_run):
    """Start the scheduler and run until SIGINT/SIGTERM"""
    cli_context = ctx.obj['cli_context']
    try:
        indexer = cli_context.indexer
    except IndexerError as e:
        raise click.ClickException(str(e))

    scheduler = indexer.scheduler

    def handle_signal(signum, frame):
        click.echo(f"🛑 Received signal {signum}, stopping")
        scheduler.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    click.echo(f"🚀 Starting {len(indexer.jobs)} jobs")
    scheduler.start(run_immediately=not no_initial_run)
    scheduler.wait()
    click.echo("👋 Scheduler stopped")


@jobs.command('status')
@click.pass_context
def status(ctx):
    """Show cursor positions, replay points and unresolved event failures"""
    cli_context = ctx.obj['cli_context']
    try:
        repos = cli_context.indexer.repos
    except IndexerError as e:
        raise click.ClickException(str(e))

    cursors = repos.cursors.list_all()
    if not cursors:
        click.echo("No job has run yet")
    else:
        click.echo("📍 Cursors:")
        for cursor in cursors:
            last_block = cursor.last_block if cursor.last_block is not None else '-'
            last_run = cursor.last_run_at.isoformat() if cursor.last_run_at else '-'
            click.echo(f"   {cursor.job_name:<24} block={last_block:<12} last_run={last_run}")

    failures = repos.failed_events.unresolved(limit=20)
    if failures:
        click.echo("🔁 Replay needed from:")
        for job_name in sorted({failure.job_name for failure in failures}):
            lowest = repos.failed_events.lowest_unresolved_block(job_name)
            click.echo(f"   {job_name:<24} block={lowest}")

        click.echo(f"⚠️  Unresolved event failures (showing {len(failures)}):")
        for failure in failures:
            click.echo(f"   {failure.job_name} {failure.event_name} block={failure.block_number} "
                       f"tx={failure.tx_hash}:{failure.log_index} attempts={failure.attempts}")
