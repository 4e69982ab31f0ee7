# difm/cli.py
"""Operational one-shot commands against the marketplace database."""
import json
import logging
import sys

import anyio
import click

from .config import Settings
from .models import FINISHED_STATUSES, JobStatus
from .stores import build_stores

log = logging.getLogger("difm.cli")

GHOST_JOB_DESCRIPTIONS = (
    "Test Reschedule Required",
    "Test Cancel from Reschedule Required",
)
DEMO_CLEANER_EMAILS = tuple(f"cleaning_{i}@demo.com" for i in range(1, 6))


def _run(ctx: click.Context, task):
    """Build the stores, run ``task(stores)``, always dispose them."""
    factory = ctx.obj.get("stores_factory", build_stores)

    async def main():
        stores = factory(Settings.from_env())
        try:
            return await task(stores)
        finally:
            await stores.aclose()

    try:
        return anyio.run(main)
    except Exception as e:
        log.exception("%s failed", ctx.command.name)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _dump(rows) -> str:
    return json.dumps(rows, indent=2, default=str)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """DIFM maintenance commands."""
    ctx.ensure_object(dict)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)


@cli.command(name="check-jobs")
@click.option(
    "--status",
    "-s",
    "statuses",
    multiple=True,
    type=click.Choice([s.value for s in JobStatus]),
    help="Job status to include (repeatable). Defaults to COMPLETED, CLOSED and PAID.",
)
@click.pass_context
def check_jobs(ctx: click.Context, statuses):
    """List jobs whose status is in the given set."""
    wanted = [JobStatus.parse(s) for s in statuses] or list(FINISHED_STATUSES)

    async def task(stores):
        return await stores.jobs.list_by_status(wanted)

    jobs = _run(ctx, task)
    click.echo("Found completed jobs: " + _dump([j.model_dump(mode="json", by_alias=True) for j in jobs]))


@cli.command(name="cleanup-ghost-jobs")
@click.option(
    "--description",
    "-d",
    "descriptions",
    multiple=True,
    help="Exact job description to delete (repeatable). Defaults to the reschedule test jobs.",
)
@click.option("--dry-run", is_flag=True, help="Count matching jobs without deleting them")
@click.pass_context
def cleanup_ghost_jobs(ctx: click.Context, descriptions, dry_run: bool):
    """
    Delete test jobs by exact description match.

    Examples:

        \b
        difm cleanup-ghost-jobs
        difm cleanup-ghost-jobs -d "Test Reschedule Required" --dry-run
    """
    targets = list(descriptions) or list(GHOST_JOB_DESCRIPTIONS)

    async def task(stores):
        if dry_run:
            return await stores.jobs.count_by_descriptions(targets)
        return await stores.jobs.delete_by_descriptions(targets)

    count = _run(ctx, task)
    if dry_run:
        click.echo(f"Would clean up {count} ghost jobs.")
    else:
        click.echo(f"Cleaned up {count} ghost jobs.")


@cli.command(name="check-cleaners")
@click.pass_context
def check_cleaners(ctx: click.Context):
    """Show the demo cleaning providers and the latest jobs."""

    async def task(stores):
        cleaners = await stores.users.find_by_emails(DEMO_CLEANER_EMAILS)
        jobs = await stores.jobs.recent(5)
        return cleaners, jobs

    cleaners, jobs = _run(ctx, task)
    click.echo("--- Checking Cleaner Accounts ---")
    click.echo(_dump(cleaners))
    click.echo("\n--- Checking Recent Jobs ---")
    click.echo(_dump(jobs))


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", type=int, default=None, help="Defaults to $PORT or 8000")
@click.option("--reload", is_flag=True)
def serve(host: str, port, reload: bool):
    """Run the API with uvicorn."""
    from .main import run

    run(host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
