"""conduct violations -- list the violation log."""

from __future__ import annotations

import click

from conduct.cli.formatting import format_violations
from conduct.models.requests import ViolationFilters
from conduct.models.violation import ViolationStatus


@click.command()
@click.option(
    "--status",
    type=click.Choice([status.value for status in ViolationStatus]),
    default=None,
    help="Only violations with this status.",
)
@click.option("--degree", type=click.IntRange(1, 4), default=None, help="Only this degree.")
@click.option("--search", default=None, help="Free-text search (student, type, ...).")
@click.pass_context
def violations(
    ctx: click.Context, status: str | None, degree: int | None, search: str | None
) -> None:
    """List violations, newest first."""
    from conduct.cli import run_session
    from conduct.store.violations import ViolationRepository

    filters = ViolationFilters(
        status=ViolationStatus(status) if status else None,
        degree=degree,
        search=search,
    )

    async def work(transport, config, console):
        repo = ViolationRepository(transport, config=config)
        format_violations(await repo.fetch_violations(filters), console)

    run_session(ctx, work)
