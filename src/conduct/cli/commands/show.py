"""conduct show -- one violation with its procedure checklist."""

from __future__ import annotations

import click

from conduct.cli.formatting import format_violation_detail


@click.command()
@click.argument("violation_id")
@click.pass_context
def show(ctx: click.Context, violation_id: str) -> None:
    """Show VIOLATION_ID with procedures, tasks and progress."""
    from conduct.cli import require_violation, run_session
    from conduct.store.violations import ViolationRepository

    async def work(transport, config, console):
        repo = ViolationRepository(transport, config=config)
        format_violation_detail(await require_violation(repo, violation_id), console)

    run_session(ctx, work)
