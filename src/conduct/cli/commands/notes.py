"""conduct notes -- save notes on a procedure step."""

from __future__ import annotations

import click


@click.command()
@click.argument("violation_id")
@click.argument("step", type=int)
@click.argument("text")
@click.pass_context
def notes(ctx: click.Context, violation_id: str, step: int, text: str) -> None:
    """Set the notes of STEP on VIOLATION_ID to TEXT.

    The write is flushed before the command exits.
    """
    from conduct.cli import run_session
    from conduct.store.violations import ViolationRepository

    async def work(transport, config, console):
        repo = ViolationRepository(transport, config=config)
        await repo.fetch_violation_by_id(violation_id)
        repo.update_procedure_notes(violation_id, step, text)
        await repo.aclose()
        console.print(f"Notes saved for step {step} of [yellow]{violation_id}[/yellow]")

    run_session(ctx, work)
