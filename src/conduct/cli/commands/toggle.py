"""conduct toggle -- flip a procedure step or task."""

from __future__ import annotations

import click


@click.command()
@click.argument("violation_id")
@click.argument("step", type=int)
@click.option("--task", "task_id", type=int, default=None, help="Toggle this task of the step.")
@click.pass_context
def toggle(ctx: click.Context, violation_id: str, step: int, task_id: int | None) -> None:
    """Toggle completion of STEP (or one of its tasks) on VIOLATION_ID.

    The new state is whatever the server reports back.
    """
    from conduct.cli import run_session
    from conduct.exceptions import ProcedureNotFoundError
    from conduct.store.violations import ViolationRepository

    async def work(transport, config, console):
        repo = ViolationRepository(transport, config=config)
        if task_id is None:
            updated = await repo.toggle_procedure(violation_id, step)
        else:
            updated = await repo.toggle_procedure_task(violation_id, step, task_id)

        procedure = updated.procedure(step)
        if procedure is None:
            raise ProcedureNotFoundError(violation_id, step)
        target = procedure.task(task_id) if task_id is not None else procedure
        if target is None:
            raise click.ClickException(f"Step {step} has no task {task_id}")
        state = "[green]completed[/green]" if target.completed else "[yellow]open[/yellow]"
        console.print(f"{target.title}: {state}  (progress {updated.progress()})")

    run_session(ctx, work)
