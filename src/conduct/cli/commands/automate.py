"""conduct automate -- run a task's automation trigger."""

from __future__ import annotations

import click


@click.command()
@click.argument("violation_id")
@click.argument("step", type=int)
@click.argument("task_id", type=int)
@click.option(
    "--all", "run_all", is_flag=True,
    help="Run every automation configured on the task server-side.",
)
@click.pass_context
def automate(
    ctx: click.Context, violation_id: str, step: int, task_id: int, run_all: bool
) -> None:
    """Execute the automation attached to TASK_ID of STEP on VIOLATION_ID."""
    from rich.markup import escape

    from conduct.automation import automation_for_task
    from conduct.cli import require_task, require_violation, run_session
    from conduct.exceptions import CatalogLoadError, ConductError
    from conduct.store.catalog import CatalogCache
    from conduct.store.violations import ViolationRepository

    async def work(transport, config, console):
        repo = ViolationRepository(transport, config=config)
        violation = await require_violation(repo, violation_id)
        task = require_task(violation, step, task_id)

        if run_all:
            results = await transport.execute_all_task_automations(
                violation.id, step, task.id
            )
            if not results:
                raise click.ClickException(f"Task {task_id} has no automation")
            for result in results:
                color = "green" if result.success else "red"
                text = result.message or ("done" if result.success else "failed")
                console.print(f"[{color}]{escape(text)}[/{color}]")
            if not all(result.success for result in results):
                raise ConductError(f"Some automations of task {task_id} failed")
            return

        cache: CatalogCache | None = CatalogCache(transport, config=config)
        try:
            await cache.load_config()
        except CatalogLoadError:
            # Labels are optional; the trigger key still classifies.
            cache = None
        trigger = automation_for_task(
            transport, violation, step, task, cache, locale=config.locale
        )
        if trigger is None:
            raise click.ClickException(f"Task {task_id} has no automation")
        if trigger.disabled:
            raise click.ClickException(f"Task {task_id} is already completed")

        name = trigger.label_override or trigger.label
        if not await trigger.execute():
            raise ConductError(f"{name} failed: {trigger.last_error}")
        console.print(f"[green]{trigger.label}[/green]: {name}")

    run_session(ctx, work)
