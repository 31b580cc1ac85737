"""conduct refer -- write the counselor referral form for a task."""

from __future__ import annotations

import click


@click.command()
@click.argument("violation_id")
@click.argument("step", type=int)
@click.argument("task_id", type=int)
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False),
    default=".",
    help="Directory to write the form to.",
)
@click.option("--school", default=None, help="School name printed on the form.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["html", "pdf"]),
    default="html",
    show_default=True,
    help="File format of the form.",
)
@click.option(
    "--font",
    "font_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="TrueType font for PDF text outside Latin-1.",
)
@click.option("--open", "open_", is_flag=True, help="Open the form in the browser.")
@click.pass_context
def refer(
    ctx: click.Context,
    violation_id: str,
    step: int,
    task_id: int,
    out_dir: str,
    school: str | None,
    output_format: str,
    font_path: str | None,
    open_: bool,
) -> None:
    """Compose the referral form for TASK_ID of STEP on VIOLATION_ID."""
    from conduct.cli import require_task, require_violation, run_session
    from conduct.documents import FileSurface, ReferralContext, compose_counselor_referral
    from conduct.store.violations import ViolationRepository

    async def work(transport, config, console):
        repo = ViolationRepository(transport, config=config)
        violation = await require_violation(repo, violation_id)
        task = require_task(violation, step, task_id)

        document = compose_counselor_referral(
            violation, task, ReferralContext(school_name=school), locale=config.locale
        )
        surface = FileSurface(
            out_dir, browser=open_, output_format=output_format, font_path=font_path
        )
        if open_:
            surface.open(document)
            path = surface.path_for(document)
        else:
            path = surface.export(document)
        console.print(f"Referral written to [green]{path}[/green]")

    run_session(ctx, work)
