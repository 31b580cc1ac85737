"""Conduct CLI -- terminal interface for the school behaviour back office.

This module is NEVER imported from conduct/__init__.py.
It is only loaded via the ``conduct`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

try:
    import click
    from dotenv import load_dotenv
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install conduct[cli]"
    ) from None

from conduct.cli.formatting import format_error, get_console
from conduct.exceptions import ConductError, ProcedureNotFoundError, ViolationNotFoundError
from conduct.models.config import ConductConfig

if TYPE_CHECKING:
    from rich.console import Console

    from conduct.api.protocols import BehaviorTransport
    from conduct.models.violation import TaskExecution, Violation
    from conduct.store.violations import ViolationRepository

    Work = Callable[[BehaviorTransport, ConductConfig, Console], Awaitable["T"]]

T = TypeVar("T")


@click.group()
@click.option(
    "--base-url",
    default=None,
    envvar="CONDUCT_API_BASE_URL",
    help="Behaviour API base URL.",
)
@click.option(
    "--token",
    default=None,
    envvar="CONDUCT_API_TOKEN",
    help="Bearer token for the API.",
)
@click.option(
    "--locale",
    type=click.Choice(["en", "ar"]),
    default=None,
    envvar="CONDUCT_LOCALE",
    help="Language of messages and printed documents.",
)
@click.option(
    "--stage",
    default=None,
    envvar="CONDUCT_STAGE",
    help="School stage used for catalog lookups.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: str | None,
    token: str | None,
    locale: str | None,
    stage: str | None,
) -> None:
    """Conduct: student violation procedures from the terminal."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = ConductConfig.from_env(
        base_url=base_url, token=token, locale=locale, stage=stage
    )


def main() -> None:
    """Console entry point: load ``.env`` before click reads the environment."""
    load_dotenv()
    cli()


def _get_config(ctx: click.Context) -> ConductConfig:
    return ctx.obj["config"]


async def _with_transport(ctx: click.Context, work: Work[T], console: Console) -> T:
    """Run ``work`` against the context's transport.

    Tests inject a transport through ``obj={"transport": ...}``; otherwise
    a BehaviorApiClient is built from the config and closed afterwards.
    """
    config = _get_config(ctx)
    transport = ctx.obj.get("transport")
    if transport is not None:
        return await work(transport, config, console)

    from conduct.api.client import BehaviorApiClient

    async with BehaviorApiClient(config=config) as client:
        return await work(client, config, console)


def run_session(ctx: click.Context, work: Work[T]) -> T:
    """Run an async command body on a fresh event loop.

    Formats any exception as a CLI error and exits with status 1.
    """
    console = get_console()
    try:
        return asyncio.run(_with_transport(ctx, work, console))
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


async def require_violation(repo: ViolationRepository, violation_id: str) -> Violation:
    """Fetch a violation or raise with the reason it could not be loaded."""
    violation = await repo.fetch_violation_by_id(violation_id)
    if violation is None:
        if repo.last_error:
            raise ConductError(repo.last_error)
        raise ViolationNotFoundError(violation_id)
    return violation


def require_task(violation: Violation, step: int, task_id: int) -> TaskExecution:
    procedure = violation.procedure(step)
    if procedure is None:
        raise ProcedureNotFoundError(violation.id, step)
    task = procedure.task(task_id)
    if task is None:
        raise click.ClickException(f"Step {step} has no task {task_id}")
    return task


# Register subcommands after cli group is defined
from conduct.cli.commands.violations import violations  # noqa: E402
from conduct.cli.commands.show import show  # noqa: E402
from conduct.cli.commands.toggle import toggle  # noqa: E402
from conduct.cli.commands.notes import notes  # noqa: E402
from conduct.cli.commands.catalog import catalog  # noqa: E402
from conduct.cli.commands.refer import refer  # noqa: E402
from conduct.cli.commands.automate import automate  # noqa: E402

cli.add_command(violations)
cli.add_command(show)
cli.add_command(toggle)
cli.add_command(notes)
cli.add_command(catalog)
cli.add_command(refer)
cli.add_command(automate)
