"""conduct catalog -- violation types and procedure templates."""

from __future__ import annotations

import click

from conduct.cli.formatting import format_catalog
from conduct.models.violation import DEGREES


@click.command()
@click.option("--degree", type=click.IntRange(1, 4), default=None, help="Only this degree.")
@click.pass_context
def catalog(ctx: click.Context, degree: int | None) -> None:
    """Show configured violation types and procedures per degree."""
    from conduct.cli import run_session
    from conduct.store.catalog import CatalogCache

    async def work(transport, config, console):
        cache = CatalogCache(transport, config=config)
        await cache.load_config()
        await cache.load_violation_types(degree)
        await cache.load_procedures(degree)
        format_catalog(cache, [degree] if degree else list(DEGREES), console)

    run_session(ctx, work)
