"""Rich formatting helpers for the Conduct CLI.

Provides functions that format store data for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from conduct.automation.trigger import describe_trigger
from conduct.models.violation import ViolationStatus, degree_label

if TYPE_CHECKING:
    from conduct.models.violation import Violation
    from conduct.store.catalog import CatalogCache

_STATUS_STYLES = {
    ViolationStatus.PENDING: "yellow",
    ViolationStatus.IN_PROGRESS: "cyan",
    ViolationStatus.COMPLETED: "green",
    ViolationStatus.CANCELLED: "dim",
}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _status(status: ViolationStatus) -> str:
    style = _STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def _check(done: bool) -> str:
    return "[green]x[/green]" if done else " "


def format_violations(violations: list[Violation], console: Console) -> None:
    """Display the violation log as a compact table."""
    if not violations:
        console.print("[dim]No violations.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="yellow")
    table.add_column("Date", style="dim")
    table.add_column("Student")
    table.add_column("Class")
    table.add_column("Deg", justify="right")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Progress", justify="right", style="green")

    for violation in violations:
        when = f"{violation.date} {violation.time or ''}".strip()
        table.add_row(
            escape(violation.id),
            when,
            escape(violation.student_name),
            escape(f"{violation.grade} {violation.class_name}".strip()),
            str(violation.degree),
            escape(violation.type),
            _status(violation.status),
            str(violation.progress()),
        )

    console.print(table)


def format_violation_detail(violation: Violation, console: Console) -> None:
    """Display one violation with its procedure checklist."""
    console.print(f"[yellow]violation {escape(violation.id)}[/yellow]")
    console.print(f"  Student:   {escape(violation.student_name)} ({escape(violation.student_number)})")
    console.print(f"  Class:     {escape(f'{violation.grade} {violation.class_name}'.strip())}")
    console.print(f"  Degree:    {degree_label(violation.degree)} ({violation.degree})")
    console.print(f"  Type:      {escape(violation.type)}")
    console.print(f"  Date:      {violation.date} {violation.time or ''}".rstrip())
    if violation.location:
        console.print(f"  Location:  {escape(violation.location)}")
    if violation.reported_by:
        console.print(f"  Reporter:  {escape(violation.reported_by)}")
    console.print(f"  Status:    {_status(violation.status)}")
    if violation.description:
        console.print(f"  Details:   {escape(violation.description)}")

    progress = violation.progress()
    console.print()
    console.print(f"[bold]Procedures[/bold] {progress} ({progress.percent}%)")
    if not violation.procedures:
        console.print("  [dim]No procedures.[/dim]")
        return

    for procedure in violation.procedures:
        flag = " [dim](optional)[/dim]" if not procedure.mandatory else ""
        console.print(
            f"  [{_check(procedure.completed)}] {procedure.step}. "
            f"{escape(procedure.title)}{flag}"
        )
        for task in procedure.tasks:
            line = f"      [{_check(task.completed)}] #{task.id} {escape(task.title)}"
            if task.system_trigger:
                presentation = describe_trigger(task.system_trigger, task.points_to_deduct)
                line += (
                    f"  [{presentation.color}]<{escape(presentation.label)}>"
                    f"[/{presentation.color}]"
                )
            console.print(line)
        if procedure.notes:
            console.print(f"      [dim]Notes: {escape(procedure.notes)}[/dim]")


def format_catalog(catalog: CatalogCache, degrees: list[int], console: Console) -> None:
    """Display violation types and procedure templates per degree."""
    for index, degree in enumerate(degrees):
        if index > 0:
            console.print()
        console.print(f"[bold]Degree {degree} - {degree_label(degree)}[/bold]")

        names = catalog.get_violations_for_degree(degree)
        if names:
            console.print("  Violation types:")
            for name in names:
                console.print(f"    - {escape(name)}")
        else:
            console.print("  [dim]No violation types.[/dim]")

        procedures = catalog.get_procedures_for_degree(degree)
        if not procedures:
            console.print("  [dim]No procedures.[/dim]")
            continue
        console.print("  Procedures:")
        for procedure in procedures:
            console.print(f"    {procedure.step}. {escape(procedure.title)}")
            for task in procedure.tasks:
                role = f" [dim]({escape(catalog.get_role_label(task.role))})[/dim]" if task.role else ""
                trigger = ""
                if task.system_trigger:
                    trigger = f" [cyan]<{escape(catalog.get_system_trigger_label(task.system_trigger))}>[/cyan]"
                console.print(f"       - {escape(task.title)}{role}{trigger}")


def format_warning(message: str, console: Console) -> None:
    """Display a non-fatal warning (e.g. a failed secondary refresh)."""
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
