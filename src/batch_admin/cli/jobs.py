from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from batch_admin.config import get_settings
from batch_admin.db.definitions import load_job_definitions

jobs_app = typer.Typer(help="Inspect configured job definitions.")
console = Console()


@jobs_app.command("list")
def list_jobs(
    jobs_file: Annotated[
        str | None, typer.Option(help="Job definitions file (default: BATCH_ADMIN_JOBS_FILE).")
    ] = None,
) -> None:
    """Show the jobs the in-memory engine would register."""
    path = jobs_file or get_settings().jobs_file
    if not path:
        console.print("[yellow]No job definitions file configured.[/yellow]")
        raise typer.Exit(1)
    try:
        definitions = load_job_definitions(path)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Cannot read {path}: {exc}[/red]")
        raise typer.Exit(1) from exc

    table = Table(title="Jobs")
    table.add_column("Name")
    table.add_column("Launchable")
    table.add_column("Incrementable")
    table.add_column("Restartable")
    table.add_column("Required parameters")
    table.add_column("Steps")
    for d in definitions:
        table.add_row(
            d.name,
            str(d.launchable),
            str(d.incrementable),
            str(d.restartable),
            ", ".join(d.required_parameters),
            ", ".join(d.step_names),
        )
    console.print(table)
