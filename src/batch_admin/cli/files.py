"""Staging-area commands working directly on the local file store."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from batch_admin.config import get_settings
from batch_admin.core.errors import BatchAdminError
from batch_admin.core.files import FileStagingService
from batch_admin.core.pagination import PageRequest, paginate
from batch_admin.storage import InMemoryFilePublisher, LocalFileStore

files_app = typer.Typer(help="List and delete staged batch files.")
console = Console()


def _service(directory: str | None) -> FileStagingService:
    store = LocalFileStore(directory or get_settings().files_dir)
    return FileStagingService(store, InMemoryFilePublisher())


@files_app.command("list")
def list_files(
    page: Annotated[int, typer.Option(help="Page index (0 based).")] = 0,
    size: Annotated[int, typer.Option(help="Files per page.")] = 20,
    directory: Annotated[str | None, typer.Option(help="Staging directory (default: BATCH_ADMIN_FILES_DIR).")] = None,
) -> None:
    """Show one page of staged files."""
    try:
        request = PageRequest.of(page, size)
        files, total = asyncio.run(_service(directory).list(request.offset, request.limit))
    except BatchAdminError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1) from exc

    result = paginate(request.offset, request.limit, total, files)
    table = Table(title=f"Staged files (page {result.page_number + 1} of {max(result.total_pages, 1)})")
    table.add_column("Path")
    table.add_column("Modified")
    table.add_column("Local")
    for info in result.content:
        table.add_row(info.short_path, info.timestamp, "yes" if info.local else "no")
    console.print(table)
    console.print(f"({result.total_elements} files)")


@files_app.command("delete")
def delete_files(
    pattern: Annotated[str, typer.Argument(help="Glob pattern of files to delete, e.g. 'input/*.csv'.")],
    directory: Annotated[str | None, typer.Option(help="Staging directory (default: BATCH_ADMIN_FILES_DIR).")] = None,
) -> None:
    """Delete staged files matching PATTERN."""
    try:
        deleted = asyncio.run(_service(directory).delete(pattern))
    except BatchAdminError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1) from exc
    console.print(f"[green]Deleted {deleted} file(s).[/green]")
