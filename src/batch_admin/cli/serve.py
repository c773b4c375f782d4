from typing import Annotated

import typer
from rich.console import Console

from batch_admin.config import get_settings
from batch_admin.logging_config import configure_logging

serve_app = typer.Typer(help="Start servers.")
console = Console()


@serve_app.command("api")
def api(
    host: str = "127.0.0.1",
    port: int = 8000,
    log_level: Annotated[str | None, typer.Option(help="Override BATCH_ADMIN_LOG_LEVEL.")] = None,
) -> None:
    """Start the FastAPI REST API server."""
    import uvicorn

    from batch_admin.api.app import create_app

    settings = get_settings()
    configure_logging(log_level or settings.log_level)
    app = create_app(settings)
    console.print(f"[green]Starting API server on {host}:{port}[/green]")
    console.print(f"  Staged files: {settings.files_dir}")
    uvicorn.run(app, host=host, port=port, log_config=None)
