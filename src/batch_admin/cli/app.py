import typer

from batch_admin.cli.files import files_app
from batch_admin.cli.jobs import jobs_app
from batch_admin.cli.serve import serve_app

app = typer.Typer(
    name="batch-admin",
    help="Batch Admin CLI: serve the admin API and manage staged batch files.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(serve_app, name="serve")
app.add_typer(files_app, name="files")
app.add_typer(jobs_app, name="jobs")


def main() -> None:
    app()
