"""
Main CLI entry point.
"""

import typer

from bucketsync import __version__
from bucketsync.cli import clean, sync


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"bucketsync version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="bucketsync",
    help="bucketsync - Incremental sync of a local file tree to an object storage bucket",
    add_completion=False,
)

app.add_typer(sync.app, name="sync")
app.add_typer(clean.app, name="clean")


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    bucketsync - Incremental sync of a local file tree to an object storage bucket.

    Run 'bucketsync <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
