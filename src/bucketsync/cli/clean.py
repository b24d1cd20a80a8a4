"""
bucketsync clean - Delete everything under a prefix.
"""

import asyncio
from pathlib import Path

import typer

from bucketsync.cli.common import load_settings, report_modified_keys
from bucketsync.core.api import clean_prefix
from bucketsync.exceptions import BucketSyncError
from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.cli.clean")

app = typer.Typer(name="clean", help="Delete all objects under a prefix", invoke_without_command=True)


@app.callback()
def clean(
    ctx: typer.Context,
    bucket: str | None = typer.Option(None, "--bucket", "-b", help="Bucket to clean"),
    region: str | None = typer.Option(None, "--region", help="Bucket region"),
    endpoint_url: str | None = typer.Option(None, "--endpoint-url", help="S3-compatible endpoint"),
    prefix: str | None = typer.Option(None, "--prefix", "-p", help="Key prefix to empty"),
    max_rounds: int | None = typer.Option(None, "--max-rounds", help="Give up after this many list/delete rounds"),
    config_file: Path | None = typer.Option(None, "--config", help="YAML config file"),
    env: str | None = typer.Option(None, "--env", help="Environment overlay for the config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Delete every object under the prefix.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config, store = load_settings(
            config_file, env, verbose, bucket=bucket, region=region, endpoint_url=endpoint_url, prefix=prefix
        )
        with store:
            result = asyncio.run(clean_prefix(store, config.prefix, max_rounds=max_rounds))
    except BucketSyncError as e:
        logger.error(f"Clean failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    report_modified_keys(result.deleted_keys)
