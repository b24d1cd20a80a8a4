"""
bucketsync sync - Upload changed files.
"""

import asyncio
from pathlib import Path

import typer

from bucketsync.cli.common import load_settings, report_modified_keys
from bucketsync.core.api import sync_files
from bucketsync.exceptions import BucketSyncError
from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.cli.sync")

app = typer.Typer(name="sync", help="Upload changed files to a bucket", invoke_without_command=True)


@app.callback()
def sync(
    ctx: typer.Context,
    bucket: str | None = typer.Option(None, "--bucket", "-b", help="Destination bucket"),
    region: str | None = typer.Option(None, "--region", help="Bucket region"),
    endpoint_url: str | None = typer.Option(None, "--endpoint-url", help="S3-compatible endpoint"),
    src_dir: str | None = typer.Option(None, "--src-dir", "-s", help="Directory to sync (relative to workspace)"),
    files_glob: str | None = typer.Option(None, "--files-glob", "-g", help="Files to sync, relative to src-dir"),
    prefix: str | None = typer.Option(None, "--prefix", "-p", help="Key prefix"),
    strip_extension_glob: str | None = typer.Option(None, "--strip-extension-glob", help="Drop extensions of matching files"),
    cache_control: str | None = typer.Option(None, "--cache-control", help="Cache-Control header to set"),
    acl: str | None = typer.Option(None, "--acl", help="Canned ACL to set"),
    multipart_file_size_mb: int | None = typer.Option(None, "--multipart-file-size-mb", help="Multipart upload threshold"),
    multipart_chunk_bytes: int | None = typer.Option(None, "--multipart-chunk-bytes", help="Multipart part size"),
    concurrency: int | None = typer.Option(None, "--concurrency", "-c", help="Concurrent operations"),
    sync_strategy: str | None = typer.Option(None, "--sync-strategy", help="Criteria, e.g. 'ETag,ContentLength'"),
    workspace: str | None = typer.Option(None, "--workspace", "-w", help="Workspace root (default: cwd)"),
    config_file: Path | None = typer.Option(None, "--config", help="YAML config file"),
    env: str | None = typer.Option(None, "--env", help="Environment overlay for the config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Upload files that changed since the last sync.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        config, store = load_settings(
            config_file,
            env,
            verbose,
            bucket=bucket,
            region=region,
            endpoint_url=endpoint_url,
            src_dir=src_dir,
            files_glob=files_glob,
            prefix=prefix,
            strip_extension_glob=strip_extension_glob,
            cache_control=cache_control,
            acl=acl,
            multipart_file_size_mb=multipart_file_size_mb,
            multipart_chunk_bytes=multipart_chunk_bytes,
            concurrency=concurrency,
            sync_strategy=sync_strategy,
            workspace=workspace,
        )
        with store:
            result = asyncio.run(sync_files(store, config))
    except BucketSyncError as e:
        logger.error(f"Sync failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    report_modified_keys(result.uploaded_keys)
    if result.failed:
        raise typer.Exit(1)
