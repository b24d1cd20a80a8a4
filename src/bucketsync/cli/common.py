"""
Shared CLI plumbing: config assembly, store construction and key reporting.
"""

import os
from pathlib import Path
from typing import Any

import typer

from bucketsync.config.loader import load_config
from bucketsync.config.settings import SyncConfig
from bucketsync.connections.s3 import S3ObjectStore
from bucketsync.utils.logging import get_logger, setup_logging, setup_logging_from_config

logger = get_logger("bucketsync.cli")


def load_settings(config_file: Path | None, env: str | None, verbose: bool, **overrides: Any) -> tuple[SyncConfig, S3ObjectStore]:
    """
    Build the sync settings and S3 store for a command.

    File values come from ``config_file`` (if given); CLI options override them.
    """
    file_data: dict[str, Any] = load_config(config_file, env) if config_file else {}

    if verbose:
        setup_logging(level="DEBUG")
    else:
        setup_logging_from_config(file_data, project_dir=config_file.parent if config_file else None)

    config = SyncConfig.from_dict(file_data).merged(**overrides)
    if not config.bucket:
        raise typer.BadParameter("a bucket is required (--bucket or 'bucket' in the config file)")

    store_config = {**(file_data.get("store") or {}), **config.store_config()}
    return config, S3ObjectStore(config.bucket, store_config)


def report_modified_keys(keys: list[str]) -> None:
    """Print the modified keys and, on GitHub Actions, expose them as a step output."""
    joined = ",".join(keys)
    typer.echo(joined)

    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file:
        with open(output_file, "a") as f:
            f.write(f"modified-keys={joined}\n")
        logger.debug(f"Wrote modified-keys to {output_file}")
