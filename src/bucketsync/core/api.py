"""
Programmatic API for sync and clean passes.

Usage:
    from bucketsync import SyncConfig, sync_files
    from bucketsync.connections.s3 import S3ObjectStore

    config = SyncConfig(bucket="my-site", src_dir="public", files_glob="**/*")
    store = S3ObjectStore("site", config.store_config())
    result = await sync_files(store, config)
    print(result.uploaded_keys)
"""

from __future__ import annotations

from bucketsync.config.settings import SyncConfig
from bucketsync.connections.storage import BaseObjectStore
from bucketsync.core.dispatcher import UploadDispatcher
from bucketsync.core.reaper import BulkDeleteReaper
from bucketsync.core.types import CleanResult, SyncResult
from bucketsync.exceptions import PreconditionError
from bucketsync.utils.discovery import find_files
from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.api")


async def sync_files(store: BaseObjectStore, config: SyncConfig) -> SyncResult:
    """
    Upload changed files under ``config.root_dir`` matching ``config.files_glob``.

    Raises:
        PreconditionError: If the source directory or glob is empty or missing
    """
    if not config.src_dir.strip():
        raise PreconditionError("src_dir must not be empty")
    root_dir = config.root_dir
    files = find_files(root_dir, config.files_glob)
    logger.info(f"Found {len(files)} files in {root_dir} for {store.describe(config.prefix)}")
    return await UploadDispatcher(store, config).sync(root_dir, files)


async def clean_prefix(store: BaseObjectStore, prefix: str, *, max_rounds: int | None = None) -> CleanResult:
    """Delete every object under ``prefix``."""
    return await BulkDeleteReaper(store, max_rounds=max_rounds).clean(prefix)
