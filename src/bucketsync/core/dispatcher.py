"""
Upload dispatcher for sync passes.

A pass runs DECIDE -> PARTITION -> UPLOAD-SMALL -> UPLOAD-LARGE -> REPORT over
an already discovered file list:

- DECIDE: per file, resolve key and content-type, look up the remote object
  and evaluate the sync criteria, ``concurrency`` files at a time.
- UPLOAD-SMALL: single-request puts, ``concurrency`` at a time.
- UPLOAD-LARGE: one file at a time; each multipart upload uses
  ``concurrency`` for its own parts, so nesting both would oversubscribe.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from bucketsync.connections.storage import BaseObjectStore
from bucketsync.core.criteria import should_upload
from bucketsync.core.scheduler import BoundedScheduler
from bucketsync.core.types import HeadStatus, LocalFile, SyncResult, UploadTask
from bucketsync.exceptions import BucketSyncError, PreconditionError
from bucketsync.utils.discovery import get_object_key, resolve_content_type
from bucketsync.utils.hashing import stored_part_size
from bucketsync.utils.logging import get_logger

if TYPE_CHECKING:
    from bucketsync.config.settings import SyncConfig

logger = get_logger("bucketsync.dispatcher")

# Per-file failures that are logged and excluded instead of aborting the pass
PER_FILE_ERRORS = (BucketSyncError, OSError)


class UploadDispatcher:
    """
    Drives one sync pass against an object store.

    Per-file failures (unknown content-type, unreadable file, rejected upload)
    are logged, recorded in ``SyncResult.failed`` and excluded from the
    uploaded keys; sibling files still complete. Anything else propagates out
    of ``sync`` through the scheduler.
    """

    def __init__(self, store: BaseObjectStore, config: SyncConfig):
        self.store = store
        self.config = config
        self.criteria = config.criteria

    async def sync(self, root_dir: str | Path, files: Sequence[str | Path]) -> SyncResult:
        """
        Upload the files that changed.

        Args:
            root_dir: Directory object keys are relative to
            files: Discovered absolute file paths, in discovery order

        Returns:
            SyncResult with small-file keys then large-file keys, each in discovery order

        Raises:
            PreconditionError: If ``root_dir`` is empty or missing (before any I/O)
        """
        if not str(root_dir).strip():
            raise PreconditionError("root_dir must not be empty")
        root = Path(root_dir)
        if not root.is_dir():
            raise PreconditionError(f"root_dir does not exist: {root}", details={"root_dir": str(root)})

        result = SyncResult()
        tasks = await self._decide(root, [Path(f) for f in files], result)

        small = [task for task in tasks if not task.multipart]
        large = [task for task in tasks if task.multipart]
        logger.debug(f"{len(small)} small and {len(large)} large files to upload")

        uploaded: set[str] = set()
        await BoundedScheduler(
            self.config.concurrency,
            [self._upload_operation(task, uploaded, result) for task in small],
        ).process()
        await BoundedScheduler(
            1,
            [self._upload_operation(task, uploaded, result) for task in large],
        ).process()

        result.uploaded_keys = [task.key for task in small + large if task.key in uploaded]
        logger.info(
            f"Synced {len(result.uploaded_keys)} files with cache-control: {self.config.cache_control or '<none>'}"
            f" ({len(result.skipped_keys)} unchanged, {len(result.failed)} failed)"
        )
        return result

    async def _decide(self, root: Path, files: list[Path], result: SyncResult) -> list[UploadTask]:
        decisions: list[UploadTask | None] = [None] * len(files)
        skipped: list[str | None] = [None] * len(files)

        def operation(index: int, path: Path):
            async def run() -> None:
                key = get_object_key(root, path, self.config.prefix, self.config.strip_extension_glob)
                try:
                    task = await self._decide_file(path, key)
                except PER_FILE_ERRORS as e:
                    logger.error(f"Failed to check {key}: {e}")
                    result.failed[key] = str(e)
                    return
                if task is None:
                    logger.info(f"Skipped {key} (no change)")
                    skipped[index] = key
                else:
                    decisions[index] = task

            return run

        await BoundedScheduler(
            self.config.concurrency,
            [operation(index, path) for index, path in enumerate(files)],
        ).process()

        result.skipped_keys = [key for key in skipped if key is not None]
        return [task for task in decisions if task is not None]

    async def _decide_file(self, path: Path, key: str) -> UploadTask | None:
        local = LocalFile.from_path(path, resolve_content_type(path))
        multipart = local.size >= self.config.multipart_threshold_bytes

        head = await self.store.head(key)
        if head.status is HeadStatus.LOOKUP_FAILED:
            logger.warning(f"Metadata lookup for {key} failed, treating as missing: {head.error}")

        needs_upload = await should_upload(
            local,
            head.metadata_or_none(),
            self.criteria,
            cache_control=self.config.cache_control,
            part_size=stored_part_size(local.size, self.config.multipart_chunk_bytes) if multipart else 0,
        )
        if not needs_upload:
            return None
        return UploadTask(path=path, key=key, content_type=local.content_type, multipart=multipart)

    def _upload_operation(self, task: UploadTask, uploaded: set[str], result: SyncResult):
        async def run() -> None:
            try:
                await self._upload(task)
            except PER_FILE_ERRORS as e:
                logger.error(f"Failed to upload {task.key}: {e}")
                result.failed[task.key] = str(e)
                return
            uploaded.add(task.key)
            logger.info(f"Synced {task.key}")

        return run

    async def _upload(self, task: UploadTask) -> None:
        if not task.multipart:
            await self.store.put(
                task.key,
                task.path,
                content_type=task.content_type,
                cache_control=self.config.cache_control,
                acl=self.config.acl,
            )
            return

        size = task.path.stat().st_size
        sent = 0

        def on_progress(transferred: int) -> None:
            nonlocal sent
            sent += transferred
            logger.debug(f"{task.key}: {sent}/{size} bytes")

        await self.store.put_multipart(
            task.key,
            task.path,
            content_type=task.content_type,
            cache_control=self.config.cache_control,
            acl=self.config.acl,
            part_size=self.config.multipart_chunk_bytes,
            concurrency=self.config.concurrency,
            on_progress=on_progress,
        )
