"""
In-memory object store for testing.

Stores objects in-process and computes real ETags, so sync passes can be run
end to end without a bucket.

Example:
    from bucketsync.connections.memory import InMemoryObjectStore

    store = InMemoryObjectStore(page_size=2)
    await store.put("index.html", Path("site/index.html"), content_type="text/html")
    page = await store.list_objects("")
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiofiles

from bucketsync.connections.storage import BaseObjectStore, ProgressCallback
from bucketsync.core.types import HeadResult, ListingPage, RemoteObjectMetadata
from bucketsync.exceptions import DeleteError, ListingError, RemoteReadError, UploadError
from bucketsync.utils.hashing import FingerprintBuilder, stored_part_size


@dataclass
class StoredObject:
    body: bytes
    metadata: RemoteObjectMetadata


class InMemoryObjectStore(BaseObjectStore):
    """
    In-memory object store for tests and dry runs.

    Features:
    - ETags follow the single-part / multipart convention
    - Listings are paged (``page_size`` keys, sorted) like a real bucket
    - Every call is recorded in ``calls`` as ``(operation, argument)``
    - Failures can be injected per key (``fail_uploads``, ``fail_heads``)
      or for whole operations (``fail_listing``, ``fail_delete``)
    """

    def __init__(self, name: str = "memory", config: dict[str, Any] | None = None, *, page_size: int = 1000):
        super().__init__(name, config)
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.page_size = page_size
        self.objects: dict[str, StoredObject] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_uploads: set[str] = set()
        self.fail_heads: set[str] = set()
        self.fail_listing = False
        self.fail_delete = False
        self.latency = 0.0

    def seed(self, key: str, body: bytes = b"", **metadata: Any) -> None:
        """Place an object directly, bypassing the call log."""
        builder = FingerprintBuilder()
        builder.update(body)
        fields = {
            "etag": builder.etag(),
            "content_length": len(body),
            "last_modified": _now(),
        }
        fields.update(metadata)
        self.objects[key] = StoredObject(body=body, metadata=RemoteObjectMetadata(**fields))

    def calls_to(self, operation: str) -> list[Any]:
        return [argument for name, argument in self.calls if name == operation]

    async def _tick(self) -> None:
        # Yields to the loop like a network round trip would
        await asyncio.sleep(self.latency)

    async def head(self, key: str) -> HeadResult:
        self.calls.append(("head", key))
        await self._tick()
        if key in self.fail_heads:
            return HeadResult.lookup_failed(RemoteReadError(key, "injected failure"))
        stored = self.objects.get(key)
        if stored is None:
            return HeadResult.not_found()
        return HeadResult.found(stored.metadata)

    async def _store(self, key: str, path: Path, content_type: str, cache_control: str, part_size: int) -> None:
        if key in self.fail_uploads:
            raise UploadError(key, "injected failure")
        async with aiofiles.open(path, "rb") as f:
            body = await f.read()
        # Mirrors the S3 transfer: files under one part go up as a single request
        builder = FingerprintBuilder(stored_part_size(len(body), part_size))
        builder.update(body)
        self.objects[key] = StoredObject(
            body=body,
            metadata=RemoteObjectMetadata(
                etag=builder.etag(),
                content_type=content_type,
                cache_control=cache_control or None,
                content_length=len(body),
                last_modified=_now(),
            ),
        )

    async def put(
        self,
        key: str,
        path: Path,
        *,
        content_type: str,
        cache_control: str = "",
        acl: str = "",
    ) -> None:
        self.calls.append(("put", key))
        await self._tick()
        await self._store(key, path, content_type, cache_control, 0)

    async def put_multipart(
        self,
        key: str,
        path: Path,
        *,
        content_type: str,
        cache_control: str = "",
        acl: str = "",
        part_size: int,
        concurrency: int,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.calls.append(("put_multipart", key))
        await self._tick()
        await self._store(key, path, content_type, cache_control, part_size)
        if on_progress is not None:
            on_progress(self.objects[key].metadata.content_length or 0)

    async def list_objects(self, prefix: str) -> ListingPage:
        self.calls.append(("list_objects", prefix))
        await self._tick()
        if self.fail_listing:
            raise ListingError(prefix, "injected failure")
        keys = sorted(key for key in self.objects if key.startswith(prefix))
        return ListingPage(keys=keys[: self.page_size], is_truncated=len(keys) > self.page_size)

    async def delete_batch(self, keys: list[str]) -> None:
        self.calls.append(("delete_batch", list(keys)))
        await self._tick()
        if self.fail_delete:
            raise DeleteError(list(keys), "injected failure")
        for key in keys:
            self.objects.pop(key, None)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)
