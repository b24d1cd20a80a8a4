"""
Object store base class.

The sync and clean passes only need five capabilities from a bucket: head,
put, multipart put, list and batch delete. Backends implement them as
coroutines; blocking SDKs run their calls in a worker thread.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any

from bucketsync.core.types import HeadResult, ListingPage

ProgressCallback = Callable[[int], None]


class BaseObjectStore(ABC):
    """
    Base class for object stores.

    Different backends address objects differently:
    - S3 (and S3-compatible services): bucket + key
    - In-memory: key only (tests and dry runs)
    """

    def __init__(self, name: str, config: dict[str, Any] | None = None):
        """
        Initialize object store.

        Args:
            name: Store name (used in logs)
            config: Backend configuration dictionary
        """
        self.name = name
        self.config = config or {}

    @abstractmethod
    async def head(self, key: str) -> HeadResult:
        """Look up object metadata. Never raises for lookup failures."""

    @abstractmethod
    async def put(
        self,
        key: str,
        path: Path,
        *,
        content_type: str,
        cache_control: str = "",
        acl: str = "",
    ) -> None:
        """Upload a file in a single request. Raises UploadError."""

    @abstractmethod
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
        """Upload a file in ``part_size`` parts, ``concurrency`` at a time. Raises UploadError."""

    @abstractmethod
    async def list_objects(self, prefix: str) -> ListingPage:
        """List the first page of keys under ``prefix``. Raises ListingError."""

    @abstractmethod
    async def delete_batch(self, keys: list[str]) -> None:
        """Delete ``keys``. Raises DeleteError."""

    def describe(self, key: str = "") -> str:
        """Human readable location used in log lines."""
        return f"{self.name}:{key}"

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> BaseObjectStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        """String representation."""
        return f"{self.__class__.__name__}(name='{self.name}')"
