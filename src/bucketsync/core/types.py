"""
Type definitions for sync and clean passes.

Every value here is a snapshot owned by the pass that created it; nothing is
cached across passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class LocalFile:
    """Read-only facts about a local file, taken once per pass."""

    path: Path
    size: int
    last_modified: datetime
    content_type: str

    @classmethod
    def from_path(cls, path: str | Path, content_type: str) -> LocalFile:
        path = Path(path)
        stat = path.stat()
        return cls(
            path=path,
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            content_type=content_type,
        )


@dataclass(frozen=True)
class RemoteObjectMetadata:
    """Point-in-time metadata of a stored object."""

    etag: str | None = None
    content_type: str | None = None
    cache_control: str | None = None
    content_length: int | None = None
    last_modified: datetime | None = None

    @classmethod
    def from_head_response(cls, response: dict[str, Any]) -> RemoteObjectMetadata:
        """Build from a boto3 ``head_object`` response dict."""
        content_length = response.get("ContentLength")
        return cls(
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
            cache_control=response.get("CacheControl"),
            content_length=int(content_length) if content_length is not None else None,
            last_modified=response.get("LastModified"),
        )


class HeadStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    LOOKUP_FAILED = "lookup_failed"


@dataclass(frozen=True)
class HeadResult:
    """
    Outcome of a metadata lookup.

    NOT_FOUND and LOOKUP_FAILED are kept apart so callers can log the
    difference; ``metadata_or_none`` collapses both to ``None`` because a
    failed lookup is treated as a missing object (the file gets uploaded).
    """

    status: HeadStatus
    metadata: RemoteObjectMetadata | None = None
    error: Exception | None = None

    @classmethod
    def found(cls, metadata: RemoteObjectMetadata) -> HeadResult:
        return cls(status=HeadStatus.FOUND, metadata=metadata)

    @classmethod
    def not_found(cls) -> HeadResult:
        return cls(status=HeadStatus.NOT_FOUND)

    @classmethod
    def lookup_failed(cls, error: Exception) -> HeadResult:
        return cls(status=HeadStatus.LOOKUP_FAILED, error=error)

    def metadata_or_none(self) -> RemoteObjectMetadata | None:
        return self.metadata if self.status is HeadStatus.FOUND else None


@dataclass(frozen=True)
class UploadTask:
    """A file that needs uploading. Created during DECIDE, consumed once."""

    path: Path
    key: str
    content_type: str
    multipart: bool


@dataclass(frozen=True)
class ListingPage:
    """One page of a prefix listing."""

    keys: list[str]
    is_truncated: bool = False


@dataclass
class SyncResult:
    """Summary of a sync pass, returned to the driver for reporting."""

    uploaded_keys: list[str] = field(default_factory=list)
    skipped_keys: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def modified_keys(self) -> list[str]:
        return self.uploaded_keys


@dataclass
class CleanResult:
    """Summary of a clean pass."""

    prefix: str
    deleted_keys: list[str] = field(default_factory=list)

    @property
    def modified_keys(self) -> list[str]:
        return self.deleted_keys
