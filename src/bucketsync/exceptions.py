"""
bucketsync exception hierarchy.

All domain-specific exceptions inherit from BucketSyncError, so a driver can
catch any failure of a sync or clean pass with a single base class while
still allowing per-file handling where a pass tolerates it.

Hierarchy::

    BucketSyncError
    ├── ConfigurationError          - config loading, parsing, validation
    ├── PreconditionError           - missing root / glob / workspace (fatal)
    ├── ContentTypeResolutionError  - unknown extension (fatal for one file)
    └── StorageError                - object store failures
        ├── RemoteReadError         - head lookup failed (not "not found")
        ├── UploadError             - put / multipart put failed (per file)
        ├── ListingError            - listing a prefix failed (fatal for clean)
        └── DeleteError             - batch delete failed (fatal for clean)
"""

from __future__ import annotations


class BucketSyncError(Exception):
    """Base exception for all bucketsync errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(BucketSyncError):
    """Raised when configuration loading, parsing, or validation fails."""


class PreconditionError(BucketSyncError):
    """Raised before any I/O when a pass cannot start (empty root, empty glob, ...)."""


# --- Local files -------------------------------------------------------------


class ContentTypeResolutionError(BucketSyncError):
    """Raised when no content-type is known for a file's extension."""

    def __init__(self, path: str, extension: str) -> None:
        super().__init__(
            f"Unable to detect content-type for {extension or '<no extension>'} ({path})",
            details={"path": path, "extension": extension},
        )
        self.path = path
        self.extension = extension


# --- Object store ------------------------------------------------------------


class StorageError(BucketSyncError):
    """Raised when the object store rejects or fails an operation."""


class RemoteReadError(StorageError):
    """Raised when object metadata cannot be read for reasons other than absence."""

    def __init__(self, key: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Metadata lookup for '{key}' failed: {message}", details={"key": key})
        self.key = key
        if cause is not None:
            self.__cause__ = cause


class UploadError(StorageError):
    """Raised when a single object upload fails."""

    def __init__(self, key: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Upload of '{key}' failed: {message}", details={"key": key})
        self.key = key
        if cause is not None:
            self.__cause__ = cause


class ListingError(StorageError):
    """Raised when listing objects under a prefix fails."""

    def __init__(self, prefix: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Listing '{prefix}' failed: {message}", details={"prefix": prefix})
        self.prefix = prefix
        if cause is not None:
            self.__cause__ = cause


class DeleteError(StorageError):
    """Raised when a batch delete fails or reports per-key errors."""

    def __init__(self, keys: list[str], message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Deleting {len(keys)} objects failed: {message}", details={"keys": keys})
        self.keys = keys
        if cause is not None:
            self.__cause__ = cause
