"""
bucketsync - Incremental sync of a local file tree to an object storage bucket.

Uploads files that changed, skips files that did not, and can empty a prefix.
"""

__version__ = "0.1.0"

# Programmatic API
from bucketsync.config.settings import SyncConfig
from bucketsync.core.api import clean_prefix, sync_files
from bucketsync.core.criteria import SyncCriterion, parse_sync_criteria, should_upload
from bucketsync.core.dispatcher import UploadDispatcher
from bucketsync.core.reaper import BulkDeleteReaper
from bucketsync.core.scheduler import BoundedScheduler
from bucketsync.core.types import CleanResult, SyncResult

# Exceptions
from bucketsync.exceptions import (
    BucketSyncError,
    ConfigurationError,
    ContentTypeResolutionError,
    DeleteError,
    ListingError,
    PreconditionError,
    RemoteReadError,
    StorageError,
    UploadError,
)

# Logging utilities
from bucketsync.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Programmatic API
    "sync_files",
    "clean_prefix",
    "SyncConfig",
    "SyncResult",
    "CleanResult",
    # Core
    "BoundedScheduler",
    "BulkDeleteReaper",
    "UploadDispatcher",
    "SyncCriterion",
    "parse_sync_criteria",
    "should_upload",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Exceptions
    "BucketSyncError",
    "ConfigurationError",
    "PreconditionError",
    "ContentTypeResolutionError",
    "StorageError",
    "RemoteReadError",
    "UploadError",
    "ListingError",
    "DeleteError",
]
