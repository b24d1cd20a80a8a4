"""
Sync criteria and the upload decision.

A sync strategy is an ordered, de-duplicated set of criteria. Criteria are
evaluated in the configured order and the first mismatch decides, so a cheap
check (length, timestamp) placed first can save hashing the file.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from bucketsync.core.types import LocalFile, RemoteObjectMetadata
from bucketsync.exceptions import ConfigurationError
from bucketsync.utils.hashing import calculate_fingerprint_async
from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.criteria")


class SyncCriterion(str, Enum):
    ETAG = "ETag"
    CONTENT_TYPE = "ContentType"
    CACHE_CONTROL = "CacheControl"
    CONTENT_LENGTH = "ContentLength"
    LAST_MODIFIED = "LastModified"


DEFAULT_SYNC_STRATEGY = """
ETag
ContentType
CacheControl
LastModified
ContentLength
"""

# "Cache-Control", "cache_control" and "CacheControl" name the same criterion
_ALIASES = {re.sub(r"[-_]", "", c.value).lower(): c for c in SyncCriterion}
_ALIASES["fingerprint"] = SyncCriterion.ETAG


def parse_sync_criteria(strategy: str | None) -> tuple[SyncCriterion, ...]:
    """
    Parse a sync strategy string into ordered, unique criteria.

    Names may be separated by newlines, commas or whitespace. First
    occurrence wins when a name repeats. A blank strategy means "always
    upload" and yields an empty tuple.

    Raises:
        ConfigurationError: If a name is not a known criterion
    """
    criteria: list[SyncCriterion] = []
    for token in re.split(r"[\s,]+", strategy or ""):
        if not token:
            continue
        criterion = _ALIASES.get(re.sub(r"[-_]", "", token).lower())
        if criterion is None:
            raise ConfigurationError(
                f"Unknown sync criterion '{token}'. Valid: {', '.join(c.value for c in SyncCriterion)}",
                details={"criterion": token},
            )
        if criterion not in criteria:
            criteria.append(criterion)
    return tuple(criteria)


def _seconds(value: datetime) -> int:
    # Stores truncate Last-Modified to whole seconds
    return int(value.timestamp())


async def _criterion_mismatch(
    criterion: SyncCriterion,
    local: LocalFile,
    remote: RemoteObjectMetadata,
    *,
    cache_control: str,
    part_size: int,
) -> bool:
    if criterion is SyncCriterion.ETAG:
        etag = await calculate_fingerprint_async(local.path, part_size)
        return etag != remote.etag
    if criterion is SyncCriterion.CONTENT_LENGTH:
        return local.size != remote.content_length
    if criterion is SyncCriterion.LAST_MODIFIED:
        if remote.last_modified is None:
            return True
        # Local is authoritative: a newer remote copy never triggers on its own
        return _seconds(local.last_modified) > _seconds(remote.last_modified)
    if criterion is SyncCriterion.CACHE_CONTROL:
        return (cache_control or "") != (remote.cache_control or "")
    if criterion is SyncCriterion.CONTENT_TYPE:
        return (local.content_type or "") != (remote.content_type or "")
    raise ConfigurationError(f"Unhandled sync criterion: {criterion}")


async def should_upload(
    local: LocalFile,
    remote: RemoteObjectMetadata | None,
    criteria: tuple[SyncCriterion, ...] | list[SyncCriterion],
    *,
    cache_control: str = "",
    part_size: int = 0,
) -> bool:
    """
    Decide whether a local file must be (re-)uploaded.

    Args:
        local: Local file facts
        remote: Stored object metadata, ``None`` when the object does not exist
        criteria: Ordered criteria; empty means always upload
        cache_control: Cache-Control value the upload would set
        part_size: Multipart part size for the ETag criterion, 0 for single part

    Returns:
        True on the first mismatching criterion, False when all match
    """
    if remote is None:
        return True
    if not criteria:
        return True

    for criterion in criteria:
        if await _criterion_mismatch(criterion, local, remote, cache_control=cache_control, part_size=part_size):
            logger.debug(f"{local.path}: {criterion.value} differs")
            return True
    return False
