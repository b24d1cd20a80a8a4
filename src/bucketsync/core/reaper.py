"""
Bulk delete of everything under a prefix.

Each round lists the prefix afresh and deletes that page, until a listing
comes back empty or reports no further pages. Progress relies on deletions
shrinking the listing; concurrent writers to the same prefix can make a
round revisit keys, and ``max_rounds`` bounds how long that can go on.
"""

from __future__ import annotations

from bucketsync.connections.storage import BaseObjectStore
from bucketsync.core.types import CleanResult
from bucketsync.exceptions import ListingError
from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.reaper")


class BulkDeleteReaper:
    """
    Empties a prefix in an object store.

    Listing and delete failures abort the pass; keys deleted in earlier
    rounds are not reported in that case.
    """

    def __init__(self, store: BaseObjectStore, *, max_rounds: int | None = None):
        if max_rounds is not None and max_rounds < 1:
            raise ValueError(f"max_rounds must be >= 1, got {max_rounds}")
        self.store = store
        self.max_rounds = max_rounds

    async def clean(self, prefix: str) -> CleanResult:
        result = CleanResult(prefix=prefix)
        rounds = 0

        while True:
            if self.max_rounds is not None and rounds >= self.max_rounds:
                raise ListingError(prefix, f"still listing objects after {rounds} rounds")
            rounds += 1

            page = await self.store.list_objects(prefix)
            if not page.keys:
                break

            await self.store.delete_batch(page.keys)
            result.deleted_keys.extend(page.keys)
            logger.debug(f"Deleted {len(page.keys)} objects under {self.store.describe(prefix)} (round {rounds})")

            if not page.is_truncated:
                break

        logger.info(f"Cleaned {len(result.deleted_keys)} objects from {self.store.describe(prefix)}")
        return result
