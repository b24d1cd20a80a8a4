"""
Tests for the bulk delete reaper.
"""

import pytest

from bucketsync.connections.memory import InMemoryObjectStore
from bucketsync.core.api import clean_prefix
from bucketsync.core.reaper import BulkDeleteReaper
from bucketsync.exceptions import DeleteError, ListingError


def _seeded(page_size, keys):
    store = InMemoryObjectStore(page_size=page_size)
    for key in keys:
        store.seed(key, key.encode())
    return store


class StuckDeleteStore(InMemoryObjectStore):
    """Accepts deletes but the listing never shrinks (concurrent writer)."""

    async def delete_batch(self, keys):
        self.calls.append(("delete_batch", list(keys)))


class TestBulkDeleteReaper:
    """Tests for BulkDeleteReaper.clean."""

    @pytest.mark.asyncio
    async def test_empty_prefix_lists_once(self):
        store = _seeded(10, ["other/a"])

        result = await BulkDeleteReaper(store).clean("previews/")

        assert result.deleted_keys == []
        assert store.calls == [("list_objects", "previews/")]

    @pytest.mark.asyncio
    async def test_drains_all_pages(self):
        keys = [f"p/{i}" for i in range(5)]
        store = _seeded(2, keys + ["other/keep"])

        result = await BulkDeleteReaper(store).clean("p/")

        assert sorted(result.deleted_keys) == keys
        assert list(store.objects) == ["other/keep"]
        assert len(store.calls_to("list_objects")) == 3
        assert [len(batch) for batch in store.calls_to("delete_batch")] == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_stops_when_listing_not_truncated(self):
        store = _seeded(2, ["p/a", "p/b", "p/c", "p/d"])

        result = await BulkDeleteReaper(store).clean("p/")

        assert len(result.deleted_keys) == 4
        assert len(store.calls_to("list_objects")) == 2

    @pytest.mark.asyncio
    async def test_single_page(self):
        store = _seeded(1000, ["p/a", "p/b"])

        result = await clean_prefix(store, "p/")

        assert result.prefix == "p/"
        assert sorted(result.modified_keys) == ["p/a", "p/b"]
        assert store.objects == {}

    @pytest.mark.asyncio
    async def test_listing_error_aborts(self):
        store = _seeded(10, ["p/a"])
        store.fail_listing = True

        with pytest.raises(ListingError):
            await BulkDeleteReaper(store).clean("p/")

    @pytest.mark.asyncio
    async def test_delete_error_aborts(self):
        store = _seeded(10, ["p/a"])
        store.fail_delete = True

        with pytest.raises(DeleteError):
            await BulkDeleteReaper(store).clean("p/")
        assert "p/a" in store.objects

    @pytest.mark.asyncio
    async def test_max_rounds_bounds_a_listing_that_never_shrinks(self):
        store = StuckDeleteStore(page_size=1)
        store.seed("p/a")
        store.seed("p/b")

        with pytest.raises(ListingError, match="after 3 rounds"):
            await BulkDeleteReaper(store, max_rounds=3).clean("p/")
        assert len(store.calls_to("delete_batch")) == 3

    def test_rejects_invalid_max_rounds(self):
        with pytest.raises(ValueError):
            BulkDeleteReaper(InMemoryObjectStore(), max_rounds=0)
