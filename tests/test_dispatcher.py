"""
Tests for the upload dispatcher and the sync driver.

Runs whole passes against the in-memory object store.
"""

import asyncio

import pytest

from bucketsync.config.settings import SyncConfig
from bucketsync.connections.memory import InMemoryObjectStore
from bucketsync.core.api import sync_files
from bucketsync.core.dispatcher import UploadDispatcher
from bucketsync.exceptions import PreconditionError
from bucketsync.utils.discovery import find_files

PART_SIZE = 256 * 1024


class ConcurrencyTrackingStore(InMemoryObjectStore):
    """Records how many puts of each kind were in flight at once."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.active = {"put": 0, "put_multipart": 0}
        self.peak = {"put": 0, "put_multipart": 0}

    async def _track(self, kind, call):
        self.active[kind] += 1
        self.peak[kind] = max(self.peak[kind], self.active[kind])
        try:
            await asyncio.sleep(0.005)
            await call
        finally:
            self.active[kind] -= 1

    async def put(self, key, path, **kwargs):
        await self._track("put", super().put(key, path, **kwargs))

    async def put_multipart(self, key, path, **kwargs):
        await self._track("put_multipart", super().put_multipart(key, path, **kwargs))


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    for name in ["a.html", "b.html", "c.html", "d.css", "e.js"]:
        (root / name).write_text(f"content of {name}")
    return root.resolve()


def _config(**overrides):
    values = {"bucket": "test-bucket", "concurrency": 2, "cache_control": "max-age=60"}
    values.update(overrides)
    return SyncConfig(**values)


async def _sync(store, root, config, pattern="**/*"):
    return await UploadDispatcher(store, config).sync(root, find_files(root, pattern))


class TestFirstAndRepeatSync:
    """A second pass over unchanged files uploads nothing."""

    @pytest.mark.asyncio
    async def test_first_sync_uploads_everything_in_discovery_order(self, site):
        store = InMemoryObjectStore()
        result = await _sync(store, site, _config())

        assert result.uploaded_keys == ["a.html", "b.html", "c.html", "d.css", "e.js"]
        assert store.objects["a.html"].metadata.content_type == "text/html"
        assert store.objects["a.html"].metadata.cache_control == "max-age=60"

    @pytest.mark.asyncio
    async def test_second_sync_skips_unchanged(self, site):
        store = InMemoryObjectStore()
        await _sync(store, site, _config())
        store.calls.clear()

        result = await _sync(store, site, _config())

        assert result.uploaded_keys == []
        assert result.skipped_keys == ["a.html", "b.html", "c.html", "d.css", "e.js"]
        assert store.calls_to("put") == []

    @pytest.mark.asyncio
    async def test_changed_file_is_uploaded(self, site):
        store = InMemoryObjectStore()
        await _sync(store, site, _config())

        (site / "b.html").write_text("new content of b.html")
        result = await _sync(store, site, _config())

        assert result.uploaded_keys == ["b.html"]

    @pytest.mark.asyncio
    async def test_cache_control_change_uploads_everything(self, site):
        store = InMemoryObjectStore()
        await _sync(store, site, _config())

        result = await _sync(store, site, _config(cache_control="no-cache"))

        assert len(result.uploaded_keys) == 5

    @pytest.mark.asyncio
    async def test_empty_strategy_always_uploads(self, site):
        store = InMemoryObjectStore()
        await _sync(store, site, _config(sync_strategy=""))

        result = await _sync(store, site, _config(sync_strategy=""))

        assert len(result.uploaded_keys) == 5

    @pytest.mark.asyncio
    async def test_keys_use_prefix_and_strip_extension(self, site):
        store = InMemoryObjectStore()
        config = _config(prefix="preview", strip_extension_glob="**/*.html")

        result = await _sync(store, site, config, "*.html")

        assert result.uploaded_keys == ["preview/a", "preview/b", "preview/c"]
        assert store.objects["preview/a"].metadata.content_type == "text/html"


class TestPartition:
    """Small files go up concurrently, large files one at a time as multipart."""

    @pytest.fixture
    def mixed_site(self, tmp_path):
        root = tmp_path / "mixed"
        root.mkdir()
        (root / "a.html").write_text("small a")
        (root / "big1.bin").write_bytes(b"1" * (1024 * 1024 + 10))
        (root / "big2.bin").write_bytes(b"2" * (1024 * 1024))
        (root / "c.html").write_text("small c")
        (root / "d.html").write_text("small d")
        return root.resolve()

    def _mixed_config(self):
        return _config(multipart_file_size_mb=1, multipart_chunk_bytes=PART_SIZE, concurrency=3)

    @pytest.mark.asyncio
    async def test_small_keys_then_large_keys(self, mixed_site):
        store = InMemoryObjectStore()
        result = await _sync(store, mixed_site, self._mixed_config())

        assert result.uploaded_keys == ["a.html", "c.html", "d.html", "big1.bin", "big2.bin"]
        assert sorted(store.calls_to("put_multipart")) == ["big1.bin", "big2.bin"]
        assert sorted(store.calls_to("put")) == ["a.html", "c.html", "d.html"]

    @pytest.mark.asyncio
    async def test_multipart_etag_matches_on_second_pass(self, mixed_site):
        store = InMemoryObjectStore()
        await _sync(store, mixed_site, self._mixed_config())
        assert store.objects["big1.bin"].metadata.etag.endswith('-5"')

        result = await _sync(store, mixed_site, self._mixed_config())

        assert result.uploaded_keys == []

    @pytest.mark.asyncio
    async def test_file_between_threshold_and_one_part_is_stored_single_part(self, tmp_path):
        root = tmp_path / "video"
        root.mkdir()
        (root / "video.bin").write_bytes(b"v" * (2 * 1024 * 1024))
        # Multipart by threshold, but smaller than the default 10 MiB part
        config = _config(multipart_file_size_mb=1)
        store = InMemoryObjectStore()

        first = await _sync(store, root.resolve(), config)

        assert first.uploaded_keys == ["video.bin"]
        assert store.calls_to("put_multipart") == ["video.bin"]
        assert "-" not in store.objects["video.bin"].metadata.etag

        second = await _sync(store, root.resolve(), config)

        assert second.uploaded_keys == []

    @pytest.mark.asyncio
    async def test_concurrency_limits(self, mixed_site):
        store = ConcurrencyTrackingStore()
        await _sync(store, mixed_site, self._mixed_config())

        assert store.peak["put_multipart"] == 1
        assert 1 <= store.peak["put"] <= 3


class TestFailures:
    """Per-file failures are reported and excluded; siblings still complete."""

    @pytest.mark.asyncio
    async def test_failed_upload_excluded(self, site):
        store = InMemoryObjectStore()
        store.fail_uploads = {"b.html"}

        result = await _sync(store, site, _config())

        assert result.uploaded_keys == ["a.html", "c.html", "d.css", "e.js"]
        assert "b.html" in result.failed
        assert "b.html" not in store.objects

    @pytest.mark.asyncio
    async def test_unknown_content_type_excluded(self, site):
        (site / "notes.qqq").write_text("??")
        store = InMemoryObjectStore()

        result = await _sync(store, site, _config())

        assert "notes.qqq" in result.failed
        assert len(result.uploaded_keys) == 5
        assert "notes.qqq" not in store.calls_to("head")

    @pytest.mark.asyncio
    async def test_lookup_failure_treated_as_missing(self, site):
        store = InMemoryObjectStore()
        await _sync(store, site, _config())
        store.fail_heads = {"c.html"}

        result = await _sync(store, site, _config())

        assert result.uploaded_keys == ["c.html"]

    @pytest.mark.asyncio
    async def test_missing_root_fails_before_io(self, tmp_path):
        store = InMemoryObjectStore()
        with pytest.raises(PreconditionError):
            await UploadDispatcher(store, _config()).sync(tmp_path / "missing", [])
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_empty_root_fails_before_io(self):
        store = InMemoryObjectStore()
        with pytest.raises(PreconditionError):
            await UploadDispatcher(store, _config()).sync("", [])
        assert store.calls == []


class TestSyncFiles:
    """Tests for the sync_files driver."""

    @pytest.mark.asyncio
    async def test_uses_workspace_and_src_dir(self, site):
        store = InMemoryObjectStore()
        config = _config(workspace=str(site.parent), src_dir="site", files_glob="*.html")

        result = await sync_files(store, config)

        assert result.uploaded_keys == ["a.html", "b.html", "c.html"]

    @pytest.mark.asyncio
    async def test_empty_glob_is_precondition_error(self, site):
        store = InMemoryObjectStore()
        config = _config(workspace=str(site.parent), src_dir="site", files_glob="")

        with pytest.raises(PreconditionError):
            await sync_files(store, config)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_empty_src_dir_is_precondition_error(self, site):
        store = InMemoryObjectStore()
        with pytest.raises(PreconditionError):
            await sync_files(store, _config(workspace=str(site.parent), src_dir=""))
