"""
Tests for configuration loading, resolution and sync settings.
"""

from pathlib import Path

import pytest

from bucketsync.config.loader import _merge_dict, load_config
from bucketsync.config.resolver import resolve_config
from bucketsync.config.settings import (
    DEFAULT_CONCURRENCY,
    DEFAULT_MULTIPART_CHUNK_BYTES,
    SyncConfig,
)
from bucketsync.connections.s3 import S3ObjectStore
from bucketsync.core.criteria import SyncCriterion
from bucketsync.exceptions import ConfigurationError


class TestSyncConfig:
    """Tests for SyncConfig."""

    def test_defaults(self):
        config = SyncConfig.from_dict({"bucket": "b"})
        assert config.concurrency == DEFAULT_CONCURRENCY == 6
        assert config.multipart_chunk_bytes == DEFAULT_MULTIPART_CHUNK_BYTES == 10 * 1024 * 1024
        assert config.multipart_threshold_bytes == 100 * 1024 * 1024
        assert len(config.criteria) == 5

    def test_dashed_keys(self):
        config = SyncConfig.from_dict({"bucket": "b", "files-glob": "*.html", "strip-extension-glob": "**/*.html"})
        assert config.files_glob == "*.html"
        assert config.strip_extension_glob == "**/*.html"

    def test_string_numbers_are_converted(self):
        config = SyncConfig.from_dict({"concurrency": "3", "multipart-file-size-mb": "50"})
        assert config.concurrency == 3
        assert config.multipart_file_size_mb == 50

    def test_non_numeric_value(self):
        with pytest.raises(ConfigurationError, match="'concurrency' must be an integer"):
            SyncConfig.from_dict({"concurrency": "many"})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="Unknown config keys: colour"):
            SyncConfig.from_dict({"colour": "blue"})

    def test_reserved_sections_ignored(self):
        config = SyncConfig.from_dict({"bucket": "b", "logging": {"level": "DEBUG"}, "store": {"max_attempts": 2}})
        assert config.bucket == "b"

    def test_none_keeps_default(self):
        assert SyncConfig.from_dict({"concurrency": None}).concurrency == DEFAULT_CONCURRENCY

    @pytest.mark.parametrize(
        "values, message",
        [
            ({"concurrency": 0}, "concurrency must be >= 1"),
            ({"multipart_file_size_mb": -1}, "multipart_file_size_mb must be >= 0"),
            ({"multipart_chunk_bytes": 1024}, "multipart_chunk_bytes must be >="),
            ({"sync_strategy": "ETag Colour"}, "Unknown sync criterion"),
        ],
    )
    def test_validation(self, values, message):
        with pytest.raises(ConfigurationError, match=message):
            SyncConfig.from_dict(values)

    def test_criteria_follow_strategy(self):
        config = SyncConfig.from_dict({"sync_strategy": "ContentLength\nETag"})
        assert config.criteria == (SyncCriterion.CONTENT_LENGTH, SyncCriterion.ETAG)

    def test_merged_overrides_skip_none(self):
        base = SyncConfig.from_dict({"bucket": "b", "prefix": "docs"})
        merged = base.merged(prefix="preview", bucket=None, concurrency=2)
        assert merged.bucket == "b"
        assert merged.prefix == "preview"
        assert merged.concurrency == 2
        assert base.prefix == "docs"

    def test_root_dir_under_workspace(self, tmp_path):
        config = SyncConfig(workspace=str(tmp_path), src_dir="public")
        assert config.root_dir == (tmp_path / "public").resolve()

    def test_root_dir_defaults_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert SyncConfig(src_dir="public").root_dir == (tmp_path / "public").resolve()

    def test_store_config(self):
        config = SyncConfig(bucket="b", region="eu-west-1")
        assert config.store_config() == {"bucket": "b", "region": "eu-west-1", "endpoint_url": ""}


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "bucketsync.yaml"
        path.write_text("bucket: site\nconcurrency: 4\n")
        assert load_config(path) == {"bucket": "site", "concurrency": 4}

    def test_env_overlay_and_placeholders(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SITE_REGION", "eu-central-1")
        (tmp_path / "bucketsync.yaml").write_text("bucket: site-{env}\nregion: ${SITE_REGION}\nprefix: docs\n")
        (tmp_path / "bucketsync.prod.yaml").write_text("prefix: live\n")

        data = load_config(tmp_path / "bucketsync.yaml", env="prod")

        assert data == {"bucket": "site-prod", "region": "eu-central-1", "prefix": "live"}

    def test_unset_variable_in_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("BUCKETSYNC_BUCKET", raising=False)
        path = tmp_path / "bucketsync.yaml"
        path.write_text("bucket: ${BUCKETSYNC_BUCKET}\n")
        with pytest.raises(ConfigurationError, match="BUCKETSYNC_BUCKET"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            load_config(tmp_path / "nope.yaml")

    def test_default_path_is_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        Path("bucketsync.yaml").write_text("bucket: here\n")
        assert load_config()["bucket"] == "here"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bucketsync.yaml"
        path.write_text("bucket: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Error parsing bucketsync.yaml"):
            load_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "bucketsync.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_config(path)


class TestResolver:
    """Tests for placeholder resolution."""

    def test_unset_variable_is_an_error(self, monkeypatch):
        monkeypatch.delenv("BUCKETSYNC_UNSET", raising=False)
        with pytest.raises(ConfigurationError, match="Environment variables not set: BUCKETSYNC_UNSET") as exc_info:
            resolve_config({"store": {"access_key_id": "${BUCKETSYNC_UNSET}"}})
        assert exc_info.value.details == {"variables": ["BUCKETSYNC_UNSET"]}

    def test_fallback_for_unset_variable(self, monkeypatch):
        monkeypatch.delenv("BUCKETSYNC_UNSET", raising=False)
        assert resolve_config({"region": "${BUCKETSYNC_UNSET:-eu-west-1}"}) == {"region": "eu-west-1"}

    def test_fallback_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("BUCKETSYNC_REGION", "us-east-2")
        assert resolve_config({"region": "${BUCKETSYNC_REGION:-eu-west-1}"}) == {"region": "us-east-2"}

    def test_optional_credentials_fall_back_to_default_chain(self, monkeypatch):
        monkeypatch.delenv("BUCKETSYNC_KEY_ID", raising=False)
        monkeypatch.delenv("BUCKETSYNC_SECRET", raising=False)
        store_config = resolve_config(
            {"bucket": "b", "access_key_id": "${BUCKETSYNC_KEY_ID:-}", "secret_access_key": "${BUCKETSYNC_SECRET:-}"}
        )

        kwargs = S3ObjectStore("site", store_config)._get_client_kwargs()

        assert "aws_access_key_id" not in kwargs
        assert "aws_secret_access_key" not in kwargs

    def test_all_missing_variables_reported(self, monkeypatch):
        monkeypatch.delenv("BUCKETSYNC_A", raising=False)
        monkeypatch.delenv("BUCKETSYNC_B", raising=False)
        with pytest.raises(ConfigurationError, match="BUCKETSYNC_A, BUCKETSYNC_B"):
            resolve_config({"a": "${BUCKETSYNC_B}", "b": ["${BUCKETSYNC_A}"]})

    def test_nested_values(self, monkeypatch):
        monkeypatch.setenv("TOKEN", "t")
        assert resolve_config({"store": {"token": "${TOKEN}"}, "list": ["{env}"]}, "ci") == {
            "store": {"token": "t"},
            "list": ["ci"],
        }

    def test_merge_dict(self):
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        _merge_dict(base, {"a": {"b": 10}, "e": 5})
        assert base == {"a": {"b": 10, "c": 2}, "d": 3, "e": 5}
