"""
Sync settings.

One ``SyncConfig`` describes a sync or clean pass. It is built from a config
file and/or CLI options and passed explicitly to the dispatcher; nothing reads
ambient process state.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from bucketsync.core.criteria import DEFAULT_SYNC_STRATEGY, SyncCriterion, parse_sync_criteria
from bucketsync.exceptions import ConfigurationError

DEFAULT_CONCURRENCY = 6
DEFAULT_MULTIPART_FILE_SIZE_MB = 100
DEFAULT_MULTIPART_CHUNK_BYTES = 10 * 1024 * 1024

# Smallest part size S3 accepts for all but the last part
MIN_MULTIPART_CHUNK_BYTES = 5 * 1024 * 1024

# Config sections that are not sync settings
_RESERVED_SECTIONS = {"logging", "store"}


@dataclass
class SyncConfig:
    bucket: str = ""
    region: str = ""
    endpoint_url: str = ""
    workspace: str = ""
    src_dir: str = "."
    files_glob: str = "**/*"
    prefix: str = ""
    strip_extension_glob: str = ""
    cache_control: str = ""
    acl: str = ""
    multipart_file_size_mb: int = DEFAULT_MULTIPART_FILE_SIZE_MB
    multipart_chunk_bytes: int = DEFAULT_MULTIPART_CHUNK_BYTES
    concurrency: int = DEFAULT_CONCURRENCY
    sync_strategy: str = DEFAULT_SYNC_STRATEGY

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """
        Build from a config mapping.

        Keys may use dashes or underscores (``files-glob`` == ``files_glob``).
        ``None`` values keep the default.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        unknown: list[str] = []
        for raw_key, value in data.items():
            key = str(raw_key).replace("-", "_")
            if key in _RESERVED_SECTIONS or value is None:
                continue
            if key not in known:
                unknown.append(str(raw_key))
                continue
            values[key] = value
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(sorted(unknown))}", details={"keys": unknown})

        for key in ("multipart_file_size_mb", "multipart_chunk_bytes", "concurrency"):
            if key in values:
                try:
                    values[key] = int(values[key])
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(f"'{key}' must be an integer, got {values[key]!r}") from e

        config = cls(**values)
        config.validate()
        return config

    def merged(self, **overrides: Any) -> SyncConfig:
        """Copy with non-None overrides applied (CLI options over file values)."""
        data = asdict(self)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return SyncConfig.from_dict(data)

    def validate(self) -> None:
        errors = []
        if self.concurrency < 1:
            errors.append(f"concurrency must be >= 1, got {self.concurrency}")
        if self.multipart_file_size_mb < 0:
            errors.append(f"multipart_file_size_mb must be >= 0, got {self.multipart_file_size_mb}")
        if self.multipart_chunk_bytes < MIN_MULTIPART_CHUNK_BYTES:
            errors.append(
                f"multipart_chunk_bytes must be >= {MIN_MULTIPART_CHUNK_BYTES}, got {self.multipart_chunk_bytes}"
            )
        try:
            parse_sync_criteria(self.sync_strategy)
        except ConfigurationError as e:
            errors.append(e.message)
        if errors:
            raise ConfigurationError("\n".join(errors))

    @property
    def criteria(self) -> tuple[SyncCriterion, ...]:
        return parse_sync_criteria(self.sync_strategy)

    @property
    def multipart_threshold_bytes(self) -> int:
        return self.multipart_file_size_mb * 1024 * 1024

    @property
    def root_dir(self) -> Path:
        """Directory keys are relative to: ``src_dir`` under ``workspace`` (cwd when unset)."""
        base = Path(self.workspace) if self.workspace else Path.cwd()
        return (base / self.src_dir).resolve()

    def store_config(self) -> dict[str, Any]:
        """Settings for the S3 object store."""
        return {"bucket": self.bucket, "region": self.region, "endpoint_url": self.endpoint_url}
