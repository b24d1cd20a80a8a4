"""
S3 object store.

boto3 client wrapper implementing the object store capabilities. Blocking
boto3 calls run in a worker thread so the scheduler keeps interleaving I/O.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

from bucketsync.connections.storage import BaseObjectStore, ProgressCallback
from bucketsync.core.types import HeadResult, ListingPage, RemoteObjectMetadata
from bucketsync.exceptions import ConfigurationError, DeleteError, ListingError, UploadError
from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.connections.s3")

# DeleteObjects accepts at most this many keys per request
MAX_DELETE_BATCH = 1000

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def _is_not_found(error: Exception) -> bool:
    """Whether a boto3 error means the object does not exist."""
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return False
    error_code = response.get("Error", {}).get("Code")
    http_status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return error_code in _NOT_FOUND_CODES or http_status == 404


class S3ObjectStore(BaseObjectStore):
    """
    S3 object store.

    Provides a lazy-initialized boto3 client with credential management.
    Supports AWS credentials from config, environment, or IAM role.
    Retries and timeouts are left to botocore's retry configuration.

    Config example:
        bucket: my-bucket
        region: us-east-1
        access_key_id: AKIA...   # Optional, uses env/IAM if not set
        secret_access_key: ...   # Optional
        session_token: ...       # Optional (for temp creds)
        endpoint_url: ...        # Optional (for S3-compatible services)
        max_attempts: 5          # Optional botocore retry attempts
    """

    def __init__(self, name: str, config: dict[str, Any]):
        super().__init__(name, config)
        self._client = None
        if not self.config.get("bucket"):
            raise ConfigurationError(
                f"S3 store '{name}' requires 'bucket' in config",
                details={"store": name},
            )

    @property
    def bucket(self) -> str:
        """Get S3 bucket name from config."""
        return self.config["bucket"]

    @property
    def region(self) -> Optional[str]:
        """Get AWS region from config."""
        return self.config.get("region") or None

    @property
    def endpoint_url(self) -> Optional[str]:
        """Get custom endpoint URL (for S3-compatible services like MinIO)."""
        return self.config.get("endpoint_url") or None

    def _get_client_kwargs(self) -> dict[str, Any]:
        """Build kwargs for boto3 client initialization."""
        from botocore.config import Config

        kwargs: dict[str, Any] = {
            "config": Config(retries={"max_attempts": int(self.config.get("max_attempts", 5)), "mode": "standard"})
        }

        if self.region:
            kwargs["region_name"] = self.region

        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url

        # Explicit credentials from config (override env/IAM)
        access_key = self.config.get("access_key_id")
        secret_key = self.config.get("secret_access_key")
        session_token = self.config.get("session_token")

        if access_key and secret_key:
            kwargs["aws_access_key_id"] = access_key
            kwargs["aws_secret_access_key"] = secret_key
            if session_token:
                kwargs["aws_session_token"] = session_token

        return kwargs

    @property
    def client(self):
        """
        Get boto3 S3 client (lazy initialization).

        Returns:
            boto3.client('s3') instance
        """
        if self._client is None:
            import boto3

            self._client = boto3.client("s3", **self._get_client_kwargs())
        return self._client

    def describe(self, key: str = "") -> str:
        return f"s3://{self.bucket}/{key}"

    @staticmethod
    def _extra_args(content_type: str, cache_control: str, acl: str) -> dict[str, Any]:
        extra_args: dict[str, Any] = {"ContentType": content_type}
        if cache_control:
            extra_args["CacheControl"] = cache_control
        if acl:
            extra_args["ACL"] = acl
        return extra_args

    async def head(self, key: str) -> HeadResult:
        try:
            response = await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except Exception as e:
            if _is_not_found(e):
                return HeadResult.not_found()
            return HeadResult.lookup_failed(e)
        return HeadResult.found(RemoteObjectMetadata.from_head_response(response))

    def _put_object(self, key: str, path: Path, extra_args: dict[str, Any]) -> None:
        with open(path, "rb") as body:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=body, **extra_args)

    async def put(
        self,
        key: str,
        path: Path,
        *,
        content_type: str,
        cache_control: str = "",
        acl: str = "",
    ) -> None:
        extra_args = self._extra_args(content_type, cache_control, acl)
        try:
            await asyncio.to_thread(self._put_object, key, path, extra_args)
        except Exception as e:
            raise UploadError(key, str(e), cause=e) from e

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
        from boto3.s3.transfer import TransferConfig

        # Threshold == chunk size: files under one part are stored with a plain MD5 (see stored_part_size)
        transfer_config = TransferConfig(
            multipart_threshold=part_size,
            multipart_chunksize=part_size,
            max_concurrency=concurrency,
            use_threads=concurrency > 1,
        )
        try:
            await asyncio.to_thread(
                self.client.upload_file,
                str(path),
                self.bucket,
                key,
                ExtraArgs=self._extra_args(content_type, cache_control, acl),
                Config=transfer_config,
                Callback=on_progress,
            )
        except Exception as e:
            raise UploadError(key, str(e), cause=e) from e

    async def list_objects(self, prefix: str) -> ListingPage:
        try:
            response = await asyncio.to_thread(self.client.list_objects_v2, Bucket=self.bucket, Prefix=prefix)
        except Exception as e:
            raise ListingError(prefix, str(e), cause=e) from e
        keys = [obj["Key"] for obj in response.get("Contents", [])]
        return ListingPage(keys=keys, is_truncated=bool(response.get("IsTruncated")))

    async def delete_batch(self, keys: list[str]) -> None:
        for start in range(0, len(keys), MAX_DELETE_BATCH):
            chunk = keys[start : start + MAX_DELETE_BATCH]
            try:
                response = await asyncio.to_thread(
                    self.client.delete_objects,
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in chunk], "Quiet": True},
                )
            except Exception as e:
                raise DeleteError(chunk, str(e), cause=e) from e

            errors = response.get("Errors") or []
            if errors:
                failed = [error.get("Key", "") for error in errors]
                first = errors[0]
                raise DeleteError(failed, f"{first.get('Code')}: {first.get('Message')}")

    def close(self) -> None:
        """Close S3 client connections."""
        # boto3 clients don't require explicit closing,
        # but we reset for consistency
        self._client = None
