"""S3 blob store backend.

This module encapsulates boto3 client creation and the exists/get/put
object calls used by the frame store. Timeouts and retries are left
to the boto3 client configuration.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.config import SeisCloudConfig
from core.errors import SeisCloudDependencyError, SeisCloudStorageError
from core.s3_uri import format_s3_uri
from store.blob_store import BlobObject

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound", "NoSuchBucket")


class S3BlobStore:
    """Blob store backed by an S3 (or S3-compatible) service."""

    def __init__(self, s3_client: Any) -> None:
        """Wrap an existing boto3 S3 client.

        Args:
            s3_client: Boto3 S3 client.
        """
        self._client = s3_client

    @classmethod
    def from_config(cls, config: SeisCloudConfig) -> "S3BlobStore":
        """Build a store with a boto3 client from runtime config."""
        return cls(create_s3_client(config))

    def exists(self, bucket: str, key: str) -> bool:
        """Return whether an object exists, without transferring its body.

        Raises:
            SeisCloudStorageError: If the head request fails for a reason other than absence.
        """
        try:
            self._client.head_object(Bucket=bucket, Key=key)
        except Exception as error:
            if _is_not_found(error):
                return False
            raise _storage_error("check", bucket, key, error) from error
        return True

    def bucket_exists(self, bucket: str) -> bool:
        """Return whether a bucket exists and is reachable."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except Exception as error:
            if _is_not_found(error):
                return False
            raise SeisCloudStorageError(
                f"Failed to check bucket s3://{bucket}: {error}. "
                "Check AWS credentials and network access."
            ) from error
        return True

    def get(self, bucket: str, key: str) -> BlobObject | None:
        """Fetch an object body stream and metadata.

        Returns:
            Blob object, or None when the key does not exist.

        Raises:
            SeisCloudStorageError: If the request fails.
        """
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except Exception as error:
            if _is_not_found(error):
                return None
            raise _storage_error("read", bucket, key, error) from error
        return BlobObject(
            body=response["Body"],
            metadata=dict(response.get("Metadata", {})),
            content_length=int(response.get("ContentLength", 0)),
        )

    def put(self, bucket: str, key: str, body: bytes, metadata: Mapping[str, str]) -> None:
        """Upload an object, overwriting any existing object at the key.

        Raises:
            SeisCloudStorageError: If the upload fails.
        """
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentLength=len(body),
                Metadata=dict(metadata),
            )
        except Exception as error:
            raise _storage_error("write", bucket, key, error) from error


def create_s3_client(config: SeisCloudConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 S3 client.

    Raises:
        SeisCloudDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise SeisCloudDependencyError(
            "S3 access requires boto3, but it is not installed. "
            "Install boto3 to open datasets stored in S3."
        ) from error
    session_kwargs = _build_boto3_session_kwargs(config)
    session = boto3.session.Session(**session_kwargs)
    if config.s3_endpoint_url:
        return session.client("s3", endpoint_url=config.s3_endpoint_url)
    return session.client("s3")


def _build_boto3_session_kwargs(config: SeisCloudConfig) -> dict[str, str]:
    """Build boto3 Session kwargs from config.

    Args:
        config: Runtime config.

    Returns:
        Session keyword arguments.
    """
    kwargs: dict[str, str] = {}
    if config.s3_profile:
        kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        kwargs["region_name"] = config.s3_region
    return kwargs


def _is_not_found(error: Exception) -> bool:
    """Return whether a boto error reports a missing object or bucket."""
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return False
    code = str(response.get("Error", {}).get("Code", ""))
    return code in _NOT_FOUND_CODES


def _storage_error(action: str, bucket: str, key: str, error: Exception) -> SeisCloudStorageError:
    return SeisCloudStorageError(
        f"Failed to {action} {format_s3_uri(bucket, key)}: {error}. "
        "Check AWS credentials and network access, then retry."
    )
