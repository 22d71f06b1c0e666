"""Runtime configuration model for SeisCloud.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_READ_CHUNK_SIZE
from core.errors import SeisCloudConfigError


@dataclass(frozen=True)
class SeisCloudConfig:
    """Validated runtime configuration.

    Attributes:
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
        s3_endpoint_url: Optional S3-compatible endpoint override.
        local_store_root: Optional directory used instead of S3 as blob store.
        read_chunk_size: Maximum bytes requested per streamed read.
    """

    s3_region: str | None
    s3_profile: str | None
    s3_endpoint_url: str | None
    local_store_root: Path | None
    read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE

    @classmethod
    def from_env(cls) -> "SeisCloudConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SeisCloudConfigError: If environment values are invalid.
        """
        local_root_value = os.getenv("SEISCLOUD_LOCAL_STORE_ROOT")
        chunk_size_value = os.getenv("SEISCLOUD_READ_CHUNK_SIZE", str(DEFAULT_READ_CHUNK_SIZE))
        return cls(
            s3_region=os.getenv("SEISCLOUD_S3_REGION"),
            s3_profile=os.getenv("SEISCLOUD_S3_PROFILE"),
            s3_endpoint_url=os.getenv("SEISCLOUD_S3_ENDPOINT_URL"),
            local_store_root=(
                Path(local_root_value).expanduser().resolve() if local_root_value else None
            ),
            read_chunk_size=_parse_read_chunk_size(chunk_size_value),
        )


def _parse_read_chunk_size(raw_value: str) -> int:
    """Parse the streamed read chunk size environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive integer.

    Raises:
        SeisCloudConfigError: If value is not a positive integer.
    """
    try:
        chunk_size = int(raw_value)
    except ValueError as error:
        raise SeisCloudConfigError(
            "Invalid SEISCLOUD_READ_CHUNK_SIZE value: "
            f"expected integer, got '{raw_value}'. "
            "Set SEISCLOUD_READ_CHUNK_SIZE to a positive byte count."
        ) from error
    if chunk_size <= 0:
        raise SeisCloudConfigError(
            f"Invalid SEISCLOUD_READ_CHUNK_SIZE value: expected positive integer, got {chunk_size}. "
            "Set SEISCLOUD_READ_CHUNK_SIZE to a positive byte count."
        )
    return chunk_size
