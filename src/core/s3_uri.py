"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for the CLI and SDK layers.
It keeps URI validation behavior consistent across the codebase.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import SeisCloudConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model."""

    bucket: str
    prefix: str


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 dataset URI.

    Args:
        uri: URI in format ``s3://bucket/prefix``.

    Returns:
        Parsed bucket and prefix pair, prefix without trailing slash.

    Raises:
        SeisCloudConfigError: If the URI lacks a bucket or prefix.
    """
    stripped_uri = uri.removeprefix("s3://")
    if "/" not in stripped_uri:
        _raise_uri_error(uri)
    bucket, prefix = stripped_uri.split("/", 1)
    prefix = prefix.rstrip("/")
    if not bucket or not prefix:
        _raise_uri_error(uri)
    return S3Location(bucket=bucket, prefix=prefix)


def format_s3_uri(bucket: str, key: str) -> str:
    """Render a bucket/key pair as an ``s3://`` URI for messages."""
    return f"s3://{bucket}/{key}"


def _raise_uri_error(uri: str) -> None:
    """Raise an invalid dataset URI error.

    Args:
        uri: Invalid URI value.

    Raises:
        SeisCloudConfigError: Always.
    """
    raise SeisCloudConfigError(
        f"Invalid S3 URI '{uri}': expected s3://bucket/prefix. "
        "Provide both bucket and dataset prefix."
    )
