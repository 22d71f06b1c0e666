"""SeisCloud CLI entry points.
This module exposes dataset inspection and creation commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.addressing import derive_storage_prefix
from core.config import SeisCloudConfig
from core.errors import SeisCloudError
from core.s3_uri import parse_s3_uri
from store.dataset_sdk import SeisCloudClient
from store.metadata_io import LocalMetadataSource


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="seiscloud", description="SeisCloud dataset CLI")
    parser.add_argument(
        "--local-root",
        help="Use a local directory as blob store instead of S3 for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_info_command(subparsers)
    _add_exists_command(subparsers)
    _add_prefix_command(subparsers)
    _add_create_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the SeisCloud CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "prefix-from-path":
        return _run_prefix_command(args)
    try:
        client = _build_client(args.local_root)
        if args.command == "info":
            return _run_info_command(client, args)
        if args.command == "exists":
            return _run_exists_command(client, args)
        if args.command == "create":
            return _run_create_command(client, args)
    except SeisCloudError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(local_root: str | None) -> SeisCloudClient:
    """Build SDK client with optional local-root override.

    Args:
        local_root: Optional local blob store directory.

    Returns:
        Configured SDK client.
    """
    config = SeisCloudConfig.from_env()
    if local_root:
        config = replace(config, local_store_root=Path(local_root).expanduser().resolve())
    return SeisCloudClient(config)


def _run_info_command(client: SeisCloudClient, args: argparse.Namespace) -> int:
    """Handle info command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    location = parse_s3_uri(args.dataset)
    with client.open_remote(location.bucket, location.prefix) as store:
        volumes = store.volume_range
        frames = store.frame_range
        layout = store.layout
        print(f"shape={','.join(str(length) for length in store.shape)}")
        print(f"trace_format={store.metadata.trace_format}")
        print(f"byte_order={store.metadata.byte_order}")
        print(f"volume_range={volumes.start}:{volumes.end}:{volumes.step}")
        print(f"frame_range={frames.start}:{frames.end}:{frames.step}")
        print(f"frame_count={store.frame_count}")
        print(f"trace_record_length={layout.trace_record_length}")
        print(f"header_record_length={layout.header_record_length}")
    return 0


def _run_exists_command(client: SeisCloudClient, args: argparse.Namespace) -> int:
    """Handle exists command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    location = parse_s3_uri(args.dataset)
    with client.open_remote(location.bucket, location.prefix) as store:
        exists = store.frame_exists(args.volume, args.frame)
    print("true" if exists else "false")
    return 0


def _run_prefix_command(args: argparse.Namespace) -> int:
    """Handle prefix-from-path command.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when no prefix can be derived.
    """
    prefix = derive_storage_prefix(args.path)
    if prefix is None:
        print(f"error=cannot derive a storage prefix from {args.path}")
        return 1
    print(prefix)
    return 0


def _run_create_command(client: SeisCloudClient, args: argparse.Namespace) -> int:
    """Handle create command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    metadata = LocalMetadataSource(Path(args.metadata)).load()
    location = parse_s3_uri(args.dataset)
    key = client.create_dataset(
        location.bucket, location.prefix, metadata, overwrite=args.overwrite
    )
    print(key)
    return 0


def _add_dataset_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("dataset", help="Dataset location as s3://bucket/prefix")


def _add_info_command(subparsers: Any) -> None:
    """Register info subcommand."""
    parser = subparsers.add_parser("info", help="Print dataset grid and record layout")
    _add_dataset_arguments(parser)


def _add_exists_command(subparsers: Any) -> None:
    """Register exists subcommand."""
    parser = subparsers.add_parser("exists", help="Check whether a frame has been written")
    _add_dataset_arguments(parser)
    parser.add_argument("--volume", type=int, required=True, help="Volume logical value")
    parser.add_argument("--frame", type=int, required=True, help="Frame logical value")


def _add_prefix_command(subparsers: Any) -> None:
    """Register prefix-from-path subcommand."""
    parser = subparsers.add_parser(
        "prefix-from-path",
        help="Derive the default storage prefix of a local dataset path",
    )
    parser.add_argument("path", help="Local dataset path ending with .js")


def _add_create_command(subparsers: Any) -> None:
    """Register create subcommand."""
    parser = subparsers.add_parser(
        "create",
        help="Create a dataset from a JSON or YAML properties description",
    )
    _add_dataset_arguments(parser)
    parser.add_argument("--metadata", required=True, help="Local JSON or YAML properties file")
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing dataset properties",
    )
