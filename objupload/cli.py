"""Command line entry point.

Usage:
  objupload put ./dump.csv s3://bucket/exports/dump.csv --max-concurrent-requests 8
  objupload put ./dump.csv s3://bucket/exports/dump.csv --multipart-chunksize 64MB
  objupload exists s3://bucket/exports/dump.csv
  objupload delete s3://bucket/exports/dump.csv

S3 and upload defaults come from the environment (see objupload.common.config);
flags override them for a single invocation.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Sequence

from objupload.app.services import (
    InvalidSizeError,
    ObjectExistsError,
    ObjectTransferService,
    ServiceError,
)
from objupload.common.config import Settings, get_settings
from objupload.common.logging import setup_logging
from objupload.infra.observability.metrics import serve_metrics
from objupload.infra.storage.client import StorageError

logger = logging.getLogger("objupload.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def parse_s3_url(url: str) -> tuple[str, str]:
    """Split ``s3://bucket/key`` into bucket and key."""
    if not url.startswith("s3://"):
        raise ValueError(f"Expected an s3://bucket/key URL, got {url!r}")
    bucket, _, key = url[len("s3://") :].partition("/")
    if not bucket or not key:
        raise ValueError(f"URL must name both a bucket and a key: {url!r}")
    return bucket, key


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="objupload", description="Upload objects to S3-compatible storage"
    )
    parser.add_argument("--region", default=None, help="AWS region (default: S3_REGION)")
    parser.add_argument(
        "--profile", default=None, help="Credential profile (default: provider chain)"
    )
    parser.add_argument("--endpoint-url", default=None, help="S3-compatible endpoint")
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port while running",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    put = subparsers.add_parser("put", help="Upload a local file")
    put.add_argument("source", help="Local file path, or - for stdin")
    put.add_argument("destination", help="s3://bucket/key")
    put.add_argument("--max-concurrent-requests", type=int, default=None)
    put.add_argument("--multipart-chunksize", default=None, help="e.g. 8MB, 64MiB")
    put.add_argument(
        "--multipart-threshold",
        default=None,
        help="Sources smaller than this are sent with a single request",
    )
    put.add_argument("--content-type", default=None)
    put.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Fail if the destination key already exists",
    )

    exists = subparsers.add_parser("exists", help="Exit 0 if the object exists")
    exists.add_argument("destination", help="s3://bucket/key")

    delete = subparsers.add_parser("delete", help="Delete an object")
    delete.add_argument("destination", help="s3://bucket/key")
    return parser


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.region:
        overrides["S3_REGION"] = args.region
    if args.profile:
        overrides["S3_PROFILE"] = args.profile
    if args.endpoint_url:
        overrides["S3_ENDPOINT_URL"] = args.endpoint_url
    if getattr(args, "max_concurrent_requests", None) is not None:
        overrides["UPLOAD_MAX_CONCURRENT_REQUESTS"] = args.max_concurrent_requests
    if getattr(args, "multipart_chunksize", None):
        overrides["UPLOAD_MULTIPART_CHUNKSIZE"] = args.multipart_chunksize
    if getattr(args, "multipart_threshold", None):
        overrides["UPLOAD_MULTIPART_THRESHOLD"] = args.multipart_threshold
    return replace(settings, **overrides) if overrides else settings


def _run(args: argparse.Namespace, service: ObjectTransferService) -> int:
    bucket, key = parse_s3_url(args.destination)
    if args.command == "exists":
        found = service.exists(bucket, key)
        print("exists" if found else "not found")
        return EXIT_OK if found else EXIT_FAILED
    if args.command == "delete":
        service.delete(bucket, key)
        print(f"Deleted s3://{bucket}/{key}")
        return EXIT_OK

    source = sys.stdin.buffer if args.source == "-" else args.source
    result = service.upload(bucket, key, source, overwrite=not args.no_overwrite)
    mode = "multipart" if result.multipart else "single request"
    print(f"Uploaded {args.source} to s3://{bucket}/{key} ({mode})")
    return EXIT_OK


def main(
    argv: Sequence[str] | None = None,
    *,
    service: ObjectTransferService | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _settings_for(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    if args.metrics_port is not None:
        serve_metrics(args.metrics_port)

    try:
        if service is None:
            config = settings.upload_config(
                content_type=getattr(args, "content_type", None)
            )
            service = ObjectTransferService(settings=settings, upload_config=config)
        return _run(args, service)
    except (ValueError, InvalidSizeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except ObjectExistsError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    except (ServiceError, StorageError) as exc:
        logger.error("command_failed command=%s error=%s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
