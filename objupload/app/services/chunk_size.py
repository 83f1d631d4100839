"""Chunk size resolution for multipart uploads.

Sizes follow the AWS CLI ``multipart_chunksize`` convention: ``KB``, ``MB``,
``GB`` and ``TB`` are binary multiples, so ``"8MB"`` means 8 * 1024 * 1024
bytes. The explicit ``KiB``/``MiB``/``GiB``/``TiB`` forms are accepted too.
"""

from __future__ import annotations

import math
import re

from pydantic import ByteSize, TypeAdapter, ValidationError

from objupload.app.services.base import InvalidSizeError
from objupload.infra.storage.client import MAX_PART_NUMBER

MIB = 1024 * 1024

# NOTE: AWS S3 multipart limits https://docs.aws.amazon.com/AmazonS3/latest/userguide/qfacts.html
MIN_PART_SIZE_BYTES = 5 * MIB
MAX_PART_SIZE_BYTES = 5 * 1024 * MIB

_SIZE_RE = re.compile(r"^\s*(\d*\.?\d+)\s*([A-Za-z]*)\s*$")
_BINARY_ALIASES = {"kb": "KiB", "mb": "MiB", "gb": "GiB", "tb": "TiB"}

_byte_size = TypeAdapter(ByteSize)


def parse_size(spec: str | int) -> int:
    """Parse a human-readable size into a byte count.

    Raises:
        InvalidSizeError: If the value cannot be parsed.
    """
    if isinstance(spec, bool):
        raise InvalidSizeError(f"Invalid size: {spec!r}")
    if isinstance(spec, int):
        return spec

    match = _SIZE_RE.match(str(spec))
    if not match:
        raise InvalidSizeError(f"Invalid size: {spec!r}")
    number, unit = match.groups()
    unit = _BINARY_ALIASES.get(unit.lower(), unit)

    try:
        return int(_byte_size.validate_python(f"{number}{unit}"))
    except ValidationError as exc:
        raise InvalidSizeError(f"Invalid size: {spec!r}") from exc


def resolve_chunk_size(
    spec: str | int,
    *,
    source_size: int | None = None,
    min_part_size: int = MIN_PART_SIZE_BYTES,
) -> int:
    """Resolve a chunk size expression to a byte count the store accepts.

    Args:
        spec: Size expression such as ``"10MB"`` or a byte count.
        source_size: Total source length when known, used to enforce the
            10,000 part limit.
        min_part_size: Smallest part the store accepts for all but the last part.

    Returns:
        Chunk size in bytes.

    Raises:
        InvalidSizeError: If the size is non-positive, outside the store's
            part size bounds, or would need more than 10,000 parts.
    """
    chunk_size = parse_size(spec)
    if chunk_size <= 0:
        raise InvalidSizeError(f"Chunk size must be positive, got {spec!r}")
    if chunk_size < min_part_size:
        raise InvalidSizeError(
            f"Chunk size {chunk_size} is below the minimum part size ({min_part_size} bytes)"
        )
    if chunk_size > MAX_PART_SIZE_BYTES:
        raise InvalidSizeError(
            f"Chunk size {chunk_size} exceeds the maximum part size ({MAX_PART_SIZE_BYTES} bytes)"
        )
    if source_size is not None and source_size > 0:
        part_count = math.ceil(source_size / chunk_size)
        if part_count > MAX_PART_NUMBER:
            raise InvalidSizeError(
                f"Chunk size {chunk_size} would split {source_size} bytes into "
                f"{part_count} parts (maximum {MAX_PART_NUMBER})"
            )
    return chunk_size


def suggest_chunk_size(
    source_size: int, *, min_part_size: int = MIN_PART_SIZE_BYTES
) -> int:
    """Smallest MiB-aligned chunk size that keeps the part count within limits."""
    needed = math.ceil(max(source_size, 0) / MAX_PART_NUMBER)
    aligned = math.ceil(needed / MIB) * MIB
    chunk_size = max(min_part_size, aligned)
    if chunk_size > MAX_PART_SIZE_BYTES:
        raise InvalidSizeError(
            f"Source of {source_size} bytes is too large for a multipart upload"
        )
    return chunk_size
