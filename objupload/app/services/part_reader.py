"""Sequential chunking of a byte source into numbered parts."""

from __future__ import annotations

import io
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Generator, Iterator, Union

from objupload.app.services.base import SourceReadError

Source = Union[str, "os.PathLike[str]", bytes, BinaryIO]


@dataclass(frozen=True, slots=True)
class Part:
    """One numbered chunk of the source."""

    number: int
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


def _read_full(stream: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes, coalescing short reads until EOF."""
    buffer = bytearray()
    while len(buffer) < size:
        try:
            data = stream.read(size - len(buffer))
        except OSError as exc:
            raise SourceReadError(f"Failed to read source: {exc}") from exc
        if not data:
            break
        buffer += data
    return bytes(buffer)


def iter_parts(stream: BinaryIO, chunk_size: int) -> Iterator[Part]:
    """Yield consecutive parts of ``chunk_size`` bytes from ``stream``.

    Every part except the last is exactly ``chunk_size`` bytes; the last one
    is shorter but never empty. An empty stream yields nothing.

    Raises:
        ValueError: If ``chunk_size`` is not positive.
        SourceReadError: If the underlying read fails. No parts follow.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    number = 1
    while True:
        payload = _read_full(stream, chunk_size)
        if not payload:
            return
        yield Part(number=number, payload=payload)
        if len(payload) < chunk_size:
            return
        number += 1


@contextmanager
def open_source(source: Source) -> Generator[BinaryIO, None, None]:
    """Provide a binary stream over ``source``.

    Paths are opened here and closed on exit; streams passed in by the
    caller are left open.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        yield io.BytesIO(bytes(source))
        return
    if isinstance(source, (str, os.PathLike)):
        try:
            stream = open(source, "rb")
        except OSError as exc:
            raise SourceReadError(f"Failed to open source {source!s}: {exc}") from exc
        with stream:
            yield stream
        return
    yield source


def source_size(source: Source) -> int | None:
    """Remaining byte length of ``source``, or None when it cannot be known."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return len(source)
    if isinstance(source, (str, os.PathLike)):
        try:
            return Path(source).stat().st_size
        except OSError:
            return None
    try:
        if not source.seekable():
            return None
        position = source.tell()
        end = source.seek(0, io.SEEK_END)
        source.seek(position)
    except (AttributeError, OSError, ValueError):
        return None
    return end - position
