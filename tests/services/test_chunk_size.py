"""Tests for chunk size resolution."""

from __future__ import annotations

import pytest

from objupload.app.services.base import InvalidSizeError
from objupload.app.services.chunk_size import (
    MAX_PART_SIZE_BYTES,
    MIB,
    MIN_PART_SIZE_BYTES,
    parse_size,
    resolve_chunk_size,
    suggest_chunk_size,
)


class TestParseSize:
    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("8MB", 8 * MIB),
            ("8mb", 8 * MIB),
            ("8 MB", 8 * MIB),
            ("8MiB", 8 * MIB),
            ("1GB", 1024 * MIB),
            ("512KB", 512 * 1024),
            ("1.5MB", 3 * MIB // 2),
            ("1048576", MIB),
            ("10B", 10),
            (42, 42),
        ],
    )
    def test_parses_binary_units(self, spec, expected):
        assert parse_size(spec) == expected

    @pytest.mark.parametrize("spec", ["", "MB", "ten MB", "-5MB", "5XB", "5 M B"])
    def test_rejects_garbage(self, spec):
        with pytest.raises(InvalidSizeError, match="Invalid size"):
            parse_size(spec)

    def test_rejects_bool(self):
        with pytest.raises(InvalidSizeError):
            parse_size(True)


class TestResolveChunkSize:
    def test_returns_byte_count(self):
        assert resolve_chunk_size("10MB") == 10 * MIB

    def test_is_idempotent(self):
        assert resolve_chunk_size("16MB") == resolve_chunk_size("16MB")

    def test_accepts_store_minimum(self):
        assert resolve_chunk_size("5MB") == MIN_PART_SIZE_BYTES

    @pytest.mark.parametrize("spec", [0, "0MB", "0"])
    def test_rejects_non_positive(self, spec):
        with pytest.raises(InvalidSizeError, match="positive"):
            resolve_chunk_size(spec)

    def test_rejects_negative_int(self):
        with pytest.raises(InvalidSizeError, match="positive"):
            resolve_chunk_size(-1)

    @pytest.mark.parametrize("spec", ["4MB", "1KB", 5 * MIB - 1])
    def test_rejects_below_minimum(self, spec):
        with pytest.raises(InvalidSizeError, match="below the minimum"):
            resolve_chunk_size(spec)

    def test_rejects_above_maximum_part_size(self):
        with pytest.raises(InvalidSizeError, match="exceeds the maximum"):
            resolve_chunk_size(MAX_PART_SIZE_BYTES + 1)

    def test_rejects_too_many_parts(self):
        source_size = 10_001 * 5 * MIB
        with pytest.raises(InvalidSizeError, match="10001 parts"):
            resolve_chunk_size("5MB", source_size=source_size)

    def test_accepts_exactly_max_parts(self):
        source_size = 10_000 * 5 * MIB
        assert resolve_chunk_size("5MB", source_size=source_size) == 5 * MIB

    def test_unknown_source_size_skips_part_count_check(self):
        assert resolve_chunk_size("5MB", source_size=None) == 5 * MIB

    def test_custom_minimum(self):
        assert resolve_chunk_size(10, min_part_size=1) == 10


class TestSuggestChunkSize:
    def test_small_source_uses_minimum(self):
        assert suggest_chunk_size(100) == MIN_PART_SIZE_BYTES

    def test_large_source_stays_within_part_limit(self):
        source_size = 200 * 1024 * MIB
        chunk_size = suggest_chunk_size(source_size)
        assert chunk_size % MIB == 0
        assert -(-source_size // chunk_size) <= 10_000
        assert resolve_chunk_size(chunk_size, source_size=source_size) == chunk_size

    def test_rejects_sources_beyond_store_limits(self):
        with pytest.raises(InvalidSizeError, match="too large"):
            suggest_chunk_size(MAX_PART_SIZE_BYTES * 10_001)
