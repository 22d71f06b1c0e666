"""Unit tests for record length derivation."""

from __future__ import annotations

import pytest

from codec.trace_codec import resolve_trace_codec
from core.errors import SeisCloudConfigError
from core.record_layout import build_record_layout, header_record_length
from tests.fixture_paths import sample_metadata


@pytest.mark.parametrize(
    ("declared", "expected"),
    [(0, 0), (4, 4), (13, 16), (240, 240), (241, 244)],
)
def test_header_record_length_pads_to_word_boundary(declared: int, expected: int) -> None:
    """Header strides should round up to whole 32-bit words."""
    assert header_record_length(declared) == expected


def test_header_record_length_rejects_negative_length() -> None:
    """Negative declared header lengths should fail."""
    with pytest.raises(SeisCloudConfigError):
        header_record_length(-1)


def test_build_record_layout_uses_codec_trace_length() -> None:
    """Trace strides should come from the codec for the sample count."""
    metadata = sample_metadata()
    codec = resolve_trace_codec(metadata.trace_format, metadata.byte_order)

    layout = build_record_layout(metadata, codec)

    assert layout.trace_record_length == 32


def test_build_record_layout_pads_declared_headers() -> None:
    """Header strides should pad the declared 13 bytes to 16."""
    metadata = sample_metadata()
    codec = resolve_trace_codec(metadata.trace_format, metadata.byte_order)

    layout = build_record_layout(metadata, codec)

    assert layout.header_words == 4


def test_build_record_layout_has_no_headers_when_undeclared() -> None:
    """Datasets without headers should have a zero header stride."""
    metadata = sample_metadata(has_headers=False)
    codec = resolve_trace_codec(metadata.trace_format, metadata.byte_order)

    layout = build_record_layout(metadata, codec)

    assert layout.header_buffer_size == 0


def test_build_record_layout_sizes_trace_buffer_for_full_frame() -> None:
    """Trace buffers should hold every trace slot of a frame."""
    metadata = sample_metadata(trace_format="DOUBLE")
    codec = resolve_trace_codec(metadata.trace_format, metadata.byte_order)

    layout = build_record_layout(metadata, codec)

    assert layout.trace_buffer_size == 4 * 8 * 8
