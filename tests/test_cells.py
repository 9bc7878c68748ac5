"""Tests for resolving cell records and small stitch buffers."""

from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from builders import (  # noqa: E402
    EXPECTED_FULLSTITCHES,
    EXPECTED_PARTSTITCHES,
    EMPTY,
    composite_cell,
    full_cell,
    grid_records,
    small_buffer,
    stitch_section,
)
from xsp.cells import (  # noqa: E402
    SmallStitchBuffer,
    buffer_index,
    cell_bytes,
    decode_stitch_grid,
    map_stitches_data,
    read_small_stitch_buffers,
)
from xsp.errors import StructuralError  # noqa: E402
from xsp.stitches import (  # noqa: E402
    FullStitch,
    FullStitchKind,
    PartStitch,
    PartStitchDirection,
    PartStitchKind,
)
from xsp.stream import ByteReader  # noqa: E402

FULL = FullStitchKind.FULL
FORWARD = PartStitchDirection.FORWARD
BACKWARD = PartStitchDirection.BACKWARD
HALF = PartStitchKind.HALF
QUARTER = PartStitchKind.QUARTER


def _buffers(raw: bytes):
    return read_small_stitch_buffers(ByteReader(raw), len(raw) // 10)


def test_cell_bytes_of_signed_record() -> None:
    assert cell_bytes(full_cell(6)) == (0, 0, 6, 0)
    assert cell_bytes(EMPTY) == (0, 0, 0, 15)
    assert cell_bytes(composite_cell(3))[3] == 0x80
    assert buffer_index(composite_cell(3)) == 3
    assert buffer_index(composite_cell(0x7FFF)) == 0x7FFF


def test_decodes_sample_grid() -> None:
    records, buffers = grid_records()
    reader = ByteReader(stitch_section(records, buffers))
    fullstitches, partstitches = decode_stitch_grid(reader, 10, 10, 8)
    assert fullstitches == EXPECTED_FULLSTITCHES
    assert partstitches == EXPECTED_PARTSTITCHES
    assert reader.remaining == 0


def test_empty_grid_has_no_stitches() -> None:
    fullstitches, partstitches = map_stitches_data([EMPTY] * 12, [], width=4)
    assert fullstitches == []
    assert partstitches == []


def test_coordinates_follow_row_major_order() -> None:
    records = [EMPTY] * 12
    records[7] = full_cell(9)
    fullstitches, _ = map_stitches_data(records, [], width=4)
    assert fullstitches == [FullStitch(3.0, 1.0, 9, FULL)]


def test_petites_precede_parts_within_a_cell() -> None:
    buffers = _buffers(small_buffer(0x01 | 0x20, 0x0F, b2=1, b4=2, b5=3, b6=4, b7=5))
    fullstitches, partstitches = map_stitches_data([composite_cell(0)], buffers, width=1)
    assert [s.palindex for s in fullstitches] == [2, 3, 4, 5]
    assert [(s.x, s.y) for s in fullstitches] == [(0.0, 0.0), (0.0, 0.5), (0.5, 0.0), (0.5, 0.5)]
    assert partstitches == [
        PartStitch(0.0, 0.0, 1, BACKWARD, HALF),
        PartStitch(0.5, 0.5, 5, BACKWARD, QUARTER),
    ]


def test_buffer_flags_accessors() -> None:
    buffer = SmallStitchBuffer(small_buffer(0x21, 0x04))
    assert buffer.part_flags == 0x21
    assert buffer.petite_flags == 0x04


def test_buffer_must_be_ten_bytes() -> None:
    with pytest.raises(ValueError):
        SmallStitchBuffer(b"\x00" * 9)


def test_buffer_index_out_of_range() -> None:
    buffers = _buffers(small_buffer(0x01, b2=1))
    with pytest.raises(StructuralError, match="small stitch buffer 1"):
        map_stitches_data([EMPTY, composite_cell(1)], buffers, width=2)


def test_empty_grid_without_width() -> None:
    assert map_stitches_data([], [], width=0) == ([], [])
    reader = ByteReader(stitch_section([]))
    assert decode_stitch_grid(reader, 0, 0, 0) == ([], [])
    assert reader.remaining == 0


def test_records_need_positive_width() -> None:
    with pytest.raises(StructuralError, match="width must be positive"):
        map_stitches_data([full_cell(1)], [], width=0)


def test_missing_buffers_are_truncation() -> None:
    records, buffers = grid_records()
    reader = ByteReader(stitch_section(records, buffers[:-5]))
    with pytest.raises(StructuralError):
        decode_stitch_grid(reader, 10, 10, 8)
