"""Tests for the cell stream cipher and run-length layer."""

from pathlib import Path
import struct
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from builders import EMPTY, SEEDS, full_cell, grid_records  # noqa: E402
from xsp.cipher import (  # noqa: E402
    REPEAT_FLAG,
    CipherState,
    compress_runs,
    decode_chunk,
    encode_chunk,
    encode_stitches_data,
    expand_runs,
    read_stitches_data,
    repeat_count,
    reproduce_decoding_values,
    rotate_left,
)
from xsp.errors import StructuralError  # noqa: E402
from xsp.stream import ByteReader  # noqa: E402


def _marker(count: int) -> int:
    return REPEAT_FLAG | (count << 16)


def _raw_stream(chunks) -> bytes:
    """Seeds followed by already-encoded chunks."""
    out = struct.pack("<4i", *SEEDS)
    for words in chunks:
        out += struct.pack("<I", len(words)) + struct.pack(f"<{len(words)}i", *words)
    return out


# ── Key schedule ──────────────────────────────────────────────────────


def test_reproduces_decoding_values() -> None:
    key, rotations = reproduce_decoding_values(SEEDS)
    assert key == -228908503
    assert rotations == (18, 25, 28, 30, 21, 26, 13, 22, 29, 30, 15, 23, 9, 20, 10, 5)


def test_key_schedule_requires_four_seeds() -> None:
    with pytest.raises(ValueError):
        reproduce_decoding_values(SEEDS[:3])


def test_rotate_left_wraps() -> None:
    assert rotate_left(0x80000001, 1) == 0x00000003
    assert rotate_left(0x12345678, 0) == 0x12345678
    assert rotate_left(0x12345678, 32) == 0x12345678


class TestCipherState:
    def test_first_word_is_masked_by_key_and_seed0(self) -> None:
        state = CipherState.from_seeds(SEEDS)
        decoded, _ = decode_chunk(state, [0])
        key, _ = reproduce_decoding_values(SEEDS)
        expected = (key ^ SEEDS[0]) & 0xFFFFFFFF
        assert decoded[0] & 0xFFFFFFFF == expected

    def test_advance_rotates_key_and_steps_seed(self) -> None:
        state = CipherState.from_seeds(SEEDS)
        nxt = state.advance()
        assert nxt.key == rotate_left(state.key, 18)
        assert nxt.seed0 == (SEEDS[0] + SEEDS[1]) & 0xFFFFFFFF
        assert nxt.index == 1

    def test_rotation_index_wraps_after_sixteen_words(self) -> None:
        state = CipherState.from_seeds(SEEDS)
        _, state = decode_chunk(state, [0] * 16)
        assert state.index == 0

    def test_state_carries_across_chunks(self) -> None:
        records = list(range(1, 11))
        state = CipherState.from_seeds(SEEDS)
        encoded, _ = encode_chunk(state, records)
        first, mid = decode_chunk(state, encoded[:4])
        second, _ = decode_chunk(mid, encoded[4:])
        assert first + second == records


# ── Run-length expansion ──────────────────────────────────────────────


def test_repeat_count_ignores_flag_bits() -> None:
    assert repeat_count(_marker(5)) == 5
    assert repeat_count(_marker(5) | 0x80000000) == 5


def test_expand_runs_repeats_next_word() -> None:
    assert expand_runs([_marker(3), 7, 8], limit=10) == [7, 7, 7, 8]


def test_expand_runs_stops_at_limit() -> None:
    assert expand_runs([_marker(50), EMPTY], limit=10) == [EMPTY] * 10


def test_expand_runs_rejects_marker_at_chunk_end() -> None:
    with pytest.raises(StructuralError, match="repeat marker"):
        expand_runs([1, _marker(2)], limit=10)


def test_compress_runs_wraps_values_carrying_the_flag() -> None:
    flagged = REPEAT_FLAG | 0x1234
    assert compress_runs([1, flagged, 2, 2, 2]) == [[1], [_marker(1), flagged], [_marker(3), 2]]


# ── Full stream ───────────────────────────────────────────────────────


def test_read_stitches_data_uniform_grid_is_one_chunk() -> None:
    data = encode_stitches_data([EMPTY] * 100, SEEDS)
    assert len(data) == 16 + 4 + 8
    assert read_stitches_data(ByteReader(data), 100) == [EMPTY] * 100


def test_read_stitches_data_multi_chunk() -> None:
    records, _ = grid_records()
    data = encode_stitches_data(records, SEEDS, chunk_words=3)
    reader = ByteReader(data + b"tail")
    assert read_stitches_data(reader, 100) == records
    assert reader.read(4) == b"tail"


def test_zero_length_chunk_is_noop() -> None:
    records = [full_cell(1)] * 4 + [EMPTY] * 6
    data = encode_stitches_data(records, SEEDS)
    padded = data[:16] + struct.pack("<I", 0) + data[16:]
    assert read_stitches_data(ByteReader(padded), 10) == records


def test_dangling_marker_in_stream() -> None:
    state = CipherState.from_seeds(SEEDS)
    words, _ = encode_chunk(state, [full_cell(1), _marker(9)])
    with pytest.raises(StructuralError):
        read_stitches_data(ByteReader(_raw_stream([words])), 10)


def test_truncated_stream_reports_progress() -> None:
    data = encode_stitches_data([full_cell(n % 7) for n in range(10)], SEEDS)
    with pytest.raises(StructuralError, match="truncated after 0 of 10 records"):
        read_stitches_data(ByteReader(data[:-4]), 10)


def test_missing_chunk_raises() -> None:
    data = encode_stitches_data([EMPTY] * 10, SEEDS)
    with pytest.raises(StructuralError):
        read_stitches_data(ByteReader(data), 11)
