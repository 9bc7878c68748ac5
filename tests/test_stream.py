"""Tests for the little-endian byte reader."""

from pathlib import Path
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from xsp.errors import StructuralError, XspError  # noqa: E402
from xsp.stream import ByteReader  # noqa: E402


def test_reads_little_endian_integers() -> None:
    reader = ByteReader(bytes.fromhex("10 05 78563412 feffffff 07".replace(" ", "")))
    assert reader.read_u16() == 0x0510
    assert reader.read_u32() == 0x12345678
    assert reader.read_i32() == -2
    assert reader.read_u8() == 7
    assert reader.remaining == 0


def test_cstring_stops_at_first_nul() -> None:
    reader = ByteReader(b"310\x00garbage\x00" + b"next")
    assert reader.read_cstring(10) == "310"
    assert reader.tell() == 11
    assert reader.read(4) == b"next"


def test_cstring_without_terminator_is_empty() -> None:
    reader = ByteReader(b"abcd")
    assert reader.read_cstring(3) == ""
    assert reader.remaining == 0


def test_cstring_falls_back_to_cp1251() -> None:
    raw = "ПНК Кирова".encode("cp1251")
    reader = ByteReader(raw + b"\x00" * (41 - len(raw)))
    assert reader.read_cstring(40) == "ПНК Кирова"


def test_hex_color_is_upper_case() -> None:
    assert ByteReader(b"\x2c\x32\x25").read_hex_color() == "2C3225"


class TestBounds:
    def test_read_past_end_raises_structural_error(self) -> None:
        reader = ByteReader(b"\x01")
        with pytest.raises(StructuralError, match="unexpected end of data at 0x0000"):
            reader.read_u16()

    def test_skip_past_end_raises(self) -> None:
        reader = ByteReader(b"\x00" * 4)
        reader.skip(3)
        with pytest.raises(StructuralError):
            reader.skip(2)

    def test_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            ByteReader(b"").read_u8()
        assert issubclass(StructuralError, XspError)

    def test_seek_outside_buffer(self) -> None:
        reader = ByteReader(b"\x00" * 4)
        reader.seek(4)
        assert reader.remaining == 0
        with pytest.raises(StructuralError):
            reader.seek(5)
