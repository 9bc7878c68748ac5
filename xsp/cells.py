"""Resolve decoded cell records into full and part stitches.

A cell record is a signed 32-bit value read as bytes ``b0..b3``
(little-endian)::

    b3 == 15   empty cell
    b3 == 0    full stitch, palette index in b2
    otherwise  bits 16..30 index a 10-byte small-stitch buffer

Small-stitch buffer layout::

    byte 0     half/quarter bitmask (6 positions)
    byte 1     petite bitmask (4 positions)
    bytes 2-9  per-position palette indices

Petites are emitted before halves and quarters of the same cell; cells
are visited in row-major order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Sequence, Tuple

from .cipher import read_stitches_data
from .errors import StructuralError
from .stitches import (
    FullStitch,
    FullStitchKind,
    PartStitch,
    PartStitchDirection,
    PartStitchKind,
)
from .stream import ByteReader

logger = logging.getLogger(__name__)

SMALL_STITCH_BUFFER_SIZE = 10
EMPTY_CELL = 15
FULL_CELL = 0
BUFFER_INDEX_MASK = 0x7FFF
PART_FLAGS_BYTE = 0
PETITE_FLAGS_BYTE = 1

TOP_LEFT = (0.0, 0.0)
BOTTOM_LEFT = (0.0, 0.5)
TOP_RIGHT = (0.5, 0.0)
BOTTOM_RIGHT = (0.5, 0.5)


class PetiteSlot(NamedTuple):
    bit: int
    palindex_byte: int
    offset: Tuple[float, float]


class PartSlot(NamedTuple):
    bit: int
    palindex_byte: int
    offset: Tuple[float, float]
    kind: PartStitchKind
    direction: PartStitchDirection


PETITE_SLOTS = (
    PetiteSlot(0x01, 4, TOP_LEFT),
    PetiteSlot(0x02, 5, BOTTOM_LEFT),
    PetiteSlot(0x04, 6, TOP_RIGHT),
    PetiteSlot(0x08, 7, BOTTOM_RIGHT),
)

# Halves span the whole cell, so they keep the cell origin.  Directions
# alternate along the diagonals: top half and the top-left/bottom-right
# quarters are backward, the rest forward.
PART_SLOTS = (
    PartSlot(0x01, 2, TOP_LEFT, PartStitchKind.HALF, PartStitchDirection.BACKWARD),  # half top
    PartSlot(0x02, 3, TOP_LEFT, PartStitchKind.HALF, PartStitchDirection.FORWARD),  # half bottom
    PartSlot(0x04, 4, TOP_LEFT, PartStitchKind.QUARTER, PartStitchDirection.BACKWARD),
    PartSlot(0x08, 5, BOTTOM_LEFT, PartStitchKind.QUARTER, PartStitchDirection.FORWARD),
    PartSlot(0x10, 6, TOP_RIGHT, PartStitchKind.QUARTER, PartStitchDirection.FORWARD),
    PartSlot(0x20, 7, BOTTOM_RIGHT, PartStitchKind.QUARTER, PartStitchDirection.BACKWARD),
)


@dataclass(frozen=True)
class SmallStitchBuffer:
    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != SMALL_STITCH_BUFFER_SIZE:
            raise ValueError(
                f"small stitch buffer must be {SMALL_STITCH_BUFFER_SIZE} bytes, got {len(self.raw)}"
            )

    @property
    def part_flags(self) -> int:
        return self.raw[PART_FLAGS_BYTE]

    @property
    def petite_flags(self) -> int:
        return self.raw[PETITE_FLAGS_BYTE]

    def petites(self, x: float, y: float) -> List[FullStitch]:
        return [
            FullStitch(
                x=x + slot.offset[0],
                y=y + slot.offset[1],
                palindex=self.raw[slot.palindex_byte],
                kind=FullStitchKind.PETITE,
            )
            for slot in PETITE_SLOTS
            if self.petite_flags & slot.bit
        ]

    def parts(self, x: float, y: float) -> List[PartStitch]:
        return [
            PartStitch(
                x=x + slot.offset[0],
                y=y + slot.offset[1],
                palindex=self.raw[slot.palindex_byte],
                direction=slot.direction,
                kind=slot.kind,
            )
            for slot in PART_SLOTS
            if self.part_flags & slot.bit
        ]


def cell_bytes(record: int) -> Tuple[int, int, int, int]:
    """Split a signed record into its little-endian bytes ``(b0, b1, b2, b3)``."""
    return tuple((record >> shift) & 0xFF for shift in (0, 8, 16, 24))  # type: ignore[return-value]


def buffer_index(record: int) -> int:
    return (record >> 16) & BUFFER_INDEX_MASK


def read_small_stitch_buffers(reader: ByteReader, count: int) -> List[SmallStitchBuffer]:
    return [SmallStitchBuffer(reader.read(SMALL_STITCH_BUFFER_SIZE)) for _ in range(count)]


def map_stitches_data(
    records: Sequence[int],
    buffers: Sequence[SmallStitchBuffer],
    width: int,
) -> Tuple[List[FullStitch], List[PartStitch]]:
    """Turn row-major cell records into stitches, in scan order."""
    if not records:
        return [], []
    if width <= 0:
        raise StructuralError(f"pattern width must be positive, got {width}")

    fullstitches: List[FullStitch] = []
    partstitches: List[PartStitch] = []

    for idx, record in enumerate(records):
        _, _, b2, b3 = cell_bytes(record)
        if b3 == EMPTY_CELL:
            continue

        x = float(idx % width)
        y = float(idx // width)

        if b3 == FULL_CELL:
            fullstitches.append(FullStitch(x=x, y=y, palindex=b2, kind=FullStitchKind.FULL))
            continue

        position = buffer_index(record)
        if position >= len(buffers):
            raise StructuralError(
                f"cell ({int(x)}, {int(y)}) references small stitch buffer {position}, "
                f"only {len(buffers)} read"
            )
        buffer = buffers[position]
        fullstitches.extend(buffer.petites(x, y))
        partstitches.extend(buffer.parts(x, y))

    return fullstitches, partstitches


def decode_stitch_grid(
    reader: ByteReader,
    width: int,
    height: int,
    small_stitch_count: int,
) -> Tuple[List[FullStitch], List[PartStitch]]:
    """Decode the cell stream and small stitch buffers that follow it."""
    logger.debug("Reading stitches (%dx%d, %d small stitch buffers)", width, height, small_stitch_count)
    records = read_stitches_data(reader, width * height)
    buffers = read_small_stitch_buffers(reader, small_stitch_count)
    return map_stitches_data(records, buffers, width)
