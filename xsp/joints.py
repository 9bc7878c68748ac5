"""Decode the XSD joint stream: knots, beads, lines, curves and specials.

Every record starts with a u16 kind tag; the rest of the layout depends
on the kind.  Coordinates are stored in half-cell units (divide by 2),
curve control points in thirtieths of a cell (divide by 15, then by 2).

Record layouts after the tag::

    french knot   skip 2, x, y, skip 4, palindex:u8, skip 1
    bead          skip 2, x, y, palindex:u8, skip 1, rotation:u16
    back/straight skip 2, x1, y1, x2, y2, palindex:u8, skip 1
    curve         skip 3, count:u16, (x, y) * count
    special       skip 2, palindex:u8, skip 4, x, y, m0..m3, skip 2, modindex:u16

All coordinate and count fields are u16.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from .errors import UnrecognizedVariantError
from .stitches import (
    CurvedStitch,
    Joints,
    LineStitch,
    LineStitchKind,
    NodeStitch,
    NodeStitchKind,
    SpecialStitch,
)
from .stream import ByteReader

logger = logging.getLogger(__name__)

JOINT_FRENCH_KNOT = 1
JOINT_BACK = 2
JOINT_CURVE = 3
JOINT_SPECIAL = 4
JOINT_STRAIGHT = 5
JOINT_BEAD = 6

COORD_FACTOR = 2.0
CURVE_RESOLUTION = 15.0
ROTATED_BEAD_ANGLES = frozenset({90, 270})

# Special stitch placements carry a signed 2x2 matrix as four u16 words
# (0xFFFF is -1).  Only these combinations have been observed; any other
# matrix, including the identity, means "no rotation, no flip".
IDENTITY_SIGNATURE = (1, 0, 0, 1)
ORIENTATION_SIGNATURES: Dict[Tuple[int, int, int, int], Tuple[int, Tuple[bool, bool]]] = {
    (0xFFFF, 0, 0, 1): (0, (True, False)),
    (1, 0, 0, 0xFFFF): (0, (False, True)),
    (0xFFFF, 0, 0, 0xFFFF): (0, (True, True)),
    (0, 0xFFFF, 1, 0): (90, (False, False)),
    (0, 1, 0xFFFF, 0): (270, (False, False)),
    (0, 1, 1, 0): (90, (False, True)),
    (0, 0xFFFF, 0xFFFF, 0): (90, (True, False)),
}
DEFAULT_ORIENTATION: Tuple[int, Tuple[bool, bool]] = (0, (False, False))


def _read_point(reader: ByteReader) -> Tuple[float, float]:
    x = reader.read_u16() / COORD_FACTOR
    y = reader.read_u16() / COORD_FACTOR
    return x, y


def orientation_from_signature(signature: Tuple[int, int, int, int]) -> Tuple[int, Tuple[bool, bool]]:
    """Map a placement matrix to ``(rotation, (flip_h, flip_v))``."""
    orientation = ORIENTATION_SIGNATURES.get(signature)
    if orientation is None:
        if signature != IDENTITY_SIGNATURE:
            logger.debug(
                "unrecognized special stitch orientation %s, using default",
                " ".join(f"0x{word:04X}" for word in signature),
            )
        return DEFAULT_ORIENTATION
    return orientation


def read_french_knot(reader: ByteReader) -> NodeStitch:
    reader.skip(2)
    x, y = _read_point(reader)
    reader.skip(4)
    palindex = reader.read_u8()
    reader.skip(1)
    return NodeStitch(x=x, y=y, palindex=palindex, kind=NodeStitchKind.FRENCH_KNOT)


def read_bead(reader: ByteReader) -> NodeStitch:
    reader.skip(2)
    x, y = _read_point(reader)
    palindex = reader.read_u8()
    reader.skip(1)
    rotated = reader.read_u16() in ROTATED_BEAD_ANGLES
    return NodeStitch(x=x, y=y, palindex=palindex, kind=NodeStitchKind.BEAD, rotated=rotated)


def read_line(reader: ByteReader, kind: LineStitchKind) -> LineStitch:
    reader.skip(2)
    x1, y1 = _read_point(reader)
    x2, y2 = _read_point(reader)
    palindex = reader.read_u8()
    reader.skip(1)
    return LineStitch(x=(x1, x2), y=(y1, y2), palindex=palindex, kind=kind)


def read_curve(reader: ByteReader) -> CurvedStitch:
    reader.skip(3)
    count = reader.read_u16()
    points = []
    for _ in range(count):
        x = reader.read_u16() / CURVE_RESOLUTION / COORD_FACTOR
        y = reader.read_u16() / CURVE_RESOLUTION / COORD_FACTOR
        points.append((x, y))
    return CurvedStitch(points=tuple(points))


def read_special(reader: ByteReader) -> SpecialStitch:
    reader.skip(2)
    palindex = reader.read_u8()
    reader.skip(4)
    x, y = _read_point(reader)
    signature = tuple(reader.read_u16() for _ in range(4))
    rotation, flip = orientation_from_signature(signature)  # type: ignore[arg-type]
    reader.skip(2)
    modindex = reader.read_u16() & 0xFF
    return SpecialStitch(
        x=x,
        y=y,
        palindex=palindex,
        modindex=modindex,
        rotation=rotation,
        flip=flip,
    )


def decode_joints(reader: ByteReader, count: int) -> Joints:
    """Decode ``count`` tagged joint records.

    Parameters
    ----------
    reader : ByteReader
        Positioned at the first record's kind tag.
    count : int
        Number of records to decode.

    Returns
    -------
    Joints
        ``(linestitches, nodestitches, specialstitches, curvedstitches)``
        in stream order within each family.
    """
    logger.debug("Reading %d joints at 0x%04X", count, reader.tell())

    joints = Joints([], [], [], [])
    for _ in range(count):
        offset = reader.tell()
        kind = reader.read_u16()
        if kind == JOINT_FRENCH_KNOT:
            joints.nodestitches.append(read_french_knot(reader))
        elif kind == JOINT_BEAD:
            joints.nodestitches.append(read_bead(reader))
        elif kind == JOINT_BACK:
            joints.linestitches.append(read_line(reader, LineStitchKind.BACK))
        elif kind == JOINT_STRAIGHT:
            joints.linestitches.append(read_line(reader, LineStitchKind.STRAIGHT))
        elif kind == JOINT_CURVE:
            joints.curvedstitches.append(read_curve(reader))
        elif kind == JOINT_SPECIAL:
            joints.specialstitches.append(read_special(reader))
        else:
            raise UnrecognizedVariantError(f"unknown joint kind 0x{kind:04X} at 0x{offset:04X}")

    return joints
