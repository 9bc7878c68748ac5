"""Decode special stitch models (reusable motifs) from an XSD file.

Section layout::

    skip 2, model_count:u16
    per model:
      tag:u16                    only 4 is a model record
      skip 2, magic:4            b"sps1"
      unique_name, name          fixed 255-char NUL-terminated fields
      skip 2
      3 sub-sections:
        #0: skip 2, shift_x, shift_y, width, height   (u16 half-cells)
        #1, #2: skip 10
        signature:u16 (0x0510)   absent -> no further sub-sections
        joints_count:u16, joints

Joints from sub-sections 0 and 2 are the model geometry; sub-section 1
carries a preview copy that is read to keep the stream aligned and then
dropped.  Curve points are stored absolute and are shifted back to the
model origin.
"""

from __future__ import annotations

import logging
from typing import List

from .joints import decode_joints
from .stitches import CurvedStitch, LineStitch, NodeStitch, SpecialStitchModel
from .stream import ByteReader

logger = logging.getLogger(__name__)

VALID_SIGNATURE = 0x0510
MODEL_SECTION_TAG = 4
MODEL_MAGIC = b"sps1"
SPECIAL_STITCH_NAME_LENGTH = 255
SUBSECTION_COUNT = 3
GEOMETRY_SUBSECTIONS = frozenset({0, 2})
SUBSECTION_HEADER_SKIP = 10
COORD_FACTOR = 2.0


def read_special_stitch_model(reader: ByteReader) -> SpecialStitchModel:
    """Read one model body, positioned just after its ``sps1`` magic."""
    unique_name = reader.read_cstring(SPECIAL_STITCH_NAME_LENGTH)
    name = reader.read_cstring(SPECIAL_STITCH_NAME_LENGTH)
    reader.skip(2)

    shift_x = shift_y = 0.0
    width = height = 0.0
    linestitches: List[LineStitch] = []
    nodestitches: List[NodeStitch] = []
    curvedstitches: List[CurvedStitch] = []

    for section in range(SUBSECTION_COUNT):
        if section == 0:
            reader.skip(2)
            shift_x = reader.read_u16() / COORD_FACTOR
            shift_y = reader.read_u16() / COORD_FACTOR
            width = reader.read_u16() / COORD_FACTOR
            height = reader.read_u16() / COORD_FACTOR
        else:
            reader.skip(SUBSECTION_HEADER_SKIP)

        if reader.read_u16() != VALID_SIGNATURE:
            break

        joints_count = reader.read_u16()
        if joints_count == 0:
            continue

        joints = decode_joints(reader, joints_count)
        if section in GEOMETRY_SUBSECTIONS:
            linestitches.extend(joints.linestitches)
            nodestitches.extend(joints.nodestitches)
            curvedstitches.extend(joints.curvedstitches)

    return SpecialStitchModel(
        unique_name=unique_name,
        name=name,
        width=width,
        height=height,
        linestitches=tuple(linestitches),
        nodestitches=tuple(nodestitches),
        curvedstitches=tuple(curve.shifted(-shift_x, -shift_y) for curve in curvedstitches),
    )


def decode_special_stitch_models(reader: ByteReader) -> List[SpecialStitchModel]:
    logger.debug("Reading special stitch models at 0x%04X", reader.tell())

    reader.skip(2)
    count = reader.read_u16()
    models: List[SpecialStitchModel] = []

    for idx in range(count):
        tag = reader.read_u16()
        if tag != MODEL_SECTION_TAG:
            logger.debug("skipping special stitch model %d: section tag 0x%04X", idx, tag)
            continue

        reader.skip(2)
        magic = reader.read(len(MODEL_MAGIC))
        if magic != MODEL_MAGIC:
            logger.debug("skipping special stitch model %d: magic %r", idx, magic)
            continue

        models.append(read_special_stitch_model(reader))

    return models
