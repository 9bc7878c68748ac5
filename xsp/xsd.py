"""Pattern Maker v4 (``.xsd``) pattern reader.

The file is a flat sequence of fixed-layout blocks with no offsets or
lengths of its own, so the whole file is walked front to back::

    signature:u16 (0x0510), skip 4, version:4*u16, skip 727
    width:u16, height:u16, small_stitch_count:u32, joints_count:u16
    stitches_per_inch:2*u16, skip 6
    palette, formats, symbols, pattern/print settings, grid
    fabric color name, fabric color, skip 65, pattern info, skip 6
    fabric kind name, skip 206
    stitch settings, symbol settings
    skip 16412 (library info), skip 512 (machine export info)
    encrypted cell stream + small stitch buffers
    special stitch models
    joints
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .cells import decode_stitch_grid
from .errors import StructuralError
from .header import (
    read_formats,
    read_grid,
    read_palette,
    read_pattern_and_print_settings,
    read_pattern_info,
    read_stitch_settings,
    read_symbol_settings,
    read_symbols,
)
from .joints import decode_joints
from .models import decode_special_stitch_models
from .pattern import Fabric, Pattern
from .stream import ByteReader

logger = logging.getLogger(__name__)

VALID_SIGNATURE = 0x0510

FABRIC_COLOR_NAME_LENGTH = 40
FABRIC_KIND_NAME_LENGTH = 40

HEADER_GAP_AFTER_SIGNATURE = 4
HEADER_GAP_AFTER_VERSION = 727
HEADER_GAP_AFTER_DIMENSIONS = 6
FABRIC_GAP_AFTER_COLOR = 65
FABRIC_GAP_AFTER_INFO = 6
FABRIC_GAP_AFTER_KIND = 206
LIBRARY_INFO_SIZE = 16412
MACHINE_EXPORT_INFO_SIZE = 512


@dataclass(frozen=True)
class PatternMakerVersion:
    words: tuple

    def __str__(self) -> str:
        w0, w1, w2, w3 = self.words
        return f"{w1}.{w0}.{w3}.{w2}"


def read_signature(reader: ByteReader) -> int:
    return reader.read_u16()


def check_signature(reader: ByteReader) -> None:
    signature = read_signature(reader)
    if signature != VALID_SIGNATURE:
        raise StructuralError(
            "The signature of Pattern Maker v4 is incorrect! "
            f"Expected: 0x{VALID_SIGNATURE:04X}, found: 0x{signature:04X}"
        )


def read_pmaker_version(reader: ByteReader) -> PatternMakerVersion:
    return PatternMakerVersion(tuple(reader.read_u16() for _ in range(4)))


def parse_xsd_bytes(data: bytes) -> Pattern:
    """Decode a complete XSD file image.

    Raises
    ------
    StructuralError
        Wrong signature, truncated data or inconsistent stitch stream.
    UnrecognizedVariantError
        A joint record carries an unknown kind tag.
    """
    reader = ByteReader(data)

    check_signature(reader)
    reader.skip(HEADER_GAP_AFTER_SIGNATURE)
    version = read_pmaker_version(reader)
    logger.debug("Pattern Maker version: %s", version)
    reader.skip(HEADER_GAP_AFTER_VERSION)

    width = reader.read_u16()
    height = reader.read_u16()
    small_stitch_count = reader.read_u32()
    joints_count = reader.read_u16()
    stitches_per_inch = (reader.read_u16(), reader.read_u16())
    reader.skip(HEADER_GAP_AFTER_DIMENSIONS)
    logger.debug(
        "Pattern %dx%d, %d small stitch buffers, %d joints",
        width,
        height,
        small_stitch_count,
        joints_count,
    )

    palette = read_palette(reader)
    formats = read_formats(reader, len(palette))
    symbols = read_symbols(reader, len(palette))
    pattern_settings, print_settings = read_pattern_and_print_settings(reader)
    grid = read_grid(reader)

    fabric_name = reader.read_cstring(FABRIC_COLOR_NAME_LENGTH)
    fabric_color = reader.read_hex_color()
    reader.skip(FABRIC_GAP_AFTER_COLOR)
    info = read_pattern_info(reader)
    reader.skip(FABRIC_GAP_AFTER_INFO)
    fabric_kind = reader.read_cstring(FABRIC_KIND_NAME_LENGTH)
    reader.skip(FABRIC_GAP_AFTER_KIND)

    stitch_settings = read_stitch_settings(reader)
    symbol_settings = read_symbol_settings(reader)
    reader.skip(LIBRARY_INFO_SIZE)
    reader.skip(MACHINE_EXPORT_INFO_SIZE)

    fullstitches, partstitches = decode_stitch_grid(reader, width, height, small_stitch_count)
    special_stitch_models = decode_special_stitch_models(reader)
    joints = decode_joints(reader, joints_count)

    return Pattern(
        info=info,
        fabric=Fabric(
            width=width,
            height=height,
            stitches_per_inch=stitches_per_inch,
            kind=fabric_kind,
            name=fabric_name,
            color=fabric_color,
        ),
        palette=palette,
        formats=formats,
        symbols=symbols,
        grid=grid,
        pattern_settings=pattern_settings,
        stitch_settings=stitch_settings,
        symbol_settings=symbol_settings,
        print_settings=print_settings,
        fullstitches=fullstitches,
        partstitches=partstitches,
        linestitches=joints.linestitches,
        nodestitches=joints.nodestitches,
        specialstitches=joints.specialstitches,
        special_stitch_models=special_stitch_models,
    )


def parse_xsd_pattern(path: Union[str, Path]) -> Pattern:
    logger.debug("Parsing XSD pattern %s", path)
    return parse_xsd_bytes(Path(path).read_bytes())
