"""Palette readers for the supported software families.

* Pattern Maker ``.master`` / ``.user``: binary, same item layout as
  the palette block inside XSD files.
* Ursa Software: CSV-ish text, ``"BRAND NUMBER","Name",decimal_rgb``.
* XSPro: binary, fixed-width ``"NUMBER NAME"`` strings plus RGB.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .header import read_palette_item
from .pattern import PaletteItem
from .stream import ByteReader

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

PMAKER_PALETTE_SIZE_OFFSET = 0x04
PMAKER_MASTER_ITEMS_OFFSET = 0x08
PMAKER_USER_ITEMS_OFFSET = 0x06

URSA_STOP_MARKER = "STOP"

XSPRO_BRAND_LENGTH = 28
XSPRO_COLOR_NUMBER_LENGTH = 28


# ── Pattern Maker ─────────────────────────────────────────────────────


def parse_pmaker_palette(path: PathLike) -> List[PaletteItem]:
    """Parse a Pattern Maker ``.master`` or ``.user`` palette file."""
    path = Path(path)
    suffix = path.suffix.lstrip(".").lower()
    if suffix == "master":
        items_offset = PMAKER_MASTER_ITEMS_OFFSET
    elif suffix == "user":
        items_offset = PMAKER_USER_ITEMS_OFFSET
    else:
        raise ValueError(f"not a Pattern Maker palette: {path.name!r} (expected .master or .user)")

    logger.debug("Parsing Pattern Maker %s palette %s", suffix, path)
    reader = ByteReader(path.read_bytes())
    reader.seek(PMAKER_PALETTE_SIZE_OFFSET)
    size = reader.read_u16()
    reader.seek(items_offset)
    return [read_palette_item(reader) for _ in range(size)]


@dataclass(frozen=True)
class ThreadColor:
    """Palette entry of the plain palette formats (Ursa, XSPro)."""

    brand: str
    number: str
    name: str
    color: str


# ── Ursa Software ─────────────────────────────────────────────────────


def parse_ursa_palette_item(line: str) -> Optional[ThreadColor]:
    """Parse one palette line; returns None for short lines and ``STOP``."""
    parts = [part.replace('"', "") for part in line.split(",")]
    if len(parts) < 3 or parts[0] == URSA_STOP_MARKER:
        return None

    brand, sep, number = parts[0].rpartition(" ")
    if not sep:
        brand, number = "", parts[0]
    try:
        color = int(parts[2].strip())
    except ValueError as exc:
        raise ValueError(f"invalid color value {parts[2]!r} in palette line {line!r}") from exc

    return ThreadColor(
        brand=brand.strip(),
        number=number.strip(),
        name=parts[1].strip(),
        color=f"{color:06X}",
    )


def parse_ursa_palette(path: PathLike) -> List[ThreadColor]:
    logger.debug("Parsing Ursa palette %s", path)
    content = Path(path).read_text(encoding="utf-8", errors="replace")
    items: List[ThreadColor] = []
    for line in content.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        item = parse_ursa_palette_item(line)
        if item is not None:
            items.append(item)
    return items


# ── XSPro ─────────────────────────────────────────────────────────────


def read_xspro_palette_item(reader: ByteReader, brand: str) -> ThreadColor:
    number_and_name = reader.read_cstring(XSPRO_COLOR_NUMBER_LENGTH)
    number, sep, name = number_and_name.partition(" ")
    if not sep:
        number, name = "", number_and_name
    return ThreadColor(
        brand=brand,
        number=number.strip(),
        name=name.strip(),
        color=reader.read_hex_color(),
    )


def parse_xspro_palette(path: PathLike) -> List[ThreadColor]:
    """Parse an XSPro palette; items are branded with the file name."""
    path = Path(path)
    logger.debug("Parsing XSPro palette %s", path)
    reader = ByteReader(path.read_bytes())
    stored_brand = reader.read_cstring(XSPRO_BRAND_LENGTH)
    brand = path.name or stored_brand
    size = reader.read_u16()
    return [read_xspro_palette_item(reader, brand) for _ in range(size)]
