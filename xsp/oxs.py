"""Read and write the OXS (Open Cross Stitch) XML interchange format.

An OXS document is a ``<chart>`` with these children::

    <properties .../>                  chart size, authorship, palettecount
    <palette>                          item 0 is the cloth
    <fullstitches>                     <stitch x y palindex/>
    <partstitches>                     <partstitch x y palindex1 palindex2 direction/>
    <backstitches>                     <backstitch x1 x2 y1 y2 palindex objecttype/>
    <ornaments_inc_knots_and_beads>    <object x1 y1 palindex objecttype/>

``palindex`` attributes are 1-based (0 is the cloth); in memory they are
0-based like every other format in this package.  A part stitch element
packs two quarters of one cell; direction codes 1 and 2 are forward and
backward quarters, 3 and 4 forward and backward halves.  Petites travel
as ornaments with ``objecttype="quarter"``.
"""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from . import settings
from .errors import OxsError
from .pattern import Pattern
from .stitches import (
    FullStitch,
    FullStitchKind,
    LineStitch,
    LineStitchKind,
    NodeStitch,
    NodeStitchKind,
    PartStitch,
    PartStitchDirection,
    PartStitchKind,
)

logger = logging.getLogger(__name__)

OXS_VERSION = "1.0"
CLOTH_NUMBER = "cloth"
PETITE_OBJECT_TYPE = "quarter"
MAX_SYMBOL_CODE = 0xFFFF

Symbol = Union[int, str]

FORMAT_COMMENTS = (
    "Designed to allow interchange of basic pattern data between any cross stitch style software",
    "the 'properties' section establishes size, copyright, authorship and software used",
    "The features of each software package varies, but using XML each can pick out the things it can deal with, while ignoring others",
    "The basic items are :",
    "'palette'..a set of colors used in the design: palettecount excludes cloth color, which is item 0",
    "'fullstitches'.. simple crosses",
    "'backstitches'.. lines/objects with a start and end point",
    "(There is a wide variety of ways of treating part stitches, knots, beads and so on.)",
    "Colors are expressed in hex RGB format.",
    "Decimal numbers use US/UK format where '.' is the indicator - eg 0.5 is 'half'",
    "For readability, please use words not enumerations",
    "The properties, fullstitches, and backstitches elements should be considered mandatory, even if empty",
    "element and attribute names are always lowercase",
)


@dataclass(frozen=True)
class OxsProperties:
    software: str
    software_version: str
    width: int
    height: int
    title: str = ""
    author: str = ""
    copyright: str = ""
    instructions: str = ""
    stitches_per_inch: Tuple[int, int] = (14, 14)


@dataclass(frozen=True)
class OxsPaletteItem:
    number: str
    name: str
    color: str
    symbol: Optional[Symbol] = None


@dataclass
class OxsPattern:
    properties: OxsProperties
    fabric: OxsPaletteItem
    palette: List[OxsPaletteItem] = field(default_factory=list)
    fullstitches: List[FullStitch] = field(default_factory=list)
    partstitches: List[PartStitch] = field(default_factory=list)
    linestitches: List[LineStitch] = field(default_factory=list)
    nodestitches: List[NodeStitch] = field(default_factory=list)


# ── Attribute helpers ─────────────────────────────────────────────────


def format_number(value: float) -> str:
    """Write integral coordinates without a trailing ``.0``."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def parse_symbol(text: str) -> Symbol:
    if text.isdigit() and int(text) <= MAX_SYMBOL_CODE:
        return int(text)
    if len(text) == 1:
        return text
    raise OxsError(f"Invalid symbol: {text}. Must be a single character or a number")


def _attr(element: ET.Element, name: str) -> str:
    value = element.get(name)
    if value is None:
        raise OxsError(f"<{element.tag}> is missing the {name!r} attribute")
    return value


def _float_attr(element: ET.Element, name: str) -> float:
    value = _attr(element, name)
    try:
        return float(value)
    except ValueError as exc:
        raise OxsError(f"<{element.tag}> {name}={value!r} is not a number") from exc


def _int_attr(element: ET.Element, name: str) -> int:
    value = _attr(element, name)
    try:
        return int(value)
    except ValueError as exc:
        raise OxsError(f"<{element.tag}> {name}={value!r} is not an integer") from exc


def _palindex_attr(element: ET.Element, name: str = "palindex") -> int:
    palindex = _int_attr(element, name)
    if palindex < 1:
        raise OxsError(f"<{element.tag}> {name}={palindex} does not reference a thread color")
    return palindex - 1


# ── Reading ───────────────────────────────────────────────────────────


def _read_properties(element: ET.Element) -> Tuple[int, OxsProperties]:
    properties = OxsProperties(
        software=_attr(element, "software"),
        software_version=_attr(element, "software_version"),
        width=_int_attr(element, "chartwidth"),
        height=_int_attr(element, "chartheight"),
        title=element.get("charttitle", ""),
        author=element.get("author", ""),
        copyright=element.get("copyright", ""),
        instructions=element.get("instructions", ""),
        stitches_per_inch=(
            _int_attr(element, "stitchesperinch"),
            _int_attr(element, "stitchesperinch_y"),
        ),
    )
    return _int_attr(element, "palettecount"), properties


def _read_palette_item(element: ET.Element) -> OxsPaletteItem:
    symbol = element.get("symbol")
    return OxsPaletteItem(
        number=_attr(element, "number"),
        name=_attr(element, "name"),
        color=_attr(element, "color"),
        symbol=parse_symbol(symbol) if symbol is not None else None,
    )


def _read_palette(element: ET.Element, palette_size: int) -> Tuple[OxsPaletteItem, List[OxsPaletteItem]]:
    items = element.findall("palette_item")
    if len(items) < palette_size + 1:
        raise OxsError(f"palette holds {len(items)} items, expected cloth plus {palette_size}")
    fabric = _read_palette_item(items[0])
    fabric = OxsPaletteItem(number=fabric.number, name=fabric.name, color=fabric.color)
    return fabric, [_read_palette_item(item) for item in items[1 : palette_size + 1]]


def _read_full_stitches(element: ET.Element) -> List[FullStitch]:
    return [
        FullStitch(
            x=_float_attr(stitch, "x"),
            y=_float_attr(stitch, "y"),
            palindex=_palindex_attr(stitch),
            kind=FullStitchKind.FULL,
        )
        for stitch in element.iter("stitch")
    ]


def _read_part_stitch(element: ET.Element) -> List[PartStitch]:
    x = _float_attr(element, "x")
    y = _float_attr(element, "y")
    code = _int_attr(element, "direction")
    if code in (1, 3):
        direction = PartStitchDirection.FORWARD
    elif code in (2, 4):
        direction = PartStitchDirection.BACKWARD
    else:
        raise OxsError(f"unknown part stitch direction {code} at ({x}, {y})")
    kind = PartStitchKind.QUARTER if code in (1, 2) else PartStitchKind.HALF

    # Quarter slots: forward is bottom-left then top-right, backward is
    # top-left then bottom-right.  Halves keep the cell origin.
    if code == 1:
        positions = ((x, y + 0.5), (x + 0.5, y))
    elif code == 2:
        positions = ((x, y), (x + 0.5, y + 0.5))
    else:
        positions = ((x, y), (x, y))

    stitches = []
    for name, (px, py) in zip(("palindex1", "palindex2"), positions):
        palindex = _int_attr(element, name)
        if palindex != 0:
            stitches.append(
                PartStitch(x=px, y=py, palindex=palindex - 1, direction=direction, kind=kind)
            )
    return stitches


def _read_part_stitches(element: ET.Element) -> List[PartStitch]:
    stitches: List[PartStitch] = []
    for partstitch in element.iter("partstitch"):
        stitches.extend(_read_part_stitch(partstitch))
    return stitches


def _read_line_stitches(element: ET.Element) -> List[LineStitch]:
    stitches = []
    for backstitch in element.iter("backstitch"):
        objecttype = backstitch.get("objecttype", LineStitchKind.BACK.value)
        kind = LineStitchKind.STRAIGHT if objecttype == LineStitchKind.STRAIGHT.value else LineStitchKind.BACK
        stitches.append(
            LineStitch(
                x=(_float_attr(backstitch, "x1"), _float_attr(backstitch, "x2")),
                y=(_float_attr(backstitch, "y1"), _float_attr(backstitch, "y2")),
                palindex=_palindex_attr(backstitch),
                kind=kind,
            )
        )
    return stitches


def _read_ornaments(element: ET.Element) -> Tuple[List[FullStitch], List[NodeStitch]]:
    fullstitches: List[FullStitch] = []
    nodestitches: List[NodeStitch] = []
    for obj in element.iter("object"):
        objecttype = _attr(obj, "objecttype")
        x = _float_attr(obj, "x1")
        y = _float_attr(obj, "y1")
        if objecttype == PETITE_OBJECT_TYPE:
            fullstitches.append(
                FullStitch(x=x, y=y, palindex=_palindex_attr(obj), kind=FullStitchKind.PETITE)
            )
        elif objecttype == NodeStitchKind.FRENCH_KNOT.value:
            nodestitches.append(
                NodeStitch(x=x, y=y, palindex=_palindex_attr(obj), kind=NodeStitchKind.FRENCH_KNOT)
            )
        elif objecttype.startswith(NodeStitchKind.BEAD.value):
            nodestitches.append(
                NodeStitch(x=x, y=y, palindex=_palindex_attr(obj), kind=NodeStitchKind.BEAD)
            )
        else:
            logger.debug("ignoring ornament of type %r at (%s, %s)", objecttype, x, y)
    return fullstitches, nodestitches


def parse_oxs(text: Union[str, bytes]) -> OxsPattern:
    """Parse an OXS document.

    Raises
    ------
    OxsError
        The document is not well-formed XML, lacks ``<properties>`` or
        ``<palette>``, or carries an invalid attribute value.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise OxsError(f"malformed OXS document: {exc}") from exc
    if root.tag != "chart":
        raise OxsError(f"expected a <chart> root element, found <{root.tag}>")

    properties_el = root.find("properties")
    palette_el = root.find("palette")
    if properties_el is None or palette_el is None:
        raise OxsError("Pattern properties or palette are not found")

    palette_size, properties = _read_properties(properties_el)
    fabric, palette = _read_palette(palette_el, palette_size)
    pattern = OxsPattern(properties=properties, fabric=fabric, palette=palette)

    for child in root:
        if child.tag == "fullstitches":
            pattern.fullstitches.extend(_read_full_stitches(child))
        elif child.tag == "partstitches":
            pattern.partstitches.extend(_read_part_stitches(child))
        elif child.tag == "backstitches":
            pattern.linestitches.extend(_read_line_stitches(child))
        elif child.tag == "ornaments_inc_knots_and_beads":
            fulls, nodes = _read_ornaments(child)
            pattern.fullstitches.extend(fulls)
            pattern.nodestitches.extend(nodes)

    return pattern


def parse_oxs_pattern(path: Union[str, Path]) -> OxsPattern:
    logger.debug("Parsing OXS pattern %s", path)
    return parse_oxs(Path(path).read_bytes())


# ── Writing ───────────────────────────────────────────────────────────


def _write_format(root: ET.Element) -> None:
    attributes = {f"comments{idx:02d}": text for idx, text in enumerate(FORMAT_COMMENTS, start=1)}
    ET.SubElement(root, "format", attributes)


def _write_properties(root: ET.Element, properties: OxsProperties, palette_size: int) -> None:
    ET.SubElement(
        root,
        "properties",
        {
            "oxsversion": OXS_VERSION,
            "software": properties.software,
            "software_version": properties.software_version,
            "chartwidth": str(properties.width),
            "chartheight": str(properties.height),
            "charttitle": properties.title,
            "author": properties.author,
            "copyright": properties.copyright,
            "instructions": properties.instructions,
            "stitchesperinch": str(properties.stitches_per_inch[0]),
            "stitchesperinch_y": str(properties.stitches_per_inch[1]),
            "palettecount": str(palette_size),
        },
    )


def _write_palette(root: ET.Element, fabric: OxsPaletteItem, palette: Sequence[OxsPaletteItem]) -> None:
    palette_el = ET.SubElement(root, "palette")
    ET.SubElement(
        palette_el,
        "palette_item",
        {"index": "0", "number": fabric.number, "name": fabric.name, "color": fabric.color},
    )
    for index, item in enumerate(palette, start=1):
        attributes = {
            "index": str(index),
            "number": item.number,
            "name": item.name,
            "color": item.color,
        }
        if item.symbol is not None:
            attributes["symbol"] = str(item.symbol)
        ET.SubElement(palette_el, "palette_item", attributes)


def _write_full_stitches(root: ET.Element, stitches: Sequence[FullStitch]) -> None:
    parent = ET.SubElement(root, "fullstitches")
    for stitch in stitches:
        if stitch.kind is not FullStitchKind.FULL:
            continue
        ET.SubElement(
            parent,
            "stitch",
            {
                "x": format_number(stitch.x),
                "y": format_number(stitch.y),
                "palindex": str(stitch.palindex + 1),
            },
        )


def _find_quarter(stitches: Sequence[PartStitch], template: PartStitch, x: float, y: float) -> Optional[PartStitch]:
    wanted = PartStitch(x=x, y=y, palindex=template.palindex, direction=template.direction, kind=template.kind)
    for stitch in stitches:
        if stitch == wanted:
            return stitch
    return None


def pair_quarters(stitch: PartStitch, stitches: Sequence[PartStitch], seen: Set[Tuple[float, float]]) -> Tuple[int, int]:
    """Return the 1-based ``(palindex1, palindex2)`` of the quarter pair holding ``stitch``.

    The partner quarter sits on the same diagonal of the same cell and
    must share color, direction and kind; positions consumed by the pair
    are added to ``seen``.
    """
    first = second = 0
    floor_x = float(math.floor(stitch.x))
    floor_y = float(math.floor(stitch.y))

    if stitch.direction is PartStitchDirection.FORWARD:
        first_here = stitch.is_on_bottom_left()
        second_here = stitch.is_on_top_right()
        first_at = (floor_x, stitch.y + 0.5)
        second_at = (stitch.x + 0.5, floor_y)
    else:
        first_here = stitch.is_on_top_left()
        second_here = stitch.is_on_bottom_right()
        first_at = (floor_x, floor_y)
        second_at = (stitch.x + 0.5, stitch.y + 0.5)

    if first_here:
        first = stitch.palindex + 1
    else:
        partner = _find_quarter(stitches, stitch, *first_at)
        if partner is not None:
            seen.add((partner.x, partner.y))
            first = partner.palindex + 1

    if second_here:
        second = stitch.palindex + 1
    else:
        partner = _find_quarter(stitches, stitch, *second_at)
        if partner is not None:
            seen.add((partner.x, partner.y))
            second = partner.palindex + 1

    return first, second


def _write_part_stitches(root: ET.Element, stitches: Sequence[PartStitch]) -> None:
    parent = ET.SubElement(root, "partstitches")
    seen: Set[Tuple[float, float]] = set()
    for stitch in stitches:
        if stitch.kind is PartStitchKind.HALF:
            palindex1, palindex2 = stitch.palindex + 1, 0
            direction = stitch.direction.value + 2
        else:
            if (stitch.x, stitch.y) in seen:
                continue
            seen.add((stitch.x, stitch.y))
            palindex1, palindex2 = pair_quarters(stitch, stitches, seen)
            direction = stitch.direction.value

        ET.SubElement(
            parent,
            "partstitch",
            {
                "x": str(math.trunc(stitch.x)),
                "y": str(math.trunc(stitch.y)),
                "palindex1": str(palindex1),
                "palindex2": str(palindex2),
                "direction": str(direction),
            },
        )


def _write_line_stitches(root: ET.Element, stitches: Sequence[LineStitch]) -> None:
    parent = ET.SubElement(root, "backstitches")
    for stitch in stitches:
        ET.SubElement(
            parent,
            "backstitch",
            {
                "x1": format_number(stitch.x[0]),
                "x2": format_number(stitch.x[1]),
                "y1": format_number(stitch.y[0]),
                "y2": format_number(stitch.y[1]),
                "palindex": str(stitch.palindex + 1),
                "objecttype": stitch.kind.value,
            },
        )


def _write_ornaments(root: ET.Element, fullstitches: Sequence[FullStitch], nodestitches: Sequence[NodeStitch]) -> None:
    parent = ET.SubElement(root, "ornaments_inc_knots_and_beads")
    objects: List[Tuple[float, float, int, str]] = [
        (stitch.x, stitch.y, stitch.palindex, PETITE_OBJECT_TYPE)
        for stitch in fullstitches
        if stitch.kind is FullStitchKind.PETITE
    ]
    objects.extend((node.x, node.y, node.palindex, node.kind.value) for node in nodestitches)
    for x, y, palindex, objecttype in objects:
        ET.SubElement(
            parent,
            "object",
            {
                "x1": format_number(x),
                "y1": format_number(y),
                "palindex": str(palindex + 1),
                "objecttype": objecttype,
            },
        )


def to_oxs(pattern: OxsPattern) -> str:
    root = ET.Element("chart")
    _write_format(root)
    _write_properties(root, pattern.properties, len(pattern.palette))
    _write_palette(root, pattern.fabric, pattern.palette)
    _write_full_stitches(root, pattern.fullstitches)
    _write_part_stitches(root, pattern.partstitches)
    _write_line_stitches(root, pattern.linestitches)
    _write_ornaments(root, pattern.fullstitches, pattern.nodestitches)
    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")


def save_oxs_pattern(path: Union[str, Path], pattern: OxsPattern) -> None:
    logger.debug("Writing OXS pattern %s", path)
    Path(path).write_text(to_oxs(pattern), encoding="utf-8")


# ── Conversion ────────────────────────────────────────────────────────


def pattern_from_xsd(pattern: Pattern) -> OxsPattern:
    """Convert a decoded XSD pattern into its OXS representation.

    Special stitches and their models have no OXS counterpart and are
    dropped.
    """
    symbols: Dict[int, Optional[int]] = {idx: sym.full for idx, sym in enumerate(pattern.symbols)}
    palette = [
        OxsPaletteItem(
            number=f"{item.brand} {item.number}".strip(),
            name=item.name,
            color=item.color,
            symbol=symbols.get(idx),
        )
        for idx, item in enumerate(pattern.palette)
    ]
    properties = OxsProperties(
        software=settings.OXS_SOFTWARE,
        software_version=settings.OXS_SOFTWARE_VERSION,
        width=pattern.fabric.width,
        height=pattern.fabric.height,
        title=pattern.info.title,
        author=pattern.info.author,
        copyright=pattern.info.copyright,
        instructions=pattern.info.description,
        stitches_per_inch=pattern.fabric.stitches_per_inch,
    )
    return OxsPattern(
        properties=properties,
        fabric=OxsPaletteItem(number=CLOTH_NUMBER, name=pattern.fabric.name, color=pattern.fabric.color),
        palette=palette,
        fullstitches=list(pattern.fullstitches),
        partstitches=list(pattern.partstitches),
        linestitches=list(pattern.linestitches),
        nodestitches=list(pattern.nodestitches),
    )
