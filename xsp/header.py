"""Readers for the metadata blocks that precede the stitch data in XSD files.

Each ``read_*`` function consumes exactly one block from a
:class:`~xsp.stream.ByteReader` positioned at its first byte and leaves
the reader on the first byte of the next block.  Gaps whose meaning is
unknown are skipped by length only.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .brands import brand_name
from .errors import StructuralError
from .pattern import (
    Bead,
    Blend,
    Font,
    FontFormat,
    Formats,
    Grid,
    GridLineStyle,
    LineStitchFormat,
    NodeStitchFormat,
    PageMargins,
    PaletteItem,
    PatternInfo,
    PatternSettings,
    PrintSettings,
    StitchOutline,
    StitchSettings,
    StitchStrands,
    SymbolFormat,
    Symbols,
    SymbolSettings,
)
from .stream import ByteReader

logger = logging.getLogger(__name__)

COLOR_NUMBER_LENGTH = 10
COLOR_NAME_LENGTH = 40
MAX_BLEND_COLORS = 4
BLEND_RECORD_SIZE = 12

PATTERN_NAME_LENGTH = 40
AUTHOR_NAME_LENGTH = 40
COMPANY_NAME_LENGTH = 40
COPYRIGHT_LENGTH = 200
PATTERN_NOTES_LENGTH = 2048

FONT_NAME_LENGTH = 32
DEFAULT_FONT_NAME = "default"
BOLD_FONT_WEIGHT = 700

# Format tables always hold this many slots, whatever the palette size.
FORMAT_LENGTH = 240
FORMAT_RECORD_SIZE = 10
FONT_FORMAT_RECORD_SIZE = 53
UNKNOWN_FORMAT_TABLES = 4

# Full, petite, half, quarter, back, straight, french knot, bead, special.
STITCH_TYPES_NUMBER = 9
DEFAULT_FRENCH_KNOT_STRANDS = 2
DISPLAY_THICKNESS_COUNT = 13

PAGE_HEADER_AND_FOOTER_LENGTH = 119
UNSET_SYMBOL = 0xFFFF


def _flag(reader: ByteReader) -> bool:
    return reader.read_u16() == 1


def _tenths(reader: ByteReader) -> float:
    return reader.read_u16() / 10.0


# ── Palette ───────────────────────────────────────────────────────────


def _read_blends(reader: ByteReader) -> Optional[Tuple[Blend, ...]]:
    count = reader.read_u16()
    if count > MAX_BLEND_COLORS:
        raise StructuralError(f"palette item has {count} blend colors, at most {MAX_BLEND_COLORS} allowed")

    heads = []
    for _ in range(count):
        brand = brand_name(reader.read_u8())
        heads.append((brand, reader.read_cstring(COLOR_NUMBER_LENGTH)))
    reader.skip((MAX_BLEND_COLORS - count) * BLEND_RECORD_SIZE)

    strands = [reader.read_u8() for _ in range(count)]
    reader.skip(MAX_BLEND_COLORS - count)

    if not heads:
        return None
    return tuple(
        Blend(brand=brand, number=number, strands=strand)
        for (brand, number), strand in zip(heads, strands)
    )


def read_palette_item(reader: ByteReader) -> PaletteItem:
    """Read one palette record (also the item layout of ``.master``/``.user`` files)."""
    reader.skip(2)
    brand = brand_name(reader.read_u8())
    number = reader.read_cstring(COLOR_NUMBER_LENGTH)
    name = reader.read_cstring(COLOR_NAME_LENGTH)
    color = reader.read_hex_color()
    reader.skip(1)
    blends = _read_blends(reader)

    bead = None
    if reader.read_u32() == 1:
        bead = Bead(length=_tenths(reader), diameter=_tenths(reader))
    else:
        reader.skip(4)
    reader.skip(2)

    return PaletteItem(
        brand=brand,
        number=number,
        name=name,
        color=color,
        blends=blends,
        bead=bead,
    )


def _skip_palette_notes(reader: ByteReader, palette_size: int) -> None:
    for _ in range(palette_size * STITCH_TYPES_NUMBER):
        reader.skip(reader.read_u16())


def read_palette_item_strands(reader: ByteReader) -> StitchStrands[Optional[int]]:
    # Stored order differs from the field order of StitchStrands.
    values = [reader.read_u16() or None for _ in range(8)]
    full, half, quarter, back, french_knot, petite, special, straight = values
    return StitchStrands(
        full=full,
        petite=petite,
        half=half,
        quarter=quarter,
        back=back,
        straight=straight,
        french_knot=french_knot,
        special=special,
    )


def read_palette(reader: ByteReader) -> List[PaletteItem]:
    logger.debug("Reading palette at 0x%04X", reader.tell())
    size = reader.read_u16()
    items = [read_palette_item(reader) for _ in range(size)]

    reader.skip(size * 2)  # item positions
    _skip_palette_notes(reader, size)

    palette = []
    for item in items:
        strands = read_palette_item_strands(reader)
        palette.append(
            PaletteItem(
                brand=item.brand,
                number=item.number,
                name=item.name,
                color=item.color,
                blends=item.blends,
                bead=item.bead,
                strands=strands,
            )
        )
    return palette


# ── Formats and symbols ───────────────────────────────────────────────


def _skip_unused_formats(reader: ByteReader, palette_size: int, record_size: int) -> None:
    if palette_size > FORMAT_LENGTH:
        raise StructuralError(f"palette of {palette_size} items exceeds the {FORMAT_LENGTH} format slots")
    reader.skip((FORMAT_LENGTH - palette_size) * record_size)


def _read_symbol_format(reader: ByteReader) -> SymbolFormat:
    use_alt_bg_color = _flag(reader)
    bg_color = reader.read_hex_color()
    reader.skip(1)
    fg_color = reader.read_hex_color()
    reader.skip(1)
    return SymbolFormat(use_alt_bg_color=use_alt_bg_color, bg_color=bg_color, fg_color=fg_color)


def _read_line_format(reader: ByteReader) -> LineStitchFormat:
    use_alt_color = _flag(reader)
    color = reader.read_hex_color()
    reader.skip(1)
    style = reader.read_u16()
    thickness = _tenths(reader)
    return LineStitchFormat(use_alt_color=use_alt_color, color=color, style=style, thickness=thickness)


def _read_node_format(reader: ByteReader) -> NodeStitchFormat:
    use_dot_style = _flag(reader)
    color = reader.read_hex_color()
    reader.skip(1)
    use_alt_color = _flag(reader)
    thickness = _tenths(reader)
    return NodeStitchFormat(
        use_dot_style=use_dot_style,
        use_alt_color=use_alt_color,
        color=color,
        thickness=thickness,
    )


def _read_font_format(reader: ByteReader) -> FontFormat:
    font_name: Optional[str] = reader.read_cstring(FONT_NAME_LENGTH)
    if font_name == DEFAULT_FONT_NAME:
        font_name = None
    reader.skip(2)
    bold = reader.read_u16() == BOLD_FONT_WEIGHT
    italic = reader.read_u8() == 1
    reader.skip(11)
    stitch_size = reader.read_u16()
    small_stitch_size = reader.read_u16()
    return FontFormat(
        font_name=font_name,
        bold=bold,
        italic=italic,
        stitch_size=stitch_size,
        small_stitch_size=small_stitch_size,
    )


def _read_format_table(reader: ByteReader, palette_size: int, read_one, record_size: int) -> list:
    table = [read_one(reader) for _ in range(palette_size)]
    _skip_unused_formats(reader, palette_size, record_size)
    return table


def read_formats(reader: ByteReader, palette_size: int) -> List[Formats]:
    """Read the per-color display formats.

    Tables are stored one per stitch family, each padded to
    ``FORMAT_LENGTH`` slots: symbol, backstitch, four unknown tables,
    special stitch, straight stitch, french knot, bead, font.
    """
    logger.debug("Reading formats at 0x%04X", reader.tell())
    symbol = _read_format_table(reader, palette_size, _read_symbol_format, FORMAT_RECORD_SIZE)
    back = _read_format_table(reader, palette_size, _read_line_format, FORMAT_RECORD_SIZE)
    reader.skip(FORMAT_LENGTH * UNKNOWN_FORMAT_TABLES)
    special = _read_format_table(reader, palette_size, _read_line_format, FORMAT_RECORD_SIZE)
    straight = _read_format_table(reader, palette_size, _read_line_format, FORMAT_RECORD_SIZE)
    french_knot = _read_format_table(reader, palette_size, _read_node_format, FORMAT_RECORD_SIZE)
    bead = _read_format_table(reader, palette_size, _read_node_format, FORMAT_RECORD_SIZE)
    font = _read_format_table(reader, palette_size, _read_font_format, FONT_FORMAT_RECORD_SIZE)

    return [
        Formats(
            symbol=symbol[idx],
            back_stitch=back[idx],
            straight_stitch=straight[idx],
            french_knot=french_knot[idx],
            bead=bead[idx],
            special_stitch=special[idx],
            font=font[idx],
        )
        for idx in range(palette_size)
    ]


def read_symbols(reader: ByteReader, palette_size: int) -> List[Symbols]:
    logger.debug("Reading symbols at 0x%04X", reader.tell())
    symbols = []
    for _ in range(palette_size):
        values = [reader.read_u16() for _ in range(6)]
        full, petite, half, quarter, french_knot, bead = (
            None if value == UNSET_SYMBOL else value for value in values
        )
        symbols.append(
            Symbols(
                full=full,
                petite=petite,
                half=half,
                quarter=quarter,
                french_knot=french_knot,
                bead=bead,
            )
        )
    return symbols


# ── Settings ──────────────────────────────────────────────────────────


def read_pattern_and_print_settings(reader: ByteReader) -> Tuple[PatternSettings, PrintSettings]:
    logger.debug("Reading pattern and print settings at 0x%04X", reader.tell())

    default_stitch_font = reader.read_cstring(FONT_NAME_LENGTH)
    reader.skip(20)

    font = Font(
        name=reader.read_cstring(FONT_NAME_LENGTH),
        size=reader.read_u16(),
        weight=reader.read_u16(),
        italic=_flag(reader),
    )
    reader.skip(10)

    view = reader.read_u16()
    zoom = reader.read_u16()
    show_grid = _flag(reader)
    show_rulers = _flag(reader)
    show_centering_marks = _flag(reader)
    show_fabric_colors_with_symbols = _flag(reader)
    reader.skip(4)
    gaps_between_stitches = _flag(reader)

    page_header = reader.read_cstring(PAGE_HEADER_AND_FOOTER_LENGTH)
    page_footer = reader.read_cstring(PAGE_HEADER_AND_FOOTER_LENGTH)
    left, right, top, bottom, header, footer = (reader.read_u16() / 100.0 for _ in range(6))
    margins = PageMargins(left=left, right=right, top=top, bottom=bottom, header=header, footer=footer)
    show_page_numbers = _flag(reader)
    show_adjacent_page_numbers = _flag(reader)
    center_chart_on_pages = _flag(reader)
    reader.skip(2)

    pattern_settings = PatternSettings(
        default_stitch_font=default_stitch_font,
        view=view,
        zoom=zoom,
        show_grid=show_grid,
        show_rulers=show_rulers,
        show_centering_marks=show_centering_marks,
        show_fabric_colors_with_symbols=show_fabric_colors_with_symbols,
        gaps_between_stitches=gaps_between_stitches,
    )
    print_settings = PrintSettings(
        font=font,
        header=page_header,
        footer=page_footer,
        margins=margins,
        show_page_numbers=show_page_numbers,
        show_adjacent_page_numbers=show_adjacent_page_numbers,
        center_chart_on_pages=center_chart_on_pages,
    )
    return pattern_settings, print_settings


def _read_grid_line_style(reader: ByteReader) -> GridLineStyle:
    # Stored in thousandths of an inch; converted to points.
    thickness = reader.read_u16() * 72 / 1000.0
    reader.skip(2)
    color = reader.read_hex_color()
    reader.skip(3)
    return GridLineStyle(color=color, thickness=thickness)


def read_grid(reader: ByteReader) -> Grid:
    logger.debug("Reading grid at 0x%04X", reader.tell())
    major_lines_interval = reader.read_u16()
    reader.skip(2)
    minor_screen, major_screen, minor_printer, major_printer = (
        _read_grid_line_style(reader) for _ in range(4)
    )
    reader.skip(12)
    return Grid(
        major_lines_interval=major_lines_interval,
        minor_screen_lines=minor_screen,
        major_screen_lines=major_screen,
        minor_printer_lines=minor_printer,
        major_printer_lines=major_printer,
    )


def read_pattern_info(reader: ByteReader) -> PatternInfo:
    logger.debug("Reading pattern info at 0x%04X", reader.tell())
    return PatternInfo(
        title=reader.read_cstring(PATTERN_NAME_LENGTH),
        author=reader.read_cstring(AUTHOR_NAME_LENGTH),
        company=reader.read_cstring(COMPANY_NAME_LENGTH),
        copyright=reader.read_cstring(COPYRIGHT_LENGTH),
        description=reader.read_cstring(PATTERN_NOTES_LENGTH),
    )


def read_stitch_settings(reader: ByteReader) -> StitchSettings:
    logger.debug("Reading stitch settings at 0x%04X", reader.tell())
    full, half, quarter, back, petite, special, straight = (reader.read_u16() for _ in range(7))
    default_strands = StitchStrands(
        full=full,
        petite=petite,
        half=half,
        quarter=quarter,
        back=back,
        straight=straight,
        french_knot=DEFAULT_FRENCH_KNOT_STRANDS,
        special=special,
    )
    display_thickness = tuple(_tenths(reader) for _ in range(DISPLAY_THICKNESS_COUNT))

    outlined_stitches = _flag(reader)
    use_specified_color = _flag(reader)
    color_percentage = reader.read_u16()
    outline_color = None
    if use_specified_color:
        outline_color = reader.read_hex_color()
        reader.skip(1)
    else:
        reader.skip(4)
    outline = StitchOutline(color=outline_color, color_percentage=color_percentage, thickness=_tenths(reader))

    return StitchSettings(
        default_strands=default_strands,
        display_thickness=display_thickness,
        outlined_stitches=outlined_stitches,
        stitch_outline=outline,
    )


def read_symbol_settings(reader: ByteReader) -> SymbolSettings:
    logger.debug("Reading symbol settings at 0x%04X", reader.tell())
    screen_spacing = (reader.read_u16(), reader.read_u16())
    printer_spacing = (reader.read_u16(), reader.read_u16())
    scale_using_maximum_font_width = _flag(reader)
    scale_using_font_height = _flag(reader)
    small_stitch_size = reader.read_u16()
    show_stitch_color = _flag(reader)
    use_large_half_stitch_symbol = _flag(reader)
    reader.skip(6)
    stitch_size = reader.read_u16()
    use_triangles_behind_quarter_stitches = _flag(reader)
    draw_symbols_over_backstitches = _flag(reader)
    reader.skip(2)
    return SymbolSettings(
        screen_spacing=screen_spacing,
        printer_spacing=printer_spacing,
        scale_using_maximum_font_width=scale_using_maximum_font_width,
        scale_using_font_height=scale_using_font_height,
        stitch_size=stitch_size,
        small_stitch_size=small_stitch_size,
        draw_symbols_over_backstitches=draw_symbols_over_backstitches,
        show_stitch_color=show_stitch_color,
        use_large_half_stitch_symbol=use_large_half_stitch_symbol,
        use_triangles_behind_quarter_stitches=use_triangles_behind_quarter_stitches,
    )
