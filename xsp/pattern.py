"""Whole-pattern aggregate and the XSD metadata records around the stitches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, List, Optional, Tuple, TypeVar

from .stitches import (
    FullStitch,
    LineStitch,
    NodeStitch,
    PartStitch,
    SpecialStitch,
    SpecialStitchModel,
)

T = TypeVar("T")


@dataclass(frozen=True)
class StitchStrands(Generic[T]):
    full: T
    petite: T
    half: T
    quarter: T
    back: T
    straight: T
    french_knot: T
    special: T


@dataclass(frozen=True)
class Blend:
    brand: str
    number: str
    strands: int


@dataclass(frozen=True)
class Bead:
    length: float  # mm
    diameter: float  # mm


@dataclass(frozen=True)
class PaletteItem:
    brand: str
    number: str
    name: str
    color: str  # RRGGBB
    blends: Optional[Tuple[Blend, ...]] = None
    bead: Optional[Bead] = None
    strands: Optional[StitchStrands[Optional[int]]] = None


@dataclass(frozen=True)
class SymbolFormat:
    use_alt_bg_color: bool
    bg_color: str
    fg_color: str


@dataclass(frozen=True)
class LineStitchFormat:
    use_alt_color: bool
    color: str
    style: int
    thickness: float


@dataclass(frozen=True)
class NodeStitchFormat:
    use_dot_style: bool
    use_alt_color: bool
    color: str
    thickness: float


@dataclass(frozen=True)
class FontFormat:
    font_name: Optional[str]
    bold: bool
    italic: bool
    stitch_size: int
    small_stitch_size: int


@dataclass(frozen=True)
class Formats:
    symbol: SymbolFormat
    back_stitch: LineStitchFormat
    straight_stitch: LineStitchFormat
    french_knot: NodeStitchFormat
    bead: NodeStitchFormat
    special_stitch: LineStitchFormat
    font: FontFormat


@dataclass(frozen=True)
class Symbols:
    """Symbol code points per stitch kind; ``None`` where unset."""

    full: Optional[int]
    petite: Optional[int]
    half: Optional[int]
    quarter: Optional[int]
    french_knot: Optional[int]
    bead: Optional[int]


@dataclass(frozen=True)
class PatternInfo:
    title: str
    author: str
    company: str
    copyright: str
    description: str


@dataclass(frozen=True)
class Fabric:
    width: int
    height: int
    stitches_per_inch: Tuple[int, int]
    kind: str
    name: str
    color: str


@dataclass(frozen=True)
class GridLineStyle:
    color: str
    thickness: float  # points


@dataclass(frozen=True)
class Grid:
    major_lines_interval: int
    minor_screen_lines: GridLineStyle
    major_screen_lines: GridLineStyle
    minor_printer_lines: GridLineStyle
    major_printer_lines: GridLineStyle


@dataclass(frozen=True)
class PatternSettings:
    default_stitch_font: str
    view: int
    zoom: int
    show_grid: bool
    show_rulers: bool
    show_centering_marks: bool
    show_fabric_colors_with_symbols: bool
    gaps_between_stitches: bool


@dataclass(frozen=True)
class Font:
    name: str
    size: int
    weight: int
    italic: bool


@dataclass(frozen=True)
class PageMargins:
    left: float
    right: float
    top: float
    bottom: float
    header: float
    footer: float


@dataclass(frozen=True)
class PrintSettings:
    font: Font
    header: str
    footer: str
    margins: PageMargins
    show_page_numbers: bool
    show_adjacent_page_numbers: bool
    center_chart_on_pages: bool


@dataclass(frozen=True)
class StitchOutline:
    color: Optional[str]
    color_percentage: int
    thickness: float


@dataclass(frozen=True)
class StitchSettings:
    default_strands: StitchStrands[int]
    display_thickness: Tuple[float, ...]  # 1..12 strands, then french knot
    outlined_stitches: bool
    stitch_outline: StitchOutline


@dataclass(frozen=True)
class SymbolSettings:
    screen_spacing: Tuple[int, int]
    printer_spacing: Tuple[int, int]
    scale_using_maximum_font_width: bool
    scale_using_font_height: bool
    stitch_size: int
    small_stitch_size: int
    draw_symbols_over_backstitches: bool
    show_stitch_color: bool
    use_large_half_stitch_symbol: bool
    use_triangles_behind_quarter_stitches: bool


@dataclass(frozen=True)
class Pattern:
    """A fully decoded XSD pattern."""

    info: PatternInfo
    fabric: Fabric
    palette: List[PaletteItem]
    formats: List[Formats]
    symbols: List[Symbols]
    grid: Grid
    pattern_settings: PatternSettings
    stitch_settings: StitchSettings
    symbol_settings: SymbolSettings
    print_settings: PrintSettings
    fullstitches: List[FullStitch] = field(default_factory=list)
    partstitches: List[PartStitch] = field(default_factory=list)
    linestitches: List[LineStitch] = field(default_factory=list)
    nodestitches: List[NodeStitch] = field(default_factory=list)
    specialstitches: List[SpecialStitch] = field(default_factory=list)
    special_stitch_models: List[SpecialStitchModel] = field(default_factory=list)
