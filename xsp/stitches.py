"""Stitch entities shared by every pattern format.

Coordinates are fractional grid units: an integer is a cell corner and
``0.5`` is half a cell.  Palette indices are zero-based.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Tuple


class FullStitchKind(Enum):
    FULL = "full"
    PETITE = "petite"


class PartStitchKind(Enum):
    HALF = "half"
    QUARTER = "quarter"


class PartStitchDirection(Enum):
    # Values double as the OXS quarter direction codes.
    FORWARD = 1
    BACKWARD = 2


class LineStitchKind(Enum):
    BACK = "backstitch"
    STRAIGHT = "straightstitch"


class NodeStitchKind(Enum):
    FRENCH_KNOT = "knot"
    BEAD = "bead"


@dataclass(frozen=True)
class FullStitch:
    x: float
    y: float
    palindex: int
    kind: FullStitchKind = FullStitchKind.FULL


@dataclass(frozen=True)
class PartStitch:
    x: float
    y: float
    palindex: int
    direction: PartStitchDirection
    kind: PartStitchKind

    def _fract(self) -> Tuple[float, float]:
        return self.x - math.floor(self.x), self.y - math.floor(self.y)

    def is_on_top_left(self) -> bool:
        fx, fy = self._fract()
        return fx < 0.5 and fy < 0.5

    def is_on_top_right(self) -> bool:
        fx, fy = self._fract()
        return fx >= 0.5 and fy < 0.5

    def is_on_bottom_left(self) -> bool:
        fx, fy = self._fract()
        return fx < 0.5 and fy >= 0.5

    def is_on_bottom_right(self) -> bool:
        fx, fy = self._fract()
        return fx >= 0.5 and fy >= 0.5


@dataclass(frozen=True)
class LineStitch:
    x: Tuple[float, float]  # (x1, x2)
    y: Tuple[float, float]  # (y1, y2)
    palindex: int
    kind: LineStitchKind


@dataclass(frozen=True)
class NodeStitch:
    x: float
    y: float
    palindex: int
    kind: NodeStitchKind
    rotated: bool = False


@dataclass(frozen=True)
class CurvedStitch:
    points: Tuple[Tuple[float, float], ...]

    def shifted(self, dx: float, dy: float) -> "CurvedStitch":
        return CurvedStitch(points=tuple((x + dx, y + dy) for x, y in self.points))


@dataclass(frozen=True)
class SpecialStitch:
    """Placement of a special stitch model on the chart."""

    x: float
    y: float
    palindex: int
    modindex: int
    rotation: int = 0  # 0, 90 or 270 degrees
    flip: Tuple[bool, bool] = (False, False)  # (horizontal, vertical)


@dataclass(frozen=True)
class SpecialStitchModel:
    """A named, reusable stitch motif referenced by :class:`SpecialStitch`."""

    unique_name: str
    name: str
    width: float = 0.0
    height: float = 0.0
    linestitches: Tuple[LineStitch, ...] = ()
    nodestitches: Tuple[NodeStitch, ...] = ()
    curvedstitches: Tuple[CurvedStitch, ...] = ()


class Joints(NamedTuple):
    """Output of one joint stream, split by entity family."""

    linestitches: List[LineStitch]
    nodestitches: List[NodeStitch]
    specialstitches: List[SpecialStitch]
    curvedstitches: List[CurvedStitch]
