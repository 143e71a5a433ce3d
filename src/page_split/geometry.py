"""
Plain geometry values used by the cutter adaptation code.

Why this module exists:
- Cutter lines, outlines and their intersections need a tiny, predictable
  set of primitives with immutable values.
- Intersection follows "infinite line" semantics: two lines that are not
  parallel always meet somewhere, even outside both segments.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "Point":
        return Point(self.x * factor, self.y * factor)

    def with_x(self, x: float) -> "Point":
        return Point(x, self.y)


@dataclass(frozen=True)
class LineSegment:
    """An ordered pair of points. For cutters p1 is the top end."""

    p1: Point
    p2: Point

    @classmethod
    def from_coords(cls, x1: float, y1: float, x2: float, y2: float) -> "LineSegment":
        return cls(Point(float(x1), float(y1)), Point(float(x2), float(y2)))

    @property
    def is_null(self) -> bool:
        """True when both endpoints coincide (zero-length segment)."""

        return self.p1 == self.p2

    @property
    def is_vertical(self) -> bool:
        return self.p1.x == self.p2.x

    def with_p1(self, point: Point) -> "LineSegment":
        return LineSegment(point, self.p2)

    def with_p2(self, point: Point) -> "LineSegment":
        return LineSegment(self.p1, point)

    def as_coords(self) -> tuple[float, float, float, float]:
        return (self.p1.x, self.p1.y, self.p2.x, self.p2.y)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in image coordinates (y grows downward)."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def top_border(self) -> LineSegment:
        return LineSegment(Point(self.left, self.top), Point(self.right, self.top))

    @property
    def bottom_border(self) -> LineSegment:
        return LineSegment(Point(self.left, self.bottom), Point(self.right, self.bottom))

    def united(self, other: "Rect") -> "Rect":
        return Rect(
            min(self.left, other.left),
            min(self.top, other.top),
            max(self.right, other.right),
            max(self.bottom, other.bottom),
        )

    def as_coords(self) -> tuple[float, float, float, float]:
        return (self.left, self.top, self.right, self.bottom)


def intersect_lines(line: LineSegment, other: LineSegment) -> Optional[Point]:
    """
    Return the crossing point of the infinite extensions of two segments.

    Returns None for parallel or collinear lines and for zero-length input.
    The point is built from ``line``, so a crossing with a horizontal border
    gets exactly that border's y.
    """

    a = line.p2 - line.p1
    b = other.p1 - other.p2
    c = line.p1 - other.p1

    denominator = a.y * b.x - a.x * b.y
    if denominator == 0 or not math.isfinite(denominator):
        return None

    na = (b.y * c.x - b.x * c.y) / denominator
    return line.p1 + a.scaled(na)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity (-0.5 -> 0)."""

    return int(math.floor(value + 0.5))


def snap_rect(rect: Rect) -> Rect:
    """Snap every rect edge to the integer pixel grid."""

    return Rect(
        round_half_up(rect.left),
        round_half_up(rect.top),
        round_half_up(rect.right),
        round_half_up(rect.bottom),
    )


def snap_line(line: Optional[LineSegment]) -> Optional[LineSegment]:
    """Snap both endpoints of a segment to the integer pixel grid."""

    if line is None:
        return None
    return LineSegment(
        Point(round_half_up(line.p1.x), round_half_up(line.p1.y)),
        Point(round_half_up(line.p2.x), round_half_up(line.p2.y)),
    )
