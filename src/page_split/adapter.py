"""
Re-fit cutter lines onto a new page outline and keep the layout type honest.

Why this module exists:
- When the outline of a scan changes, existing cutters must follow it
  without losing their slant or their left-to-right order.
- A changed outline can make a split meaningless (a cutter lying on a page
  edge, two cutters crossing inside the page). Those layouts collapse to
  single_page_uncut instead of raising.

Everything here is pure: inputs are never mutated, a new layout is returned.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .geometry import (
    LineSegment,
    Point,
    Rect,
    intersect_lines,
    snap_line,
    snap_rect,
)
from .layout import CutLayout, PageLayout, TwoPagesLayout, UncutLayout


def _clamp_x(point: Point, rect: Rect) -> Point:
    if point.x < rect.left:
        return point.with_x(rect.left)
    if point.x > rect.right:
        return point.with_x(rect.right)
    return point


def project_line(line: Optional[LineSegment], rect: Rect) -> Optional[LineSegment]:
    """
    Stretch a line so it runs from the top border of rect to the bottom one.

    Both ends are clamped into the horizontal extent of rect. When the line
    cannot be projected (invalid rect, no geometry, line parallel to the
    borders) it is returned unchanged.
    """

    if not rect.is_valid or line is None or line.is_null:
        return line

    upper = intersect_lines(rect.top_border, line)
    if upper is None:
        return line
    upper = _clamp_x(upper, rect)

    lower = intersect_lines(rect.bottom_border, line)
    if lower is None:
        return line
    lower = _clamp_x(lower, rect)

    return LineSegment(upper, lower)


def _sort_key(line: Optional[LineSegment]) -> tuple[bool, float]:
    if line is None:
        return (True, 0.0)
    return (False, line.p1.x)


def project_lines(
    lines: Sequence[Optional[LineSegment]], rect: Rect
) -> List[Optional[LineSegment]]:
    """
    Project several lines onto rect and untangle neighbours that cross.

    Lines come back ordered left to right by their top end. If two
    neighbours cross strictly between the top and bottom of rect, both are
    cut at the border nearer to the crossing (ties go to the bottom) so they
    only touch at that border.
    """

    adapted = sorted((project_line(line, rect) for line in lines), key=_sort_key)

    upper_bound = rect.top
    lower_bound = rect.bottom
    for index in range(1, len(adapted)):
        left = adapted[index - 1]
        right = adapted[index]
        if left is None or right is None:
            continue

        crossing = intersect_lines(left, right)
        if crossing is None:
            continue
        if not (upper_bound < crossing.y < lower_bound):
            continue

        if (lower_bound - crossing.y) <= (lower_bound - upper_bound) / 2:
            snapped = Point(crossing.x, lower_bound)
            left = left.with_p2(snapped)
            right = right.with_p2(snapped)
        else:
            snapped = Point(crossing.x, upper_bound)
            left = left.with_p1(snapped)
            right = right.with_p1(snapped)
        adapted[index - 1] = left
        adapted[index] = right

    return adapted


def _lies_on_side_edge(line: LineSegment, outline: Rect) -> bool:
    return line.is_vertical and line.p1.x in (outline.left, outline.right)


def _cutters_are_degenerate(first: LineSegment, second: LineSegment, outline: Rect) -> bool:
    if _lies_on_side_edge(first, outline) and _lies_on_side_edge(second, outline):
        return True

    crossing = intersect_lines(first, second)
    if crossing is not None:
        return outline.top < crossing.y < outline.bottom
    # Parallel cutters starting from the same point are the same line.
    return first.p1 == second.p1


def correct_layout_type(layout: PageLayout, *, snap_to_pixels: bool = False) -> PageLayout:
    """
    Return layout, or an uncut layout with the same outline if its cutters
    no longer describe a split.

    Checks compare raw coordinates. With snap_to_pixels they run on geometry
    rounded to whole pixels instead.
    """

    outline = snap_rect(layout.outline) if snap_to_pixels else layout.outline

    def prepare(line: Optional[LineSegment]) -> Optional[LineSegment]:
        return snap_line(line) if snap_to_pixels else line

    if isinstance(layout, CutLayout):
        first = prepare(layout.first)
        second = prepare(layout.second)
        if first is not None and second is not None:
            if _cutters_are_degenerate(first, second, outline):
                return UncutLayout(layout.outline)
        return layout

    if isinstance(layout, TwoPagesLayout):
        cutter = prepare(layout.cutter)
        if cutter is not None and _lies_on_side_edge(cutter, outline):
            return UncutLayout(layout.outline)
        return layout

    return layout


def adapt_layout(
    layout: PageLayout, new_outline: Rect, *, snap_to_pixels: bool = False
) -> PageLayout:
    """Carry a page layout over to a new outline."""

    if layout.outline == new_outline:
        return layout

    if isinstance(layout, CutLayout):
        first, second = project_lines([layout.first, layout.second], new_outline)
        return correct_layout_type(
            CutLayout(new_outline, first, second), snap_to_pixels=snap_to_pixels
        )

    if isinstance(layout, TwoPagesLayout):
        cutter = project_line(layout.cutter, new_outline)
        return correct_layout_type(
            TwoPagesLayout(new_outline, cutter), snap_to_pixels=snap_to_pixels
        )

    return UncutLayout(new_outline)
