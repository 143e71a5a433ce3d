"""
Page layout values: an outline plus zero, one or two cutter lines.

Why this module exists:
- The layout type fully determines how many cutters a page carries, so each
  type is its own frozen dataclass and a mismatched count cannot be built.
- Code that only needs "type + lines" can use the shared ``type`` and
  ``cutter_lines`` accessors without caring which variant it holds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from .geometry import LineSegment, Rect


class LayoutType(str, Enum):
    SINGLE_PAGE_UNCUT = "single_page_uncut"
    SINGLE_PAGE_CUT = "single_page_cut"
    TWO_PAGES = "two_pages"

    @property
    def cutter_count(self) -> int:
        return _CUTTER_COUNTS[self]


_CUTTER_COUNTS = {
    LayoutType.SINGLE_PAGE_UNCUT: 0,
    LayoutType.SINGLE_PAGE_CUT: 2,
    LayoutType.TWO_PAGES: 1,
}


@dataclass(frozen=True)
class UncutLayout:
    outline: Rect

    @property
    def type(self) -> LayoutType:
        return LayoutType.SINGLE_PAGE_UNCUT

    @property
    def cutter_lines(self) -> Tuple[Optional[LineSegment], ...]:
        return ()


@dataclass(frozen=True)
class CutLayout:
    """A single page cut out of a spread by a left and a right cutter."""

    outline: Rect
    first: Optional[LineSegment]
    second: Optional[LineSegment]

    @property
    def type(self) -> LayoutType:
        return LayoutType.SINGLE_PAGE_CUT

    @property
    def cutter_lines(self) -> Tuple[Optional[LineSegment], ...]:
        return (self.first, self.second)


@dataclass(frozen=True)
class TwoPagesLayout:
    """A spread split into two pages by one cutter."""

    outline: Rect
    cutter: Optional[LineSegment]

    @property
    def type(self) -> LayoutType:
        return LayoutType.TWO_PAGES

    @property
    def cutter_lines(self) -> Tuple[Optional[LineSegment], ...]:
        return (self.cutter,)


PageLayout = Union[UncutLayout, CutLayout, TwoPagesLayout]


def make_layout(outline: Rect, cutter_lines: Sequence[Optional[LineSegment]] = ()) -> PageLayout:
    """Build the layout variant implied by the number of cutter lines."""

    count = len(cutter_lines)
    if count == 0:
        return UncutLayout(outline)
    if count == 1:
        return TwoPagesLayout(outline, cutter_lines[0])
    if count == 2:
        return CutLayout(outline, cutter_lines[0], cutter_lines[1])
    raise ValueError(f"A page layout carries 0, 1 or 2 cutter lines, got {count}.")


def make_layout_of_type(
    layout_type: LayoutType,
    outline: Rect,
    cutter_lines: Sequence[Optional[LineSegment]] = (),
) -> PageLayout:
    """Build a layout of an explicit type; the line count must match it."""

    layout_type = LayoutType(layout_type)
    if len(cutter_lines) != layout_type.cutter_count:
        raise ValueError(
            f"Layout type {layout_type.value} needs {layout_type.cutter_count} "
            f"cutter line(s), got {len(cutter_lines)}."
        )
    return make_layout(outline, cutter_lines)
