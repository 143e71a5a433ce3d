"""
page-split package.

Why this file exists:
- It marks this folder as a package so `python -m page_split` works after install.
- It re-exports the cutter adaptation entry points used by editors and pipelines.
"""

from .adapter import adapt_layout, correct_layout_type, project_line, project_lines
from .geometry import LineSegment, Point, Rect
from .layout import CutLayout, LayoutType, PageLayout, TwoPagesLayout, UncutLayout

__all__ = [
    "__version__",
    "CutLayout",
    "LayoutType",
    "LineSegment",
    "PageLayout",
    "Point",
    "Rect",
    "TwoPagesLayout",
    "UncutLayout",
    "adapt_layout",
    "correct_layout_type",
    "project_line",
    "project_lines",
]

# Keep a simple version string for manifests and debugging.
__version__ = "0.2.0"
