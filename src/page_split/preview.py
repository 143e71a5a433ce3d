"""
Draw adapted layouts on top of the scan for a quick visual check.

Why this module exists:
- A re-fitted cutter is easiest to judge by eye against the page it cuts.
- The background can be a blank canvas, an image file (Pillow), or a PDF
  page rendered with PyMuPDF.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Set, Tuple

import fitz  # PyMuPDF
from PIL import Image, ImageDraw

from .geometry import LineSegment, Rect
from .layout import PageLayout
from .utils import UserError, ensure_file_exists, validate_positive_int


Color = Tuple[int, int, int]

OUTLINE_COLOR: Color = (0, 200, 0)
CUTTER_COLOR: Color = (255, 0, 0)
PREVIOUS_COLOR: Color = (150, 150, 150)
CANVAS_MARGIN_PX = 10


def blank_canvas(bounds: Rect) -> Image.Image:
    """White canvas large enough to hold bounds plus a small margin."""

    width = max(1, int(bounds.right) + CANVAS_MARGIN_PX)
    height = max(1, int(bounds.bottom) + CANVAS_MARGIN_PX)
    return Image.new("RGB", (width, height), color=(255, 255, 255))


def load_image_background(image_path: Path) -> Image.Image:
    ensure_file_exists(image_path, "Image")
    try:
        with Image.open(image_path) as opened:
            return opened.convert("RGB")
    except Exception as exc:  # pragma: no cover - codec/file errors
        raise UserError(f"Failed to read image {image_path}: {exc}") from exc


def render_pdf_background(pdf_path: Path, page_number: int, dpi: int) -> Image.Image:
    """Render one 1-based PDF page to an RGB Pillow image."""

    ensure_file_exists(pdf_path, "PDF")
    validate_positive_int(page_number, "--pdf_page")
    validate_positive_int(dpi, "--dpi")

    with fitz.open(pdf_path) as doc:
        if page_number > doc.page_count:
            raise UserError(
                f"Page {page_number} is out of range. PDF has {doc.page_count} pages."
            )
        # DPI -> PDF "zoom" factor. PDFs are 72 DPI by default.
        zoom = dpi / 72.0
        page = doc.load_page(page_number - 1)
        pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        return Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)


def _draw_cutter(
    draw: ImageDraw.ImageDraw, line: Optional[LineSegment], color: Color, width: int
) -> None:
    if line is None:
        return
    draw.line([(line.p1.x, line.p1.y), (line.p2.x, line.p2.y)], fill=color, width=width)


def draw_layout_overlay(
    base: Image.Image,
    layout: PageLayout,
    previous: Optional[PageLayout] = None,
    line_width: int = 2,
) -> Image.Image:
    """Return a copy of base with outline and cutters drawn on it."""

    overlay = base.convert("RGB")
    draw = ImageDraw.Draw(overlay)

    if previous is not None:
        if previous.outline.is_valid:
            draw.rectangle(previous.outline.as_coords(), outline=PREVIOUS_COLOR, width=1)
        for line in previous.cutter_lines:
            _draw_cutter(draw, line, PREVIOUS_COLOR, 1)

    if layout.outline.is_valid:
        draw.rectangle(layout.outline.as_coords(), outline=OUTLINE_COLOR, width=line_width)
    for line in layout.cutter_lines:
        _draw_cutter(draw, line, CUTTER_COLOR, line_width)
    return overlay


def render_preview(
    out_path: Path,
    layout: PageLayout,
    previous: Optional[PageLayout] = None,
    image_path: Optional[Path] = None,
    pdf_path: Optional[Path] = None,
    pdf_page: int = 1,
    dpi: int = 72,
) -> Path:
    """
    Write a PNG preview of layout (and optionally the layout it replaced).

    Coordinates are drawn as-is, so a PDF background must be rendered at the
    DPI the layout coordinates were measured in.
    """

    if image_path is not None and pdf_path is not None:
        raise UserError("Use either an image or a PDF page as preview background, not both.")

    if image_path is not None:
        base = load_image_background(image_path)
    elif pdf_path is not None:
        base = render_pdf_background(pdf_path, pdf_page, dpi)
    else:
        bounds = layout.outline
        if previous is not None:
            bounds = bounds.united(previous.outline)
        base = blank_canvas(bounds)

    overlay = draw_layout_overlay(base, layout, previous)
    try:
        overlay.save(out_path, format="PNG")
    except OSError as exc:
        raise UserError(f"Failed to write preview {out_path}: {exc}") from exc
    return out_path


def preview_name(page_id: str, taken: Optional[Set[str]] = None) -> str:
    """
    File name used for a page preview inside a preview folder.

    Page ids that differ only in unsafe characters map to the same name.
    Pass the names already handed out as taken to get a numbered name
    instead; the returned name is added to taken.
    """

    safe = "".join(char if char.isalnum() or char in "-_." else "_" for char in page_id)
    name = f"{safe}_preview.png"
    if taken is None:
        return name

    counter = 2
    while name in taken:
        name = f"{safe}_{counter}_preview.png"
        counter += 1
    taken.add(name)
    return name

